"""CLI entry point for standalone usage: compscan.

Subcommands:
    compscan scan /path/to/tree          # Identify components in a file tree
    compscan scan /path --json           # Same, machine readable
    compscan contributors                # List the built-in contributors
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from compsentinel.core.config import ScanSettings
from compsentinel.core.logging import setup_logging
from compsentinel.exceptions import ComponentScanError


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """compscan: identify third-party components in a scanned file tree."""
    try:
        setup_logging("DEBUG" if verbose else None)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("scan")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Emit the result as JSON")
@click.option("--skip-deferred", is_flag=True, help="Skip the deferred matching pass")
def scan(path: str, as_json: bool, skip_deferred: bool) -> None:
    """Walk PATH, extract component patterns and absorb the covered files."""
    from compsentinel.engines.component_patterns import ScanContext, run_component_scan

    try:
        settings = ScanSettings.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    skip_deferred = skip_deferred or settings.skip_deferred

    try:
        context = ScanContext.from_directory(
            Path(path),
            algorithm=settings.checksum_algorithm,
            excludes=settings.scan_excludes,
        )
        run_component_scan(context, skip_deferred=skip_deferred)
    except ComponentScanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    components = [a for a in context.artifacts if not a.is_file]
    loose_files = sorted(a.path_in_asset for a in context.file_artifacts())

    if as_json:
        payload = {
            "components": [
                {
                    "id": a.id,
                    "name": a.component,
                    "version": a.version,
                    "type": a.type,
                    "path": a.path_in_asset,
                    "root_paths": sorted(a.root_paths),
                    "provenance": a.attributes.get("Provenance"),
                    "attributes": a.attributes,
                }
                for a in components
            ],
            "assets": [
                {"asset_id": m.asset_id, "name": m.name, "version": m.version, "type": m.type}
                for m in context.inventory.assets
            ],
            "files": loose_files,
        }
        click.echo(json.dumps(payload, indent=2, default=str))
        return

    click.echo(f"Components: {len(components)}")
    for a in components:
        where = a.path_in_asset or "?"
        click.echo(
            f"  {a.component or a.id}  {a.version or '-'}  [{a.type}]  {where}"
            f"  ({a.attributes.get('Provenance', 'UNKNOWN')})"
        )
    if context.inventory.assets:
        click.echo(f"\nAssets: {len(context.inventory.assets)}")
        for m in context.inventory.assets:
            click.echo(f"  {m.asset_id}  {m.name or '-'}  {m.version or '-'}")
    click.echo(f"\nLoose files: {len(loose_files)}")
    for rel in loose_files:
        click.echo(f"  {rel}")


@main.command("contributors")
def contributors() -> None:
    """List the registered contributors with phase and suffixes."""
    from compsentinel.engines.component_patterns import create_default_registry

    registry = create_default_registry()
    for contributor in registry.contributors():
        suffixes = ", ".join(contributor.suffixes)
        click.echo(f"  [{contributor.phase}] {contributor.name:20s}  {suffixes}")


if __name__ == "__main__":
    main()
