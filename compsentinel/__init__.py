"""compsentinel: component pattern matching & extraction for software composition analysis."""

__version__ = "0.1.0"
