"""Wildcard compilation: contributor suffixes and include/exclude pattern sets.

Two dialects live here:

* contributor suffixes (``PatternCache``) -- ``**`` matches any characters,
  ``*`` any characters within one path segment, and the pattern is anchored
  to the end of the path;
* Ant-style include/exclude patterns (``PatternSet``) -- ``**`` matches any
  number of directories (including none), ``*`` and ``?`` stay within one
  segment, and the pattern must match the whole path.

Everything is lower-cased before matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_WILDCARD_RUN = re.compile(r"[*?]+")
# "**" may also match zero directories, so its slashes are not literal
_DOUBLE_ASTERISK = re.compile(r"/?\*\*/?")


def normalize_path(path: str) -> str:
    """Normalize a path to forward slashes without a leading ``./``."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def lower(path: str) -> str:
    # str.lower() is locale independent
    return path.lower()


def longest_literal(pattern: str) -> str:
    """Return the longest wildcard-free run of *pattern*."""
    pieces = _WILDCARD_RUN.split(_DOUBLE_ASTERISK.sub("*", pattern))
    return max(pieces, key=len) if pieces else ""


def _translate_suffix(suffix: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(suffix):
        if suffix.startswith("**", i):
            out.append(".*")
            i += 2
        elif suffix[i] == "*":
            out.append("[^/]*")
            i += 1
        else:
            out.append(re.escape(suffix[i]))
            i += 1
    return "".join(out) + r"\Z"


class PatternCache:
    """Memoizes compiled contributor suffixes for one extraction pass."""

    def __init__(self) -> None:
        self._compiled: dict[str, re.Pattern[str]] = {}

    def __len__(self) -> int:
        return len(self._compiled)

    def compile(self, wildcard_suffix: str) -> re.Pattern[str]:
        compiled = self._compiled.get(wildcard_suffix)
        if compiled is None:
            compiled = re.compile(_translate_suffix(lower(wildcard_suffix)))
            self._compiled[wildcard_suffix] = compiled
        return compiled

    def matches(self, wildcard_suffix: str, lowercased_path: str) -> bool:
        return self.compile(wildcard_suffix).search(lowercased_path) is not None


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    for char in segment:
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(char))
    return "".join(out)


def translate_ant(pattern: str) -> str:
    """Translate an Ant-style path pattern into a regular expression."""
    if pattern.endswith("/**"):
        return translate_ant(pattern[:-3]) + "(?:/.*)?"

    segments = pattern.split("/")
    regex: list[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            regex.append(".*" if last else "(?:[^/]*/)*")
        else:
            regex.append(_translate_segment(segment))
            if not last:
                regex.append("/")
    return "".join(regex)


@dataclass(frozen=True)
class AntPattern:
    """One compiled Ant-style pattern with its literal pre-filter."""

    pattern: str
    literal: str
    regex: re.Pattern[str]

    @classmethod
    def compile(cls, pattern: str) -> AntPattern:
        normalized = lower(pattern)
        return cls(
            pattern=normalized,
            literal=longest_literal(normalized),
            regex=re.compile(translate_ant(normalized)),
        )

    def matches(self, lowercased_path: str) -> bool:
        if self.literal not in lowercased_path:
            return False
        return self.regex.fullmatch(lowercased_path) is not None


def _any_match(patterns: list[AntPattern], path: str) -> bool:
    lowered = lower(path)
    return any(p.matches(lowered) for p in patterns)


@dataclass
class PatternSet:
    """Comma separated patterns sorted into absolute and relative patterns."""

    absolute: list[AntPattern] = field(default_factory=list)
    relative: list[AntPattern] = field(default_factory=list)

    @classmethod
    def parse(cls, comma_separated: str | None) -> PatternSet:
        pattern_set = cls()
        if not comma_separated:
            return pattern_set

        seen: set[str] = set()
        for raw in comma_separated.split(","):
            pattern = normalize_path(raw.strip())
            if not pattern or pattern in seen:
                continue
            seen.add(pattern)
            if pattern.startswith("/"):
                pattern_set.absolute.append(AntPattern.compile(pattern))
            else:
                pattern_set.relative.append(AntPattern.compile(pattern))
        return pattern_set

    def __bool__(self) -> bool:
        return bool(self.absolute or self.relative)

    def matches_absolute(self, absolute_path: str) -> bool:
        return _any_match(self.absolute, absolute_path)

    def matches_relative(self, relative_path: str) -> bool:
        return _any_match(self.relative, relative_path)
