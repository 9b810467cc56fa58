"""Option and cache types for path globbing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

# Applied under every excluded directory so that excluding a directory also
# excludes everything beneath it.
EXCLUDE_DIR_PATTERN = "**/*"


@dataclass(frozen=True)
class GlobOptions:
    """
    Options for `PathGlobber.glob()`.

    `dir_pattern` is expanded beneath every matched directory.
    `include_dirs=None` means the option was not given, which keeps directories;
    only an explicit `False` drops them from the result.
    Excluded directories take their subtree with them through `EXCLUDE_DIR_PATTERN`,
    whose wildcards skip hidden names: a dotfile such as `sub/.env` that the
    patterns match explicitly survives an exclusion of `sub`.
    Instances are hashable so they can take part in cache keys.
    """

    dir_pattern: str | None = None
    exclude_patterns: tuple[str, ...] = field(default_factory=tuple)
    include_dirs: bool | None = None

    def __post_init__(self) -> None:
        # Accept any iterable (commonly a list) but store a tuple.
        if not isinstance(self.exclude_patterns, tuple):
            object.__setattr__(self, "exclude_patterns", tuple(self.exclude_patterns))

    @property
    def keeps_dirs(self) -> bool:
        return self.include_dirs is not False

    def for_exclusion(self) -> GlobOptions:
        """Options used to resolve `exclude_patterns` themselves."""
        return GlobOptions(dir_pattern=EXCLUDE_DIR_PATTERN, include_dirs=self.include_dirs)


# (resolved root, patterns, options, ignore rules)
CacheKey = tuple[str, tuple[str, ...], GlobOptions, tuple[tuple[bool | None, str], ...]]


class GlobCache:
    """
    Memoized glob results keyed by root, patterns, options and ignore rules.

    Entries are never invalidated; the filesystem is assumed not to change
    while a cache is in use. Call `clear()` if it does.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, list[str]] = {}

    @staticmethod
    def key(
        root: str | Path,
        patterns: Iterable[str],
        options: GlobOptions,
        ignore: pathspec.PathSpec | None = None,
    ) -> CacheKey:
        """Build a key; one cache can be shared between roots and ignore specs."""
        ignore_rules: tuple[tuple[bool | None, str], ...] = ()
        if ignore is not None:
            ignore_rules = tuple(
                (p.include, p.regex.pattern)
                for p in ignore.patterns
                if isinstance(p, pathspec.RegexPattern) and p.regex is not None
            )
        return (str(Path(root).resolve()), tuple(patterns), options, ignore_rules)

    def get(self, key: CacheKey) -> list[str] | None:
        cached = self._entries.get(key)
        return list(cached) if cached is not None else None

    def store(self, key: CacheKey, result: list[str]) -> None:
        self._entries[key] = list(result)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
