"""
PathGlobber: main entry point for path globbing.

Resolves glob patterns against a fixed root directory into a deduplicated,
case-insensitively sorted list of root-relative paths, memoized per
`(patterns, options)`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import pathspec
import structlog

from podkit.path_glob.ignore import is_ignored
from podkit.path_glob.patterns import expand
from podkit.path_glob.types import GlobCache, GlobOptions

log = structlog.get_logger()


def sort_key(rel_path: str) -> tuple[str, str]:
    """Case-insensitive ordering, ties broken by the exact path."""
    return (rel_path.lower(), rel_path)


class PathGlobber:
    """
    Globs relative paths under a single root directory.

    Results are cached in a `GlobCache` owned by this globber (or shared, when
    one is passed in). The root is checked on every uncached lookup, so a
    missing root raises `FileNotFoundError` and a file root raises
    `NotADirectoryError`.
    """

    def __init__(
        self,
        root: str | Path,
        cache: GlobCache | None = None,
        ignore: pathspec.PathSpec | None = None,
    ) -> None:
        self.root: Path = Path(root)
        self.cache: GlobCache = cache if cache is not None else GlobCache()
        self._ignore: pathspec.PathSpec | None = ignore

    def glob(self, patterns: Sequence[str], options: GlobOptions | None = None) -> list[str]:
        """
        Resolve `patterns` into a sorted list of paths relative to the root.

        - An empty pattern sequence returns `[]` without touching the filesystem.
        - Each directory match also expands `options.dir_pattern` beneath it.
        - `options.include_dirs=False` drops directories after that expansion.
        - `options.exclude_patterns` are resolved recursively (every excluded
          directory takes its whole subtree with it) and subtracted.
        """
        if not patterns:
            return []
        if isinstance(patterns, str):
            patterns = [patterns]
        options = options or GlobOptions()

        key = GlobCache.key(self.root, patterns, options, self._ignore)
        cached = self.cache.get(key)
        if cached is not None:
            log.debug("glob.cache_hit", root=str(self.root), patterns=list(patterns))
            return cached

        self._check_root()
        matches = self._match(patterns, options)
        result = sorted(matches, key=sort_key)

        if options.exclude_patterns:
            excluded = set(self.glob(options.exclude_patterns, options.for_exclusion()))
            result = [p for p in result if p not in excluded]

        log.debug(
            "glob.resolved",
            root=str(self.root),
            patterns=list(patterns),
            count=len(result),
        )
        self.cache.store(key, result)
        return result

    relative_glob = glob

    def _check_root(self) -> None:
        if not self.root.exists():
            raise FileNotFoundError(f"Root directory not found: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Root is not a directory: {self.root}")

    def _match(self, patterns: Iterable[str], options: GlobOptions) -> set[str]:
        """Expand patterns (plus `dir_pattern` under directories) into relative paths."""
        found: dict[Path, bool] = {}

        for pattern in patterns:
            for path in expand(self.root, pattern):
                if path in found:
                    continue
                is_dir = path.is_dir()
                found[path] = is_dir
                if is_dir and options.dir_pattern:
                    for sub in expand(path, options.dir_pattern):
                        if sub not in found:
                            found[sub] = sub.is_dir()

        result: set[str] = set()
        for path, is_dir in found.items():
            if is_dir and not options.keeps_dirs:
                continue
            rel = path.relative_to(self.root).as_posix()
            if self._ignore is not None and is_ignored(self._ignore, rel, is_dir):
                continue
            result.add(rel)
        return result


def resolve(
    root: str | Path,
    patterns: Sequence[str],
    options: GlobOptions | None = None,
    cache: GlobCache | None = None,
) -> list[str]:
    """Functional form of `PathGlobber(root, cache).glob(patterns, options)`."""
    return PathGlobber(root, cache=cache).glob(patterns, options)
