"""
Case-insensitive glob expansion against a directory tree.

Supported syntax: `*`, `?`, `[...]` (with `!` or `^` negation), `**` as a whole
segment for zero or more directories, and `{a,b}` alternation. Wildcards never
match a leading `.` in a name unless the pattern segment starts with `.`.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path

_RECURSIVE = "**"


def expand_braces(pattern: str) -> list[str]:
    """
    Expand `{a,b}` alternations, innermost-first groups included.

    `"*.{h,m}"` becomes `["*.h", "*.m"]`. Unbalanced braces are left literal.
    """
    depth = 0
    start = -1
    commas: list[int] = []
    for i, c in enumerate(pattern):
        if c == "{":
            if depth == 0:
                start = i
                commas = []
            depth += 1
        elif c == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                if not commas:
                    # `{x}` has no alternatives; keep it literal and move on.
                    rest = expand_braces(pattern[i + 1 :])
                    return [pattern[: i + 1] + r for r in rest]
                head = pattern[:start]
                tail = pattern[i + 1 :]
                bounds = [start, *commas, i]
                results: list[str] = []
                for lo, hi in zip(bounds, bounds[1:]):
                    for expanded in expand_braces(head + pattern[lo + 1 : hi] + tail):
                        if expanded not in results:
                            results.append(expanded)
                return results
        elif c == "," and depth == 1:
            commas.append(i)
    return [pattern]


@lru_cache(maxsize=512)
def compile_segment(segment: str) -> re.Pattern[str]:
    """Compile one path segment of a glob into a case-insensitive regex."""
    parts: list[str] = []
    i = 0
    n = len(segment)
    while i < n:
        c = segment[i]
        if c == "*":
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            j = i + 1
            if j < n and segment[j] in "!^":
                j += 1
            if j < n and segment[j] == "]":
                j += 1
            while j < n and segment[j] != "]":
                j += 1
            if j >= n:
                parts.append(re.escape(c))
            else:
                body = segment[i + 1 : j]
                if body[:1] in ("!", "^"):
                    body = "^" + body[1:]
                parts.append("[" + body.replace("\\", "\\\\") + "]")
                i = j
        elif c == "\\" and i + 1 < n:
            i += 1
            parts.append(re.escape(segment[i]))
        else:
            parts.append(re.escape(c))
        i += 1
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def has_magic(segment: str) -> bool:
    return any(c in segment for c in "*?[")


def split_pattern(pattern: str) -> list[str]:
    """Split a relative glob into segments, dropping empty and `.` segments."""
    if pattern.startswith("/") or os.path.isabs(pattern):
        raise ValueError(f"Glob pattern must be relative to the root: {pattern!r}")
    if os.sep == "\\":
        pattern = pattern.replace("\\", "/")
    return [s for s in pattern.split("/") if s not in ("", ".")]


def _segment_matches(segment: str, name: str) -> bool:
    if name.startswith(".") and not segment.startswith("."):
        return False
    return compile_segment(segment).fullmatch(name) is not None


def _children(directory: Path) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as it:
            return list(it)
    except (FileNotFoundError, NotADirectoryError, PermissionError):
        return []


def _is_dir(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _expand_segments(base: Path, segments: list[str]) -> Iterator[Path]:
    if not segments:
        yield base
        return

    head, rest = segments[0], segments[1:]

    if head == _RECURSIVE:
        # A trailing `**` behaves like `*`.
        if not rest:
            yield from _expand_segments(base, ["*"])
            return
        yield from _expand_segments(base, rest)
        for entry in _children(base):
            # Hidden and symlinked directories are not descended into by `**`.
            if entry.name.startswith(".") or entry.is_symlink() or not _is_dir(entry):
                continue
            yield from _expand_segments(Path(entry.path), segments)
        return

    if not has_magic(head):
        # Literal segments still match case-insensitively, so scan the directory.
        for entry in _children(base):
            if entry.name.lower() == head.lower() and (not rest or _is_dir(entry)):
                yield from _expand_segments(Path(entry.path), rest)
        return

    for entry in _children(base):
        if not _segment_matches(head, entry.name):
            continue
        if rest and not _is_dir(entry):
            continue
        yield from _expand_segments(Path(entry.path), rest)


def expand(root: Path, pattern: str) -> Iterator[Path]:
    """
    Yield paths under `root` matching `pattern`, case-insensitively.

    Order follows directory scanning and may contain duplicates when
    alternations or `**` overlap; callers dedupe and sort.
    """
    for alternative in expand_braces(pattern):
        segments = split_pattern(alternative)
        if not segments:
            continue
        yield from _expand_segments(root, segments)
