"""`.podkitignore` handling using pathspec."""

from __future__ import annotations

from pathlib import Path

import pathspec

IGNORE_FILE_NAME = ".podkitignore"


def _read_ignore_file(path: Path) -> pathspec.PathSpec | None:
    lines = path.read_text().splitlines()
    lines = [line for line in lines if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def load_ignore_file(start_dir: Path) -> pathspec.PathSpec | None:
    """
    Walk up from `start_dir` looking for `.podkitignore`.
    Returns the compiled `PathSpec` from the first one found, or `None`.
    """
    current = start_dir.resolve()
    while True:
        candidate = current / IGNORE_FILE_NAME
        if candidate.is_file():
            return _read_ignore_file(candidate)
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def is_ignored(spec: pathspec.PathSpec, rel_path: str, is_dir: bool) -> bool:
    """Match a root-relative POSIX path, using a trailing `/` for directories."""
    return spec.match_file(rel_path + "/" if is_dir else rel_path)
