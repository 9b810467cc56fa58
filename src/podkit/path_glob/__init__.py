"""
Case-insensitive, memoized globbing of paths relative to a root directory.

Usage::

    from podkit.path_glob import GlobOptions, PathGlobber

    globber = PathGlobber("Pods/Alamofire")
    headers = globber.glob(
        ["Source/**/*.h"],
        GlobOptions(exclude_patterns=("Source/Private",), include_dirs=False),
    )
"""

from podkit.path_glob.globber import PathGlobber, resolve
from podkit.path_glob.ignore import load_ignore_file
from podkit.path_glob.types import EXCLUDE_DIR_PATTERN, GlobCache, GlobOptions

__all__ = [
    "EXCLUDE_DIR_PATTERN",
    "GlobCache",
    "GlobOptions",
    "PathGlobber",
    "load_ignore_file",
    "resolve",
]
