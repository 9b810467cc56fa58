#!/usr/bin/env python3
"""
podkit: Globbing and xcconfig patching for CocoaPods-style Xcode projects

Common usage:
  podkit glob Pods/Alamofire 'Source/**/*.{h,swift}'
  podkit glob . '*' --dir-pattern '**/*' --no-dirs --exclude build
  podkit xcconfig Pods/Target*/*.xcconfig --product-type application --include-root ../Shared
  podkit xcconfig App.debug.xcconfig --drop-flag=-ObjC

Settings can also come from `.podkit.toml`, `podkit.toml`, or `[tool.podkit]`
in `pyproject.toml`; explicit flags win.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import sys
from dataclasses import dataclass
from pathlib import Path

import structlog

from podkit.config import find_config_file, load_config, merge_cli_with_config
from podkit.logs import configure_logging
from podkit.path_glob import GlobOptions, PathGlobber, load_ignore_file
from podkit.xcconfig import (
    PRODUCT_TYPE_INCLUDES,
    LinkerFlagRule,
    include_name_for,
    include_statement,
    patch_xcconfig,
)

log = structlog.get_logger()


@dataclass
class Options:
    """Command-line options for the podkit tool."""

    command: str | None
    verbose: int
    version: bool
    # glob
    root: str | None
    patterns: list[str]
    dir_pattern: str | None
    exclude: list[str] | None
    include_dirs: bool | None
    respect_ignore_file: bool | None
    # xcconfig
    files: list[str]
    product_type: str | None
    include_root: str | None
    linker_flags: list[LinkerFlagRule] | None
    product_types: dict[str, str] | None


# Options fields that a config file may fill in when not given on the command line.
_MERGEABLE = (
    "dir_pattern",
    "exclude",
    "include_dirs",
    "respect_ignore_file",
    "include_root",
    "linker_flags",
    "product_types",
)


def _rewrite_rule(value: str) -> LinkerFlagRule:
    pattern, sep, replacement = value.partition("=")
    if not sep or not pattern:
        raise argparse.ArgumentTypeError(f"expected REGEX=REPLACEMENT, got {value!r}")
    try:
        return LinkerFlagRule(pattern=pattern, replacement=replacement)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _drop_rule(value: str) -> LinkerFlagRule:
    try:
        return LinkerFlagRule(pattern=value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_parser() -> argparse.ArgumentParser:
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more detail to stderr (repeat for debug output)",
    )

    parser = argparse.ArgumentParser(
        prog="podkit",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    glob_parser = subparsers.add_parser(
        "glob",
        parents=[common],
        help="Print paths under ROOT matching the patterns, one per line",
    )
    glob_parser.add_argument("root", type=str, help="Root directory to glob in")
    glob_parser.add_argument(
        "patterns", nargs="+", type=str, help="Glob patterns relative to ROOT"
    )
    glob_parser.add_argument(
        "--dir-pattern",
        type=str,
        default=None,
        dest="dir_pattern",
        metavar="PATTERN",
        help="Pattern also expanded beneath every matched directory (e.g. '**/*')",
    )
    glob_parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Exclude matches of PATTERN and everything beneath them. Can be repeated",
    )
    glob_parser.add_argument(
        "--no-dirs",
        action="store_const",
        const=False,
        default=None,
        dest="include_dirs",
        help="Leave directories out of the result",
    )
    glob_parser.add_argument(
        "--no-ignore-file",
        action="store_const",
        const=False,
        default=None,
        dest="respect_ignore_file",
        help="Disable .podkitignore integration",
    )

    xc_parser = subparsers.add_parser(
        "xcconfig",
        parents=[common],
        help="Add an #include and rewrite linker flags in xcconfig files",
    )
    xc_parser.add_argument("files", nargs="+", type=str, help="xcconfig files to patch")
    xc_parser.add_argument(
        "--product-type",
        type=str,
        default=None,
        dest="product_type",
        metavar="TYPE",
        help="Xcode product type of the target (e.g. 'application'); selects the include",
    )
    xc_parser.add_argument(
        "--include-root",
        type=str,
        default=None,
        dest="include_root",
        metavar="DIR",
        help="Directory holding the shared xcconfig files, as written in the #include",
    )
    xc_parser.add_argument(
        "--rewrite-flag",
        action="append",
        type=_rewrite_rule,
        default=None,
        dest="linker_flags",
        metavar="REGEX=REPLACEMENT",
        help="Rewrite OTHER_LDFLAGS entries matching REGEX. Can be repeated",
    )
    xc_parser.add_argument(
        "--drop-flag",
        action="append",
        type=_drop_rule,
        default=None,
        dest="linker_flags",
        metavar="REGEX",
        help="Remove OTHER_LDFLAGS entries matching REGEX. Can be repeated",
    )
    return parser


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns `(options, explicit_flags)` where `explicit_flags` names the
    mergeable options the user actually passed.
    """
    opts = _build_parser().parse_args(args)

    options = Options(
        command=opts.command,
        verbose=getattr(opts, "verbose", 0),
        version=opts.version,
        root=getattr(opts, "root", None),
        patterns=getattr(opts, "patterns", []),
        dir_pattern=getattr(opts, "dir_pattern", None),
        exclude=getattr(opts, "exclude", None),
        include_dirs=getattr(opts, "include_dirs", None),
        respect_ignore_file=getattr(opts, "respect_ignore_file", None),
        files=getattr(opts, "files", []),
        product_type=getattr(opts, "product_type", None),
        include_root=getattr(opts, "include_root", None),
        linker_flags=getattr(opts, "linker_flags", None),
        product_types=None,
    )
    # Every mergeable flag defaults to None, so anything else was given explicitly.
    explicit_flags = {name for name in _MERGEABLE if getattr(options, name) is not None}
    return options, explicit_flags


def _run_glob(options: Options) -> int:
    assert options.root is not None
    root = Path(options.root)

    ignore = None
    if options.respect_ignore_file is not False and root.is_dir():
        ignore = load_ignore_file(root)

    globber = PathGlobber(root, ignore=ignore)
    glob_options = GlobOptions(
        dir_pattern=options.dir_pattern,
        exclude_patterns=tuple(options.exclude or ()),
        include_dirs=options.include_dirs,
    )
    for rel_path in globber.glob(options.patterns, glob_options):
        print(rel_path)
    return 0


def _run_xcconfig(options: Options) -> int:
    include = None
    if options.product_type:
        mapping = options.product_types or PRODUCT_TYPE_INCLUDES
        name = include_name_for(options.product_type, mapping)
        if name is None:
            log.warning("xcconfig.unmapped_product_type", product_type=options.product_type)
        else:
            if not options.include_root:
                raise ValueError("--product-type needs --include-root (or include-root in config)")
            include = include_statement(options.include_root, name)

    rules = options.linker_flags or []
    if include is None and not rules:
        log.info("xcconfig.nothing_to_do", files=len(options.files))

    for file in options.files:
        if patch_xcconfig(file, include=include, rules=rules):
            print(file)
    return 0


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the podkit CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("podkit")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    if options.command is None:
        print(
            "Error: No command given. Use `podkit glob` or `podkit xcconfig` (--help for more).",
            file=sys.stderr,
        )
        return 1

    configure_logging(options.verbose)

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            log.debug("config.loaded", path=str(config_path))
            merge_cli_with_config(options, load_config(config_path), explicit_flags)

        if options.command == "glob":
            return _run_glob(options)
        return _run_xcconfig(options)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Filesystem and other unexpected errors.
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
