"""
TOML-based config file loading for podkit.

Searches for `.podkit.toml`, `podkit.toml`, or `pyproject.toml [tool.podkit]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

from podkit.xcconfig import LinkerFlagRule

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class PodkitConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    so the merge logic can tell "not configured" from "set to the default value".
    """

    # Globbing
    dir_pattern: str | None = None
    exclude: list[str] | None = None
    include_dirs: bool | None = None
    respect_ignore_file: bool | None = None
    # xcconfig patching
    include_root: str | None = None
    product_types: dict[str, str] | None = None
    linker_flags: list[LinkerFlagRule] | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".podkit.toml", "podkit.toml", "pyproject.toml"]

# Tables whose keys are data, not setting names, so they are not flattened.
_TABLE_FIELDS = {"product_types"}

_VALID_FIELDS = {f.name for f in fields(PodkitConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.podkit.toml` >
    `podkit.toml` > `pyproject.toml` (only if it has `[tool.podkit]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_podkit_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_podkit_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "podkit" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> PodkitConfig:
    """
    Load a `PodkitConfig` from a TOML file. Supports both standalone
    `podkit.toml` / `.podkit.toml` and `pyproject.toml` (extracts
    `[tool.podkit]`). TOML kebab-case keys are mapped to Python snake_case.
    """
    data = tomllib.loads(config_path.read_text())

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("podkit", {})

    return _parse_config_data(data)


def _snake(key: str) -> str:
    return key.replace("-", "_")


def _parse_config_data(data: dict[str, Any]) -> PodkitConfig:
    """Parse a flat or sectioned TOML dict into PodkitConfig."""
    # Flatten sections: [glob] and [xcconfig] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict) and _snake(key) not in _TABLE_FIELDS:
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[_snake(sub_key)] = sub_value
        else:
            flat[_snake(key)] = value

    mapped = {key: value for key, value in flat.items() if key in _VALID_FIELDS}

    for key, value in mapped.items():
        _check_type(key, value)

    if "linker_flags" in mapped:
        mapped["linker_flags"] = _parse_linker_flags(mapped["linker_flags"])

    return PodkitConfig(**mapped)


_SCALAR_TYPES: dict[str, type] = {
    "dir_pattern": str,
    "include_dirs": bool,
    "respect_ignore_file": bool,
    "include_root": str,
}


def _check_type(key: str, value: Any) -> None:
    """Reject values of the wrong TOML type; `linker_flags` is checked separately."""
    setting = key.replace("_", "-")
    if key in _SCALAR_TYPES and not isinstance(value, _SCALAR_TYPES[key]):
        raise ValueError(f"{setting} must be a {_SCALAR_TYPES[key].__name__}, got {value!r}")
    if key == "exclude":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in cast(list[Any], value)):
            raise ValueError(f"exclude must be an array of strings, got {value!r}")
    if key == "product_types":
        if not isinstance(value, dict) or not all(
            isinstance(v, str) for v in cast(dict[str, Any], value).values()
        ):
            raise ValueError(f"product-types must be a table of strings, got {value!r}")


def _parse_linker_flags(entries: Any) -> list[LinkerFlagRule]:
    if not isinstance(entries, list):
        raise ValueError("linker-flags must be an array of tables")
    rules: list[LinkerFlagRule] = []
    for entry in cast(list[Any], entries):
        if not isinstance(entry, dict) or "pattern" not in entry:
            raise ValueError(f"linker-flags entry needs a `pattern`: {entry!r}")
        entry = cast(dict[str, Any], entry)
        rules.append(LinkerFlagRule(pattern=entry["pattern"], replacement=entry.get("replacement")))
    return rules


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: PodkitConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(PodkitConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue  # Not set in config

        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
