"""
Patching of generated `.xcconfig` build-setting files.

Two edits are supported: prepending a shared `#include` chosen by the target's
product type, and rewriting the flags assigned to `OTHER_LDFLAGS`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog
from strif import atomic_output_file

log = structlog.get_logger()

PRODUCT_TYPE_PREFIX = "com.apple.product-type."

PRODUCT_TYPE_INCLUDES: dict[str, str] = {
    "bundle.unit-test": "Test",
    "application": "macOS/macOS - Application",
    "framework": "macOS/macOS - Framework",
    "library.dynamic": "macOS/macOS - Framework",
    "library.static": "macOS/macOS - Framework",
}

LINKER_FLAGS_SETTING = "OTHER_LDFLAGS"

# `OTHER_LDFLAGS = ...` or a conditional variant like `OTHER_LDFLAGS[sdk=iphoneos*] = ...`.
_LDFLAGS_LINE = re.compile(
    r"^(?P<lead>\s*" + LINKER_FLAGS_SETTING + r"(?:\[[^\]]*\])?\s*=\s*)(?P<value>.*?)(?P<trail>\s*;?\s*)$"
)

# A double-quoted string, or a run of non-space characters that may itself
# contain quoted parts (e.g. `-l"c++"`).
_FLAG_TOKEN = re.compile(r'(?:[^\s"]+|"[^"]*")+')

# Flags that take the following token as their argument.
_FLAGS_WITH_ARGUMENT = frozenset({"-framework", "-weak_framework", "-force_load", "-l"})


def include_name_for(
    product_type: str, mapping: Mapping[str, str] = PRODUCT_TYPE_INCLUDES
) -> str | None:
    """
    Return the include name for an Xcode product type, or `None` when the type
    is not mapped. Both `application` and `com.apple.product-type.application`
    are accepted.
    """
    short = product_type.removeprefix(PRODUCT_TYPE_PREFIX)
    return mapping.get(short)


def include_statement(include_root: str, name: str) -> str:
    root = include_root.rstrip("/")
    return f'#include "{root}/{name}.xcconfig"\n\n'


def prepend_include(text: str, statement: str) -> str:
    """Prepend `statement` unless its `#include` line is already in `text`."""
    include_line = statement.strip()
    if any(line.strip() == include_line for line in text.splitlines()):
        return text
    return statement + text


@dataclass(frozen=True)
class LinkerFlagRule:
    """
    Rewrite for a single linker flag.

    `pattern` must match a whole flag; `-framework "Foo"` is one flag.
    A `replacement` of `None` drops the flag, otherwise it is used as an
    `re.Match.expand` template (so `\\1` and friends work).
    """

    pattern: str
    replacement: str | None = None

    def __post_init__(self) -> None:
        try:
            re.compile(self.pattern)
        except re.error as e:
            raise ValueError(f"Invalid linker flag pattern {self.pattern!r}: {e}") from e

    def apply(self, flag: str) -> str | None:
        m = re.fullmatch(self.pattern, flag)
        if m is None:
            return flag
        if self.replacement is None:
            return None
        return m.expand(self.replacement)


def split_linker_flags(value: str) -> list[str]:
    """Split an `OTHER_LDFLAGS` value into flags, pairing options with their argument."""
    tokens = _FLAG_TOKEN.findall(value)
    flags: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token in _FLAGS_WITH_ARGUMENT and i + 1 < len(tokens):
            flags.append(f"{token} {tokens[i + 1]}")
            i += 2
        else:
            flags.append(token)
            i += 1
    return flags


def rewrite_flags(flags: Sequence[str], rules: Sequence[LinkerFlagRule]) -> list[str]:
    """Apply rules in order to each flag, then drop duplicates keeping the first."""
    result: list[str] = []
    for flag in flags:
        current: str | None = flag
        for rule in rules:
            current = rule.apply(current)
            if current is None:
                break
        if current and current not in result:
            result.append(current)
    return result


def rewrite_linker_flags(text: str, rules: Sequence[LinkerFlagRule]) -> str:
    """Rewrite every `OTHER_LDFLAGS` assignment in xcconfig `text`; other lines are kept."""
    lines = text.splitlines(keepends=True)
    out: list[str] = []
    for line in lines:
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        m = _LDFLAGS_LINE.match(body)
        if m is None:
            out.append(line)
            continue
        flags = rewrite_flags(split_linker_flags(m.group("value")), rules)
        out.append(m.group("lead") + " ".join(flags) + m.group("trail") + ending)
    return "".join(out)


def patch_xcconfig(
    path: str | Path,
    include: str | None = None,
    rules: Sequence[LinkerFlagRule] = (),
) -> bool:
    """
    Apply an include statement and linker flag rules to an xcconfig file.

    The file is only rewritten (atomically) when its content changes.
    Returns `True` if the file was modified.
    """
    path = Path(path)
    original = path.read_text()

    patched = original
    if rules:
        patched = rewrite_linker_flags(patched, rules)
    if include:
        patched = prepend_include(patched, include)

    if patched == original:
        log.debug("xcconfig.unchanged", path=str(path))
        return False

    with atomic_output_file(path) as tmp_path:
        Path(tmp_path).write_text(patched)
    log.info("xcconfig.patched", path=str(path), include=bool(include), rules=len(rules))
    return True
