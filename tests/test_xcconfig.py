"""Tests for xcconfig include injection and linker flag rewriting."""

from __future__ import annotations

from pathlib import Path

import pytest

from podkit.xcconfig import (
    LinkerFlagRule,
    include_name_for,
    include_statement,
    patch_xcconfig,
    prepend_include,
    rewrite_flags,
    rewrite_linker_flags,
    split_linker_flags,
)

_PODS_XCCONFIG = """\
FRAMEWORK_SEARCH_PATHS = $(inherited) "${PODS_ROOT}/Alamofire"
OTHER_LDFLAGS = $(inherited) -ObjC -l"c++" -framework "Alamofire" -framework "Kingfisher"
PODS_ROOT = ${SRCROOT}/Pods
"""

_WEAK = LinkerFlagRule(pattern=r'-framework "(\w+)"', replacement=r'-weak_framework "\1"')
_DROP_OBJC = LinkerFlagRule(pattern="-ObjC")


def test_include_name_for_short_and_full_types():
    assert include_name_for("application") == "macOS/macOS - Application"
    assert include_name_for("com.apple.product-type.application") == "macOS/macOS - Application"
    assert include_name_for("com.apple.product-type.bundle.unit-test") == "Test"
    assert include_name_for("com.apple.product-type.library.static") == "macOS/macOS - Framework"


def test_include_name_for_unmapped_type():
    assert include_name_for("com.apple.product-type.tool") is None


def test_include_name_for_custom_mapping():
    assert include_name_for("tool", {"tool": "CLI"}) == "CLI"
    assert include_name_for("application", {"tool": "CLI"}) is None


def test_include_statement():
    assert include_statement("../Shared/Target/", "Test") == '#include "../Shared/Target/Test.xcconfig"\n\n'


def test_prepend_include_is_idempotent():
    statement = include_statement("../Shared", "Test")
    once = prepend_include("A = 1\n", statement)
    assert once == '#include "../Shared/Test.xcconfig"\n\nA = 1\n'
    assert prepend_include(once, statement) == once


def test_split_linker_flags():
    flags = split_linker_flags('$(inherited) -ObjC -l"c++" -framework "Alamofire" -weak_framework UIKit')
    assert flags == [
        "$(inherited)",
        "-ObjC",
        '-l"c++"',
        '-framework "Alamofire"',
        "-weak_framework UIKit",
    ]


def test_split_linker_flags_quoted_with_spaces():
    assert split_linker_flags('-framework "My Lib" -lz') == ['-framework "My Lib"', "-lz"]


def test_rule_drops_and_rewrites():
    assert _DROP_OBJC.apply("-ObjC") is None
    assert _DROP_OBJC.apply("-ObjC++") == "-ObjC++"
    assert _WEAK.apply('-framework "Alamofire"') == '-weak_framework "Alamofire"'


def test_rewrite_flags_removes_duplicates():
    assert rewrite_flags(["-ObjC", "-lz", "-ObjC"], []) == ["-ObjC", "-lz"]
    # A rewrite can produce a flag that already exists.
    rule = LinkerFlagRule(pattern="-lsqlite3.0", replacement="-lsqlite3")
    assert rewrite_flags(["-lsqlite3", "-lsqlite3.0"], [rule]) == ["-lsqlite3"]


def test_rewrite_linker_flags_only_touches_ldflags():
    result = rewrite_linker_flags(_PODS_XCCONFIG, [_DROP_OBJC, _WEAK])
    lines = result.splitlines()
    assert lines[0] == 'FRAMEWORK_SEARCH_PATHS = $(inherited) "${PODS_ROOT}/Alamofire"'
    assert lines[1] == (
        'OTHER_LDFLAGS = $(inherited) -l"c++" -weak_framework "Alamofire" -weak_framework "Kingfisher"'
    )
    assert lines[2] == "PODS_ROOT = ${SRCROOT}/Pods"
    assert result.endswith("\n")


def test_rewrite_linker_flags_conditional_setting():
    text = "OTHER_LDFLAGS[sdk=iphoneos*] = $(inherited) -ObjC;\n"
    assert rewrite_linker_flags(text, [_DROP_OBJC]) == "OTHER_LDFLAGS[sdk=iphoneos*] = $(inherited);\n"


def test_patch_xcconfig_writes_include_and_flags(tmp_path: Path):
    config = tmp_path / "Pods-App.debug.xcconfig"
    config.write_text(_PODS_XCCONFIG)
    statement = include_statement("../Shared", "macOS/macOS - Application")

    assert patch_xcconfig(config, include=statement, rules=[_DROP_OBJC]) is True
    content = config.read_text()
    assert content.startswith('#include "../Shared/macOS/macOS - Application.xcconfig"\n\n')
    assert "-ObjC" not in content
    assert "PODS_ROOT = ${SRCROOT}/Pods" in content


def test_patch_xcconfig_second_run_is_noop(tmp_path: Path):
    config = tmp_path / "Pods-App.release.xcconfig"
    config.write_text(_PODS_XCCONFIG)
    statement = include_statement("../Shared", "Test")
    assert patch_xcconfig(config, include=statement, rules=[_WEAK]) is True
    patched = config.read_text()
    assert patch_xcconfig(config, include=statement, rules=[_WEAK]) is False
    assert config.read_text() == patched


def test_patch_xcconfig_nothing_requested(tmp_path: Path):
    config = tmp_path / "a.xcconfig"
    config.write_text(_PODS_XCCONFIG)
    assert patch_xcconfig(config) is False
    assert config.read_text() == _PODS_XCCONFIG


def test_patch_xcconfig_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        patch_xcconfig(tmp_path / "missing.xcconfig", include="#include \"x.xcconfig\"\n\n")


def test_rule_rejects_invalid_regex():
    with pytest.raises(ValueError, match="Invalid linker flag pattern"):
        LinkerFlagRule(pattern="-framework (")
