"""Tests for source macros and header assembly."""

from __future__ import annotations

from typeprobe.macros import (
    assemble_package_header,
    expand_macros,
    package_of,
    simple_name,
    trim_indent,
)


class TestExpandMacros:
    def test_meta_becomes_frozen_dataclass(self):
        source = "@meta\nclass A:\n    value: int = 0"
        assert expand_macros(source) == (
            "@dataclass(frozen=True)\nclass A:\n    value: int = 0"
        )

    def test_nop_becomes_raise(self):
        source = "def method(self):\n    NOP"
        assert expand_macros(source) == "def method(self):\n    raise SourceNopError()"

    def test_partial_words_are_untouched(self):
        source = "NOP_COUNT = 1\n@metadata_tag\nclass A: pass"
        assert expand_macros(source) == source

    def test_text_without_macros_is_unchanged(self):
        assert expand_macros("class X:\n    pass") == "class X:\n    pass"


class TestTrimIndent:
    def test_removes_blank_edges_and_common_indent(self):
        source = """
            class X:
                pass
            """
        assert trim_indent(source) == "class X:\n    pass"

    def test_keeps_relative_indentation(self):
        assert trim_indent("  a\n    b") == "a\n  b"

    def test_already_trimmed(self):
        assert trim_indent("x = 1") == "x = 1"


class TestPackageHeader:
    def test_root_package_header_is_imports_plus_comment(self):
        header = assemble_package_header("gen.X", ["from typing import *"])
        assert header == "from typing import *  # gen.X"

    def test_sub_package_star_imports_root(self):
        header = assemble_package_header("gen.relative.X", ["import os"])
        assert header == "import os; from gen import *  # gen.relative.X"

    def test_no_imports_is_just_comment(self):
        assert assemble_package_header("gen.X", []) == "# gen.X"

    def test_duplicate_imports_are_dropped(self):
        header = assemble_package_header("gen.X", ["import os", "import os"])
        assert header == "import os  # gen.X"

    def test_custom_root_package(self):
        header = assemble_package_header("fixtures.inner.X", [], root_package="fixtures")
        assert header == "from fixtures import *  # fixtures.inner.X"

    def test_header_is_single_line(self):
        header = assemble_package_header("gen.a.X", ["import os", "import sys"])
        assert "\n" not in header


class TestNameHelpers:
    def test_package_of(self):
        assert package_of("gen.relative.X") == "gen.relative"

    def test_simple_name(self):
        assert simple_name("gen.relative.X") == "X"
