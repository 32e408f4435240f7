"""Tests for source assembly: headers, scope rendering, ordering."""

from __future__ import annotations

from typeprobe.assembler import render_probe
from typeprobe.scope import Probe
from typeprobe.session import Session
from typeprobe.session_types import SessionConfig

DEFAULT_IMPORTS = (
    "from typing import *; from dataclasses import dataclass; "
    "from typeprobe.runtime import SourceNopError"
)
UNIT_IMPORTS = DEFAULT_IMPORTS + "; from typeprobe.runtime import TypeSlot"


class TestSnippetRendering:
    def test_root_snippet(self):
        session = Session()
        session.add("X", "class X:\n    pass")
        assert session.assemble()["gen.X"] == (
            f"{DEFAULT_IMPORTS}  # gen.X\nclass X:\n    pass"
        )

    def test_sub_package_snippet_star_imports_root(self):
        session = Session()
        session.add("relative.X", "class X:\n    pass")
        source = session.assemble()["gen.relative.X"]
        assert source.split("\n")[0] == f"{DEFAULT_IMPORTS}; from gen import *  # gen.relative.X"

    def test_snippet_is_trimmed_on_add(self):
        session = Session()
        session.add(
            "X",
            """
            class X:
                pass
            """,
        )
        assert session.assemble()["gen.X"].split("\n")[1:] == ["class X:", "    pass"]

    def test_trim_can_be_disabled_per_snippet(self):
        session = Session()
        session.add("X", "\nclass X:\n    pass\n", trim_indent=False)
        assert session.assemble()["gen.X"].split("\n")[1:] == ["", "class X:", "    pass", ""]

    def test_macros_are_expanded(self):
        session = Session()
        session.add("A", "@meta\nclass A:\n    def f(self):\n        NOP")
        body = session.assemble()["gen.A"].split("\n")[1:]
        assert body == [
            "@dataclass(frozen=True)",
            "class A:",
            "    def f(self):",
            "        raise SourceNopError()",
        ]

    def test_global_imports_are_read_at_assembly_time(self):
        session = Session()
        session.add("X", "class X:\n    pass")
        session.global_imports.append("import fractions")
        header = session.assemble()["gen.X"].split("\n")[0]
        assert header == f"{DEFAULT_IMPORTS}; import fractions  # gen.X"

    def test_custom_root_package(self):
        session = Session(SessionConfig(root_package="fixtures", global_imports=()))
        session.add("inner.X", "class X:\n    pass")
        assert session.assemble() == {
            "fixtures.inner.X": "from fixtures import *  # fixtures.inner.X\nclass X:\n    pass"
        }


class TestUnitRendering:
    def test_nested_scopes(self):
        session = Session()
        session.add("X", "class X:\n    pass")
        types = session.types()
        types.add("tuple[X, ...]")
        with types.block("T") as block:
            block.add("T")
            with block.block("U") as inner:
                inner.add("pair", "dict[T, U]")

        assert session.assemble()["gen._Types_0"] == "\n".join(
            [
                f"{UNIT_IMPORTS}  # gen._Types_0",
                "class _Types_0:",
                "    class block_0:",
                "        type_0: TypeSlot[tuple[X, ...]]  # tuple[X, ...]",
                "        class block_1[T]:",
                "            type_0: TypeSlot[T]  # T",
                "            class block_2[U]:",
                "                type_0: TypeSlot[dict[T, U]]  # pair",
            ]
        )

    def test_empty_type_set(self):
        session = Session()
        session.types()
        assert session.assemble()["gen._Types_0"].split("\n")[1:] == [
            "class _Types_0:",
            "    class block_0:",
            "        pass",
        ]

    def test_probes_precede_child_scopes(self):
        session = Session()
        types = session.types()
        with types.block("T") as block:
            block.add("T")
        types.add("int")
        lines = session.assemble()["gen._Types_0"].split("\n")
        assert lines[3] == "        type_0: TypeSlot[int]  # int"
        assert lines[4] == "        class block_1[T]:"

    def test_bounded_and_variadic_parameters(self):
        session = Session()
        with session.types().block("T: int", "*Ts", "**P") as block:
            block.add("T")
        lines = session.assemble()["gen._Types_0"].split("\n")
        assert lines[3] == "        class block_1[T: int, *Ts, **P]:"

    def test_unit_imports_follow_global_imports(self):
        session = Session()
        types = session.types()
        types.add_import("import fractions")
        header = session.assemble()["gen._Types_0"].split("\n")[0]
        assert header == f"{UNIT_IMPORTS}; import fractions  # gen._Types_0"

    def test_sub_package_unit(self):
        session = Session()
        session.types(package="sub")
        assert list(session.assemble()) == ["gen.sub._Types_0"]

    def test_multi_line_probe_name(self):
        probe = Probe(scope=0, index=0, name="a\nb", expression="int")
        field_text = "type_0: TypeSlot[int]"
        assert render_probe(probe) == f"{field_text}  # a\n" + " " * len(field_text) + "  # b"


class TestAssemblyOrder:
    def test_empty_session(self):
        assert Session().assemble() == {}

    def test_snippets_then_units(self):
        session = Session()
        first = session.types()
        session.add("B", "class B:\n    pass")
        session.add("A", "class A:\n    pass")
        session.types()
        first.add("int")
        assert list(session.assemble()) == ["gen.B", "gen.A", "gen._Types_0", "gen._Types_1"]

    def test_every_source_has_one_header_line(self):
        session = Session()
        session.add("X", "class X:\n    pass")
        session.add("relative.Y", "class Y:\n    pass")
        session.types().add("int")
        for name, text in session.assemble().items():
            assert text.split("\n")[0].endswith(f"  # {name}")
