"""Tests for PythonCompiler: diagnostics, options, deadlines, package layout."""

from __future__ import annotations

import sys
import time
from typing import List

import pytest

from typeprobe.compiler import (
    CompiledModule,
    PythonCompiler,
    parse_options,
    source_filename,
    split_header,
)
from typeprobe.errors import CompileError, ReflectionLookupError


def _compile(sources, options=(), deadline=None):
    return PythonCompiler().compile(sources, options, deadline)


class TestSourceFilename:
    def test_dotted_name_becomes_path(self):
        assert source_filename("gen.relative.X") == "/gen/relative/X.py"


class TestParseOptions:
    def test_defaults(self):
        settings = parse_options([])
        assert settings.optimize == -1
        assert settings.warnings_as_errors is False

    def test_optimize_levels(self):
        assert parse_options(["-O"]).optimize == 1
        assert parse_options(["-O", "-OO"]).optimize == 2
        assert parse_options(["-OO", "-O"]).optimize == 2

    def test_warnings_as_errors(self):
        assert parse_options(["-Werror"]).warnings_as_errors is True

    def test_unknown_option_raises(self):
        with pytest.raises(ValueError, match="Unsupported compiler option"):
            parse_options(["-Xdev"])


class TestSuccessfulCompile:
    def test_empty_sources(self):
        module = _compile({})
        assert isinstance(module, CompiledModule)
        assert module.packages == {}
        with pytest.raises(ReflectionLookupError):
            module.lookup("gen.X")

    def test_class_is_found_by_qualified_name(self):
        module = _compile({"gen.X": "# gen.X\nclass X:\n    pass"})
        cls = module.lookup("gen.X")
        assert isinstance(cls, type)
        assert cls.__name__ == "X"
        assert cls.__module__ == "gen"
        assert module.names == ("gen.X",)

    def test_missing_member_raises(self):
        module = _compile({"gen.X": "# gen.X\nclass X:\n    pass"})
        with pytest.raises(ReflectionLookupError, match="Missing"):
            module.lookup("gen.X.Missing")

    def test_sub_package_is_attribute_of_parent(self):
        module = _compile({"gen.relative.X": "from gen import *  # gen.relative.X\nclass X:\n    pass"})
        assert module.lookup("gen").relative is module.packages["gen.relative"]
        assert module.lookup("gen.relative.X").__module__ == "gen.relative"

    def test_later_source_imports_earlier_package(self):
        module = _compile(
            {
                "gen.relative.X": "from gen import *  # gen.relative.X\nclass X:\n    other: 'Y'",
                "gen.Y": "# gen.Y\nfrom gen.relative import X\nclass Y:\n    other: X",
            }
        )
        assert module.namespace("gen")["X"] is module.lookup("gen.relative.X")

    def test_sys_modules_is_restored(self):
        before = sys.modules.get("gen")
        _compile({"gen.X": "# gen.X\nclass X:\n    pass"})
        assert sys.modules.get("gen") is before


class TestSyntaxErrors:
    def test_syntax_error_is_located_in_its_source(self):
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": "# gen.X\nx = = 1"})
        (diagnostic,) = excinfo.value.diagnostics
        assert diagnostic.qualified_name == "gen.X"
        assert diagnostic.filename == "/gen/X.py"
        assert diagnostic.line == 2
        assert diagnostic.source_line == "x = = 1"

    def test_output_format(self):
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": "# gen.X\nx = = 1"})
        text = str(excinfo.value)
        assert text.startswith("Compilation error:\n/gen/X.py:2:")
        assert text.endswith("\n1 error\n")

    def test_every_source_is_checked_before_reporting(self):
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": "# gen.X\nx = = 1", "gen.Y": "# gen.Y\ny = = 2"})
        assert [d.qualified_name for d in excinfo.value.diagnostics] == ["gen.X", "gen.Y"]
        assert str(excinfo.value).endswith("\n2 errors\n")


class TestExecutionErrors:
    def test_name_error_is_located(self):
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": "# gen.X\nclass X(Missing):\n    pass"})
        (diagnostic,) = excinfo.value.diagnostics
        assert diagnostic.line == 2
        assert diagnostic.message.startswith("NameError")
        assert isinstance(excinfo.value.__cause__, NameError)

    def test_out_of_scope_type_parameter_is_rejected(self):
        source = "\n".join(
            [
                "from typeprobe.runtime import TypeSlot  # gen._Types_0",
                "class _Types_0:",
                "    class block_0:",
                "        class block_1[T]:",
                "            type_0: TypeSlot[T]  # T",
                "        type_0: TypeSlot[T]  # T outside",
            ]
        )
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen._Types_0": source})
        (diagnostic,) = excinfo.value.diagnostics
        assert diagnostic.line == 6
        assert "NameError" in diagnostic.message

    def test_packages_are_removed_after_failure(self):
        before = sys.modules.get("gen")
        with pytest.raises(CompileError):
            _compile({"gen.X": "# gen.X\nraise RuntimeError('boom')"})
        assert sys.modules.get("gen") is before


class TestOptions:
    def test_assertions_run_by_default(self):
        with pytest.raises(CompileError, match="AssertionError"):
            _compile({"gen.X": "# gen.X\nassert False"})

    def test_optimize_strips_assertions(self):
        module = _compile({"gen.X": "# gen.X\nassert False\nclass X:\n    pass"}, ["-O"])
        assert module.lookup("gen.X").__name__ == "X"

    def test_docstrings_stripped_at_level_two(self):
        module = _compile({"gen.X": '# gen.X\nclass X:\n    """Doc."""'}, ["-OO"])
        assert module.lookup("gen.X").__doc__ is None

    def test_warnings_as_errors(self):
        source = '# gen.X\nx = "\\d"'
        _compile({"gen.X": source})
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": source}, ["-Werror"])
        assert excinfo.value.diagnostics[0].line == 2

    def test_unknown_option_is_rejected(self):
        with pytest.raises(ValueError):
            _compile({}, ["--bogus"])


class TestDeadline:
    def test_expired_deadline_fails(self):
        with pytest.raises(CompileError, match="deadline"):
            _compile({"gen.X": "# gen.X\nclass X:\n    pass"}, deadline=time.monotonic() - 1)

    def test_future_deadline_compiles(self):
        module = _compile({"gen.X": "# gen.X\nclass X:\n    pass"}, deadline=time.monotonic() + 60)
        assert module.lookup("gen.X").__name__ == "X"


class TestImportHeader:
    def test_split_keeps_body_line_numbers(self):
        header, body = split_header("import os  # gen.X\nclass X:\n    pass")
        assert header == "import os  # gen.X"
        assert body.split("\n")[1] == "class X:"

    def test_header_does_not_rebind_declared_names(self):
        module = _compile(
            {
                "gen.Generic": "from typing import *  # gen.Generic\nclass Generic[T]:\n    pass",
                "gen.Y": "from typing import *  # gen.Y\nclass Y:\n    pass",
            }
        )
        assert module.lookup("gen.Generic").__module__ == "gen"
        assert module.namespace("gen")["Generic"] is module.lookup("gen.Generic")

    def test_imported_names_are_still_bound(self):
        module = _compile({"gen.X": "from typing import *  # gen.X\nclass X:\n    items: List[int]"})
        assert module.namespace("gen")["List"] is List

    def test_future_import_in_body(self):
        module = _compile(
            {
                "gen.X": "from typing import *  # gen.X\n"
                "from __future__ import annotations\n"
                "class X:\n"
                "    other: Missing"
            }
        )
        assert module.lookup("gen.X").__annotations__ == {"other": "Missing"}

    def test_failing_header_is_located_on_line_one(self):
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": "import typeprobe_missing_module  # gen.X\nclass X:\n    pass"})
        (diagnostic,) = excinfo.value.diagnostics
        assert diagnostic.line == 1
        assert diagnostic.message.startswith("ModuleNotFoundError")


class TestAnnotationsAreEvaluated:
    def test_every_class_a_source_defines_is_checked(self):
        source = "# gen.X\nclass X:\n    pass\nclass Helper:\n    field: Missing"
        with pytest.raises(CompileError) as excinfo:
            _compile({"gen.X": source})
        (diagnostic,) = excinfo.value.diagnostics
        assert diagnostic.line == 5
        assert "NameError" in diagnostic.message
