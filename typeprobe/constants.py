"""Named constants for generated source layout and compiler options."""

from __future__ import annotations

ROOT_PACKAGE = "gen"

UNIT_CLASS_TEMPLATE = "_Types_{index}"
SCOPE_ID_TEMPLATE = "block_{index}"
PROBE_FIELD_TEMPLATE = "type_{index}"

TYPE_SLOT_NAME = "TypeSlot"
TYPE_SLOT_IMPORT = "from typeprobe.runtime import TypeSlot"

SOURCE_FILENAME_TEMPLATE = "/{path}.py"
SOURCE_LANGUAGE = "python"
INDENT = "    "

DEFAULT_GLOBAL_IMPORTS: tuple[str, ...] = (
    "from typing import *",
    "from dataclasses import dataclass",
    "from typeprobe.runtime import SourceNopError",
)

META_MACRO_PATTERN = r"@meta\b"
META_MACRO_EXPANSION = "@dataclass(frozen=True)"
NOP_MACRO_PATTERN = r"\bNOP\b"
NOP_MACRO_EXPANSION = "raise SourceNopError()"

OPTION_OPTIMIZE = "-O"
OPTION_OPTIMIZE_DOCSTRINGS = "-OO"
OPTION_WARNINGS_AS_ERRORS = "-Werror"

SUPPORTED_COMPILER_OPTIONS: tuple[str, ...] = (
    OPTION_OPTIMIZE,
    OPTION_OPTIMIZE_DOCSTRINGS,
    OPTION_WARNINGS_AS_ERRORS,
)
