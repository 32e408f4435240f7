"""Text macros and header assembly for generated sources."""

from __future__ import annotations

import re
import textwrap
from typing import Iterable

from . import constants


class MacroPatterns:
    """Compiled regex patterns for source macros."""

    META_RE = re.compile(constants.META_MACRO_PATTERN)
    NOP_RE = re.compile(constants.NOP_MACRO_PATTERN)


def expand_macros(text: str) -> str:
    """Expand ``@meta`` and ``NOP`` in *text*.

    ``@meta`` marks a frozen dataclass, which gives metadata classes value
    equality inside ``Annotated[...]``. ``NOP`` stands for a body that raises
    ``SourceNopError``.
    """
    text = MacroPatterns.META_RE.sub(constants.META_MACRO_EXPANSION, text)
    return MacroPatterns.NOP_RE.sub(constants.NOP_MACRO_EXPANSION, text)


def trim_indent(text: str) -> str:
    """Drop a blank first and last line, then remove the common indentation."""
    lines = text.split("\n")
    if lines and not lines[0].strip():
        lines = lines[1:]
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return textwrap.dedent("\n".join(lines))


def package_of(qualified_name: str) -> str:
    """``gen.relative.X`` → ``gen.relative``."""
    return qualified_name.rpartition(".")[0]


def simple_name(qualified_name: str) -> str:
    """``gen.relative.X`` → ``X``."""
    return qualified_name.rpartition(".")[2]


def assemble_package_header(
    qualified_name: str,
    imports: Iterable[str],
    root_package: str = constants.ROOT_PACKAGE,
) -> str:
    """Build the single header line that precedes every generated source.

    Declarations outside the root package also star-import the root package,
    so they can refer to its public names without qualification. That import
    comes last, so the root package's own declarations win over names the
    other imports bind.
    """
    statements: list[str] = []
    for statement in imports:
        if statement not in statements:
            statements.append(statement)
    root_import = f"from {root_package} import *"
    if package_of(qualified_name) != root_package and root_import not in statements:
        statements.append(root_import)
    comment = f"# {qualified_name}"
    if not statements:
        return comment
    return "; ".join(statements) + "  " + comment
