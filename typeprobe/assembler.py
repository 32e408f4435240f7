"""Module Assembler: renders snippets and scope trees to Python sources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from .macros import assemble_package_header, expand_macros
from .scope import Probe, ProbeUnit, ScopeTree
from . import constants

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


def render_snippet(
    qualified_name: str,
    code: str,
    global_imports: Sequence[str],
    root_package: str = constants.ROOT_PACKAGE,
) -> str:
    header = assemble_package_header(qualified_name, global_imports, root_package)
    return header + "\n" + expand_macros(code)


def render_probe(probe: Probe) -> str:
    """``type_0: TypeSlot[list[X]]  # list[X]``, with multi-line names continued."""
    field_text = f"{probe.field_name}: {constants.TYPE_SLOT_NAME}[{probe.expression}]"
    continuation = "\n" + " " * len(field_text) + "  # "
    return f"{field_text}  # {probe.name.replace(chr(10), continuation)}"


def _indent(text: str) -> str:
    return "\n".join(
        constants.INDENT + line if line else line for line in text.split("\n")
    )


def render_scope(tree: ScopeTree, scope_index: int) -> str:
    """Render one scope as a class, probes first, then child scopes."""
    scope = tree.scopes[scope_index]
    header = f"class {scope.scope_id}"
    if scope.parameters:
        header += "[" + ", ".join(scope.parameters) + "]"
    header += ":"

    body: list[str] = [render_probe(probe) for probe in scope.probes]
    body.extend(render_scope(tree, child) for child in scope.children)
    if not body:
        body.append("pass")
    return header + "\n" + _indent("\n".join(body))


def render_unit(
    tree: ScopeTree,
    unit: ProbeUnit,
    global_imports: Sequence[str],
    root_package: str = constants.ROOT_PACKAGE,
) -> str:
    imports = [*global_imports, constants.TYPE_SLOT_IMPORT, *unit.imports]
    header = assemble_package_header(unit.qualified_name, imports, root_package)
    class_text = f"class {unit.class_name}:\n" + _indent(render_scope(tree, unit.root))
    return header + "\n" + expand_macros(class_text)


def assemble(session: Session) -> dict[str, str]:
    """Render every snippet and probe unit of *session*.

    Snippets come first in registration order, then units in creation order,
    so a unit can use any snippet's names when it is executed.
    """
    sources: dict[str, str] = {}
    for qualified_name, code in session.snippets.items():
        sources[qualified_name] = render_snippet(
            qualified_name, code, session.global_imports, session.root_package
        )
    tree = session.scope_tree
    for unit in tree.units:
        sources[unit.qualified_name] = render_unit(
            tree, unit, session.global_imports, session.root_package
        )
    logger.debug(
        "Assembled %d sources (%d snippets, %d units)",
        len(sources),
        len(session.snippets),
        len(tree.units),
    )
    return sources
