"""Composable helpers for inspecting what a session generates.

These work on the assembled sources, so they are available before and after
compilation and never touch the compiler.
"""

from __future__ import annotations

import logging
from typing import Iterator

from tree_sitter import Node

from .macros import simple_name
from .parser import parse_source
from .session import Session

logger = logging.getLogger(__name__)


def dump_sources(session: Session) -> str:
    """Render every assembled source under a ``# ── <name>`` banner.

    Args:
        session: The session whose sources to assemble.

    Returns:
        The concatenated sources, in compile order.
    """
    sources = session.assemble()
    return "\n\n".join(f"# ── {name}\n{text}" for name, text in sources.items())


def _node_text(node: Node) -> str:
    return node.text.decode("utf-8")


def _class_nodes(node: Node, prefix: str = "") -> Iterator[tuple[str, Node]]:
    """Yield ``(dotted path, node)`` for every class reachable without
    entering a function body, e.g. ``_Types_0.block_0.block_1``."""
    for child in node.children:
        if child.type == "class_definition":
            path = prefix + _node_text(child.child_by_field_name("name"))
            yield path, child
            yield from _class_nodes(child.child_by_field_name("body"), path + ".")
        elif child.type != "function_definition":
            yield from _class_nodes(child, prefix)


def _find_class(source: str, path: str) -> Node:
    tree = parse_source(source)
    match = next((node for found, node in _class_nodes(tree.root_node) if found == path), None)
    if match is None:
        raise ValueError(f"Class '{path}' not found in source")
    return match


def declaration_source(source: str, path: str) -> str:
    """Extract the source text of the class at the dotted *path*.

    Args:
        source: A generated Python source.
        path: Class names from the module level down, e.g. ``Outer.Inner``.

    Raises:
        ValueError: If no class sits at that path.
    """
    return _node_text(_find_class(source, path))


def _scope_path(session: Session, name: str) -> tuple[str, str]:
    """The source holding probe *name* and the class path of its scope."""
    tree = session.scope_tree
    probe = tree.probe(name)
    unit = tree.unit_of(probe.scope)
    ids = [scope.scope_id for scope in tree.scope_chain(probe.scope)]
    path = ".".join([simple_name(unit.qualified_name), *ids])
    logger.info("Locating probe %r at %s in %s", name, path, unit.qualified_name)
    return session.assemble()[unit.qualified_name], path


def probe_declaration_source(session: Session, name: str) -> str:
    """Return the rendered class of the scope that holds the probe *name*.

    Raises:
        UnknownNameError: If no probe named *name* was declared.
    """
    source, path = _scope_path(session, name)
    return declaration_source(source, path)


def probe_field_source(session: Session, name: str) -> str:
    """Return the annotated field rendered for the probe *name*.

    e.g. ``type_0: TypeSlot[dict[K, V]]``; the trailing name comment is not
    part of it.

    Raises:
        UnknownNameError: If no probe named *name* was declared.
    """
    source, path = _scope_path(session, name)
    field_name = session.scope_tree.probe(name).field_name
    body = _find_class(source, path).child_by_field_name("body")
    for statement in body.children:
        if statement.type != "expression_statement":
            continue
        for node in statement.children:
            left = node.child_by_field_name("left") if node.type == "assignment" else None
            if left is not None and _node_text(left) == field_name:
                return _node_text(node)
    raise ValueError(f"Field '{field_name}' not found in {path}")
