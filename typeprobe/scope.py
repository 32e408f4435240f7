"""Type-expression registry: an arena of nested scopes holding probes.

Scopes mirror nested generic contexts. Each scope is stored once in the arena
and addressed by index; parents keep their children as index lists, so the
tree has no back-reference cycles. A probe's expression may use any generic
parameter declared by its own scope or by an ancestor scope, and the rendered
source preserves that lexical structure for the compiler to check.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .errors import (
    DuplicateNameError,
    DuplicateParameterError,
    SealedSessionError,
    UnknownNameError,
)
from . import constants

logger = logging.getLogger(__name__)

_PARAMETER_NAME_RE = re.compile(r"^\**\s*([A-Za-z_]\w*)")


def parameter_name(declaration: str) -> str:
    """Extract the name from a parameter declaration (``T: int`` → ``T``).

    Raises ``ValueError`` if *declaration* does not start with an identifier.
    """
    m = _PARAMETER_NAME_RE.match(declaration.strip())
    if not m:
        raise ValueError(f"Invalid generic parameter declaration: {declaration!r}")
    return m.group(1)


@dataclass(frozen=True)
class Probe:
    """One named type expression awaiting resolution."""

    scope: int
    index: int
    name: str
    expression: str

    @property
    def field_name(self) -> str:
        return constants.PROBE_FIELD_TEMPLATE.format(index=self.index)


@dataclass
class Scope:
    index: int
    parent: int | None
    scope_id: str
    parameters: tuple[str, ...]
    unit: int
    children: list[int] = field(default_factory=list)
    probes: list[Probe] = field(default_factory=list)

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(parameter_name(p) for p in self.parameters)


@dataclass
class ProbeUnit:
    """A top-level synthetic declaration that holds one root scope."""

    index: int
    package: str
    class_name: str
    root: int
    imports: list[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.class_name}"


class ScopeTree:
    """Arena of scopes and probes with a flat, session-wide probe namespace."""

    def __init__(self, root_package: str = constants.ROOT_PACKAGE):
        self.root_package = root_package
        self.scopes: list[Scope] = []
        self.units: list[ProbeUnit] = []
        self._probes: dict[str, Probe] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def _require_open(self) -> None:
        if self._sealed:
            raise SealedSessionError("The sources have already been compiled")

    def _new_scope(
        self, parent: int | None, parameters: tuple[str, ...], unit: int
    ) -> Scope:
        scope = Scope(
            index=len(self.scopes),
            parent=parent,
            scope_id=constants.SCOPE_ID_TEMPLATE.format(index=len(self.scopes)),
            parameters=parameters,
            unit=unit,
        )
        self.scopes.append(scope)
        return scope

    # ── Registration ─────────────────────────────────────────────

    def begin_root_scope(self, package: str | None = None) -> Scope:
        """Create a new probe unit, optionally in a sub-package, and its root scope."""
        self._require_open()
        full_package = f"{self.root_package}.{package}" if package else self.root_package
        unit_index = len(self.units)
        root = self._new_scope(None, (), unit_index)
        unit = ProbeUnit(
            index=unit_index,
            package=full_package,
            class_name=constants.UNIT_CLASS_TEMPLATE.format(index=unit_index),
            root=root.index,
        )
        self.units.append(unit)
        logger.debug("Began unit %s with root %s", unit.qualified_name, root.scope_id)
        return root

    def declare_child_scope(self, parent: Scope, *parameters: str) -> Scope:
        self._require_open()
        names = [parameter_name(p) for p in parameters]
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise DuplicateParameterError(
                    f"Generic parameter `{name}` is declared more than once"
                )
            seen.add(name)
        scope = self._new_scope(
            parent.index, tuple(p.strip() for p in parameters), parent.unit
        )
        self.scopes[parent.index].children.append(scope.index)
        return scope

    def declare_probe(self, scope: Scope, name: str, expression: str) -> Probe:
        self._require_open()
        if name in self._probes:
            raise DuplicateNameError(f"A type named `{name}` already exists")
        owner = self.scopes[scope.index]
        probe = Probe(
            scope=owner.index, index=len(owner.probes), name=name, expression=expression
        )
        owner.probes.append(probe)
        self._probes[name] = probe
        return probe

    def add_import(self, scope: Scope, *statements: str) -> None:
        """Add import statements to the unit that owns *scope*."""
        self._require_open()
        unit = self.units[scope.unit]
        unit.imports.extend(s for s in statements if s not in unit.imports)

    # ── Queries ──────────────────────────────────────────────────

    def probe(self, name: str) -> Probe:
        found = self._probes.get(name)
        if found is None:
            raise UnknownNameError(f"No such type found: `{name}`")
        return found

    @property
    def probe_count(self) -> int:
        return len(self._probes)

    def unit_of(self, scope_index: int) -> ProbeUnit:
        return self.units[self.scopes[scope_index].unit]

    def scope_chain(self, scope_index: int) -> list[Scope]:
        """Scopes from the unit root down to *scope_index*."""
        chain: list[Scope] = []
        current: int | None = scope_index
        while current is not None:
            chain.append(self.scopes[current])
            current = self.scopes[current].parent
        return list(reversed(chain))

    def declaration_path(self, scope_index: int) -> str:
        """Qualified path of the class rendered for *scope_index*.

        e.g. ``gen._Types_0.block_0.block_1``
        """
        unit = self.unit_of(scope_index)
        ids = [scope.scope_id for scope in self.scope_chain(scope_index)]
        return ".".join([unit.qualified_name, *ids])
