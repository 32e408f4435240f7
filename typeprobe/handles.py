"""Lazy handles and type-set builders bound to a session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .descriptor import DescriptorPair, TypeDescriptor
from .scope import Scope

if TYPE_CHECKING:
    from .session import Session


class ClassHandle:
    """Deferred reference to a compiled declaration, e.g. ``gen.X``.

    Usable as a class attribute: reading it through an instance returns the
    compiled object.
    """

    def __init__(self, session: Session, qualified_name: str):
        self._session = session
        self.qualified_name = qualified_name
        self._cache: Any = None
        self._resolved = False

    def get(self) -> Any:
        if not self._resolved:
            self._cache = self._session.get_class(self.qualified_name)
            self._resolved = True
        return self._cache

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return self.get()

    def __repr__(self) -> str:
        return f"ClassHandle({self.qualified_name!r})"


class TypeHandle:
    """Deferred reference to a probe's descriptor pair."""

    def __init__(self, session: Session, name: str):
        self._session = session
        self.name = name
        self._cache: DescriptorPair | None = None

    def get(self) -> DescriptorPair:
        if self._cache is None:
            self._cache = self._session.resolve(self.name)
        return self._cache

    @property
    def plain(self) -> TypeDescriptor:
        return self.get().plain

    @property
    def annotated(self) -> TypeDescriptor:
        return self.get().annotated

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return self.get().annotated

    def __repr__(self) -> str:
        return f"TypeHandle({self.name!r})"


class TypeSetBuilder:
    """Declares probes and nested scopes under one scope.

    ```python
    types = sources.types()
    types.add("tuple[X, ...]")
    with types.block("K", "V") as block:
        block.add("dict[K, V]")
    ```
    """

    def __init__(self, session: Session, scope: Scope):
        self._session = session
        self.scope = scope

    def add(self, name: str, expression: str | None = None) -> TypeHandle:
        """Declare a probe; *expression* defaults to *name*."""
        self._session.declare_probe(
            self.scope, name, name if expression is None else expression
        )
        return TypeHandle(self._session, name)

    def block(self, *parameters: str) -> TypeSetBuilder:
        """Open a nested scope declaring *parameters* (``"T"``, ``"T: int"``, ``"*Ts"``)."""
        return TypeSetBuilder(
            self._session, self._session.declare_child_scope(self.scope, *parameters)
        )

    def add_import(self, *statements: str) -> None:
        self._session.scope_tree.add_import(self.scope, *statements)

    def __enter__(self) -> TypeSetBuilder:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


class _DescriptorView:
    def __init__(self, type_set: TypeSet, annotated: bool):
        self._type_set = type_set
        self._annotated = annotated

    def __getitem__(self, name: str) -> TypeDescriptor:
        pair = self._type_set.resolve(name)
        return pair.annotated if self._annotated else pair.plain


class TypeSet(TypeSetBuilder):
    """Root builder of one probe unit, plus lookups restricted to its probes."""

    def __init__(self, session: Session, root: Scope):
        super().__init__(session, root)
        self.plain = _DescriptorView(self, annotated=False)
        self.annotated = _DescriptorView(self, annotated=True)

    @property
    def qualified_name(self) -> str:
        return self._session.scope_tree.unit_of(self.scope.index).qualified_name

    def resolve(self, name: str) -> DescriptorPair:
        return self._session.resolve(name, unit=self.scope.unit)

    def __getitem__(self, name: str) -> TypeDescriptor:
        return self.resolve(name).annotated
