"""Type descriptors: structural views of resolved type hints (pure data)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class TypeKind(str, Enum):
    CLASS = "class"
    GENERIC = "generic"
    ARRAY = "array"
    TUPLE = "tuple"
    UNION = "union"
    CALLABLE = "callable"
    LITERAL = "literal"
    TYPE_VARIABLE = "type_variable"
    PARAM_SPEC = "param_spec"
    TYPE_VAR_TUPLE = "type_var_tuple"
    UNPACK = "unpack"
    ANY = "any"
    NONE = "none"
    FORWARD_REF = "forward_ref"
    ELLIPSIS = "ellipsis"
    SPECIAL = "special"


@dataclass(frozen=True)
class TypeDescriptor:
    """Resolved shape of one type expression.

    ``target`` is the runtime object the node stands for: the class for
    ``CLASS``, the origin for ``GENERIC`` (e.g. ``list``), the type variable
    for the variable kinds. ``owner`` is the qualified path of the declaration
    that introduced a type variable, when it is one of the synthetic scopes.
    ``metadata`` is only ever populated in the annotated form.
    """

    kind: TypeKind
    name: str
    target: Any = None
    arguments: tuple[TypeDescriptor, ...] = ()
    metadata: tuple[Any, ...] = ()
    owner: str | None = None
    values: tuple[Any, ...] = ()

    @property
    def component(self) -> TypeDescriptor:
        """Element type of an ``ARRAY``."""
        if self.kind != TypeKind.ARRAY:
            raise ValueError(f"{self.kind.value} descriptor has no component type")
        return self.arguments[0]

    def strip_metadata(self) -> TypeDescriptor:
        return replace(
            self,
            metadata=(),
            arguments=tuple(arg.strip_metadata() for arg in self.arguments),
        )

    def __str__(self) -> str:
        if self.kind == TypeKind.ARRAY:
            base = f"tuple[{self.arguments[0]}, ...]"
        elif self.kind == TypeKind.UNION:
            base = " | ".join(str(arg) for arg in self.arguments)
        elif self.kind == TypeKind.LITERAL:
            base = f"Literal[{', '.join(repr(v) for v in self.values)}]"
        elif self.kind == TypeKind.CALLABLE:
            *params, ret = self.arguments
            if len(params) == 1 and params[0].kind in (
                TypeKind.ELLIPSIS,
                TypeKind.PARAM_SPEC,
            ):
                param_text = str(params[0])
            else:
                param_text = "[" + ", ".join(str(p) for p in params) + "]"
            base = f"Callable[{param_text}, {ret}]"
        elif self.kind == TypeKind.UNPACK:
            base = f"*{self.arguments[0]}"
        elif self.kind in (TypeKind.GENERIC, TypeKind.TUPLE):
            args = ", ".join(str(arg) for arg in self.arguments)
            base = f"{self.name}[{args or '()'}]"
        else:
            base = self.name
        if self.metadata:
            return f"Annotated[{base}, {', '.join(repr(m) for m in self.metadata)}]"
        return base


@dataclass(frozen=True)
class DescriptorPair:
    """The plain and annotated forms of one probe's resolved type."""

    plain: TypeDescriptor
    annotated: TypeDescriptor

    def is_consistent(self) -> bool:
        return self.annotated.strip_metadata() == self.plain
