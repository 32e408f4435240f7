"""Reflection layer: reads resolved probe types back out of a compiled module."""

from __future__ import annotations

import collections.abc
import logging
import types
import typing
from abc import ABC, abstractmethod
from typing import (
    Annotated,
    Any,
    ForwardRef,
    Literal,
    Mapping,
    ParamSpec,
    TypeVar,
    TypeVarTuple,
    Union,
    Unpack,
    get_args,
    get_origin,
)

from .compiler import CompiledModule
from .descriptor import DescriptorPair, TypeDescriptor, TypeKind
from .errors import ReflectionLookupError
from .runtime import TypeSlot

logger = logging.getLogger(__name__)

_UNION_ORIGINS: tuple[Any, ...] = (Union, types.UnionType)


class Reflector(ABC):
    """Abstract reflection collaborator."""

    @abstractmethod
    def describe_field(
        self, module: Any, qualified_path: str, field_name: str
    ) -> DescriptorPair:
        """Describe the type argument of a probe field.

        Raises ``ReflectionLookupError`` if *qualified_path* or *field_name*
        does not exist in *module*.
        """
        ...


def _display_name(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None) or repr(obj)


def describe_type(tp: Any, owners: Mapping[int, str] | None = None) -> TypeDescriptor:
    """Convert a type hint into a ``TypeDescriptor``.

    ``Annotated`` layers become metadata on the node they wrap. *owners* maps
    ``id()`` of type variables to the path of the declaration that owns them.
    """
    owners = owners or {}
    if get_origin(tp) is Annotated:
        inner = describe_type(tp.__origin__, owners)
        return TypeDescriptor(
            kind=inner.kind,
            name=inner.name,
            target=inner.target,
            arguments=inner.arguments,
            metadata=inner.metadata + tuple(tp.__metadata__),
            owner=inner.owner,
            values=inner.values,
        )

    def describe_all(items: Any) -> tuple[TypeDescriptor, ...]:
        return tuple(describe_type(item, owners) for item in items)

    if tp is Any:
        return TypeDescriptor(kind=TypeKind.ANY, name="Any", target=tp)
    if tp is None or tp is type(None):
        return TypeDescriptor(kind=TypeKind.NONE, name="None", target=type(None))
    if tp is Ellipsis:
        return TypeDescriptor(kind=TypeKind.ELLIPSIS, name="...", target=tp)
    if isinstance(tp, TypeVar):
        return TypeDescriptor(
            kind=TypeKind.TYPE_VARIABLE,
            name=tp.__name__,
            target=tp,
            owner=owners.get(id(tp)),
        )
    if isinstance(tp, ParamSpec):
        return TypeDescriptor(
            kind=TypeKind.PARAM_SPEC, name=tp.__name__, target=tp, owner=owners.get(id(tp))
        )
    if isinstance(tp, TypeVarTuple):
        return TypeDescriptor(
            kind=TypeKind.TYPE_VAR_TUPLE,
            name=tp.__name__,
            target=tp,
            owner=owners.get(id(tp)),
        )
    if isinstance(tp, ForwardRef):
        return TypeDescriptor(kind=TypeKind.FORWARD_REF, name=tp.__forward_arg__, target=tp)
    if isinstance(tp, str):
        return TypeDescriptor(kind=TypeKind.FORWARD_REF, name=tp, target=tp)

    origin = get_origin(tp)
    args = get_args(tp)
    if origin is Unpack:
        return TypeDescriptor(
            kind=TypeKind.UNPACK, name="Unpack", target=origin, arguments=describe_all(args)
        )
    if origin is Literal:
        return TypeDescriptor(kind=TypeKind.LITERAL, name="Literal", target=origin, values=args)
    if origin in _UNION_ORIGINS:
        return TypeDescriptor(
            kind=TypeKind.UNION, name="Union", target=origin, arguments=describe_all(args)
        )
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeDescriptor(
                kind=TypeKind.ARRAY,
                name="tuple",
                target=tuple,
                arguments=(describe_type(args[0], owners),),
            )
        return TypeDescriptor(
            kind=TypeKind.TUPLE, name="tuple", target=tuple, arguments=describe_all(args)
        )
    if origin is collections.abc.Callable:
        params, ret = args[0], args[-1]
        param_descriptors = (
            describe_all(params) if isinstance(params, list) else (describe_type(params, owners),)
        )
        return TypeDescriptor(
            kind=TypeKind.CALLABLE,
            name="Callable",
            target=origin,
            arguments=param_descriptors + (describe_type(ret, owners),),
        )
    if origin is not None:
        return TypeDescriptor(
            kind=TypeKind.GENERIC,
            name=_display_name(origin),
            target=origin,
            arguments=describe_all(args),
        )
    if isinstance(tp, type):
        return TypeDescriptor(kind=TypeKind.CLASS, name=_display_name(tp), target=tp)
    return TypeDescriptor(kind=TypeKind.SPECIAL, name=getattr(tp, "__name__", repr(tp)), target=tp)


def _type_parameter_owners(module: CompiledModule, qualified_path: str) -> dict[int, str]:
    """Map every type parameter declared along *qualified_path* to its declaration."""
    owners: dict[int, str] = {}
    parts = qualified_path.split(".")
    for depth in range(1, len(parts) + 1):
        prefix = ".".join(parts[:depth])
        try:
            obj = module.lookup(prefix)
        except ReflectionLookupError:
            continue
        if isinstance(obj, type):
            for param in getattr(obj, "__type_params__", ()):
                owners[id(param)] = prefix
    return owners


def _slot_argument(hint: Any, qualified_path: str, field_name: str) -> Any:
    if get_origin(hint) is not TypeSlot:
        raise ReflectionLookupError(
            f"Field {field_name} of `{qualified_path}` is not a {TypeSlot.__name__} field"
        )
    (argument,) = get_args(hint)
    return argument


class TypingReflector(Reflector):
    """Reads probe fields with ``typing.get_type_hints``.

    The plain form comes from ``include_extras=False``, which strips every
    ``Annotated`` layer; the annotated form keeps them as metadata.
    """

    def describe_field(
        self, module: CompiledModule, qualified_path: str, field_name: str
    ) -> DescriptorPair:
        owner = module.lookup(qualified_path)
        if not isinstance(owner, type):
            raise ReflectionLookupError(f"`{qualified_path}` is not a class")
        globalns = module.namespace(owner.__module__)
        annotated_hints = typing.get_type_hints(owner, globalns=globalns, include_extras=True)
        plain_hints = typing.get_type_hints(owner, globalns=globalns)
        if field_name not in annotated_hints or field_name not in plain_hints:
            raise ReflectionLookupError(
                f"Unable to find field {field_name} in `{qualified_path}`"
            )

        owners = _type_parameter_owners(module, qualified_path)
        pair = DescriptorPair(
            plain=describe_type(
                _slot_argument(plain_hints[field_name], qualified_path, field_name), owners
            ),
            annotated=describe_type(
                _slot_argument(annotated_hints[field_name], qualified_path, field_name), owners
            ),
        )
        if not pair.is_consistent():
            raise ReflectionLookupError(
                f"Plain and annotated forms of {qualified_path}.{field_name} diverge: "
                f"{pair.plain} != {pair.annotated}"
            )
        logger.debug("Described %s.%s as %s", qualified_path, field_name, pair.annotated)
        return pair
