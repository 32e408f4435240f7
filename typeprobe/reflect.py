"""Member lookup and invocation for runtime-compiled classes.

Every lookup sees only what a class declares itself, never inherited members.
Private names are written as in the class body (``__secret``) and mangled
here. A missing member, or arguments no declared member accepts, raises
``MemberLookupError``.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, get_type_hints

from .errors import MemberLookupError

logger = logging.getLogger(__name__)


class MethodKind(Enum):
    INSTANCE = "instance"
    STATIC = "static"
    CLASS = "class"


@dataclass(frozen=True)
class Method:
    """A method as declared in the body of *owner*."""

    owner: type
    name: str
    function: Callable[..., Any]
    kind: MethodKind

    def parameters(self) -> list[inspect.Parameter]:
        """Parameters a caller supplies; ``self`` and ``cls`` are excluded."""
        parameters = list(inspect.signature(self.function).parameters.values())
        return parameters if self.kind == MethodKind.STATIC else parameters[1:]

    def parameter_types(self) -> tuple[Any, ...]:
        """Annotated type of each parameter; ``object`` where unannotated."""
        hints = _hints(self.function)
        return tuple(hints.get(p.name, object) for p in self.parameters())


def _hints(function: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(function)
    except NameError as exc:
        logger.debug("Unresolved annotations on %s: %s", function.__qualname__, exc)
        return {}


def _mangle(cls: type, name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return f"_{cls.__name__.lstrip('_')}{name}"
    return name


def _describe(arguments: tuple[Any, ...]) -> str:
    return ", ".join(type(argument).__name__ for argument in arguments)


def _accepts(
    function: Callable[..., Any],
    signature: inspect.Signature,
    arguments: tuple[Any, ...],
) -> bool:
    """Whether *arguments* bind to *signature* and match its class annotations."""
    try:
        bound = signature.bind(*arguments)
    except TypeError:
        return False
    hints = _hints(function) if inspect.isfunction(function) else {}
    for name, value in bound.arguments.items():
        parameter = signature.parameters[name]
        if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
            continue
        expected = hints.get(name)
        if isinstance(expected, type) and not isinstance(value, expected):
            return False
    return True


# ── Lookup ───────────────────────────────────────────────────────


def find_method(cls: type, name: str, *parameter_types: Any) -> Method:
    """Get the method *name* declared by *cls*.

    With *parameter_types*, the method's annotated parameter types must be
    exactly those.

    Raises:
        MemberLookupError: If *cls* declares no such method.
    """
    member = vars(cls).get(_mangle(cls, name))
    if isinstance(member, staticmethod):
        method = Method(cls, name, member.__func__, MethodKind.STATIC)
    elif isinstance(member, classmethod):
        method = Method(cls, name, member.__func__, MethodKind.CLASS)
    elif inspect.isfunction(member):
        method = Method(cls, name, member, MethodKind.INSTANCE)
    else:
        raise MemberLookupError(f"Found 0 candidates for method named `{name}` in {cls.__qualname__}")
    if parameter_types and method.parameter_types() != parameter_types:
        expected = ", ".join(getattr(t, "__name__", repr(t)) for t in parameter_types)
        raise MemberLookupError(
            f"Method `{name}` of {cls.__qualname__} does not take ({expected})"
        )
    return method


def get_inner_class(cls: type, name: str) -> type:
    """Get the class *name* declared in the body of *cls*."""
    member = vars(cls).get(_mangle(cls, name))
    if not isinstance(member, type) or member.__qualname__ != f"{cls.__qualname__}.{member.__name__}":
        raise MemberLookupError(f"Couldn't find declared class {name} in {cls.__qualname__}")
    return member


# ── Invocation ───────────────────────────────────────────────────


def call(method: Method, instance: Any, *arguments: Any) -> Any:
    """Invoke *method*; *instance* is ignored for static methods."""
    logger.debug("Calling %s.%s (%s)", method.owner.__qualname__, method.name, method.kind.value)
    if method.kind == MethodKind.STATIC:
        return method.function(*arguments)
    if method.kind == MethodKind.CLASS:
        return method.function(method.owner, *arguments)
    if not isinstance(instance, method.owner):
        raise TypeError(
            f"{method.owner.__qualname__}.{method.name} needs an instance, got {type(instance).__name__}"
        )
    return method.function(instance, *arguments)


def new_instance(cls: type, *arguments: Any) -> Any:
    """Construct *cls* if its constructor accepts *arguments*."""
    init = cls.__init__
    if not _accepts(init, inspect.signature(cls), arguments):
        raise MemberLookupError(
            f"Found 0 candidates for constructor of {cls.__qualname__} "
            f"with parameter types `{_describe(arguments)}`"
        )
    return cls(*arguments)


def _find_callable(cls: type, name: str, kinds: tuple[MethodKind, ...], arguments: tuple[Any, ...]) -> Method:
    try:
        method = find_method(cls, name)
    except MemberLookupError:
        method = None
    if method is None or method.kind not in kinds or not _accepts(
        method.function, inspect.Signature(method.parameters()), arguments
    ):
        raise MemberLookupError(
            f"Found 0 candidates for method named `{name}` "
            f"with parameter types `{_describe(arguments)}`"
        )
    return method


def find_and_call(instance: Any, name: str, *arguments: Any) -> Any:
    """Call the non-static method *name* of *instance*'s class with *arguments*."""
    method = _find_callable(
        type(instance), name, (MethodKind.INSTANCE, MethodKind.CLASS), arguments
    )
    return call(method, instance, *arguments)


def find_and_call_static(cls: type, name: str, *arguments: Any) -> Any:
    """Call the static or class method *name* of *cls* with *arguments*."""
    method = _find_callable(cls, name, (MethodKind.STATIC, MethodKind.CLASS), arguments)
    return call(method, None, *arguments)


# ── Fields ───────────────────────────────────────────────────────


def _instance_field(instance: Any, name: str) -> str:
    cls = type(instance)
    key = _mangle(cls, name)
    declared = inspect.get_annotations(cls)
    if key not in getattr(instance, "__dict__", {}) and key not in declared:
        raise MemberLookupError(f"Couldn't find declared field {name} in {cls.__qualname__}")
    return key


def _class_field(cls: type, name: str) -> str:
    key = _mangle(cls, name)
    if key not in vars(cls):
        raise MemberLookupError(f"Couldn't find declared field {name} in {cls.__qualname__}")
    return key


def find_and_get(instance: Any, name: str) -> Any:
    """Read the field *name* of *instance*."""
    return getattr(instance, _instance_field(instance, name))


def find_and_set(instance: Any, name: str, value: Any) -> None:
    """Write the field *name* of *instance*, even on a frozen dataclass."""
    object.__setattr__(instance, _instance_field(instance, name), value)


def find_and_get_static(cls: type, name: str) -> Any:
    """Read the class attribute *name* declared by *cls*."""
    return vars(cls)[_class_field(cls, name)]


def find_and_set_static(cls: type, name: str, value: Any) -> None:
    """Write the class attribute *name* declared by *cls*."""
    setattr(cls, _class_field(cls, name), value)
