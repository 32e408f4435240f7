"""Compilation layer: turns an assembled source map into a compiled module."""

from __future__ import annotations

import contextlib
import inspect
import logging
import sys
import time
import types
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence

from .diagnostics import Diagnostic, from_exception, from_syntax_error
from .errors import CompileError, ReflectionLookupError
from .macros import package_of
from . import constants

logger = logging.getLogger(__name__)


def source_filename(qualified_name: str) -> str:
    """``gen.relative.X`` → ``/gen/relative/X.py``."""
    return constants.SOURCE_FILENAME_TEMPLATE.format(
        path=qualified_name.replace(".", "/")
    )


class CompiledModule:
    """The compiled artifact: one module object per synthetic package."""

    def __init__(self, packages: Mapping[str, types.ModuleType], names: Sequence[str]):
        self._packages = dict(packages)
        self.names: tuple[str, ...] = tuple(names)

    @property
    def packages(self) -> dict[str, types.ModuleType]:
        return dict(self._packages)

    def namespace(self, package: str) -> dict[str, Any]:
        module = self._packages.get(package)
        if module is None:
            raise ReflectionLookupError(f"No compiled package `{package}`")
        return vars(module)

    def lookup(self, qualified_path: str) -> Any:
        """Find a compiled object by its dotted path.

        The longest prefix naming a package selects the module; the rest of
        the path is followed attribute by attribute.
        """
        parts = qualified_path.split(".")
        for split in range(len(parts), 0, -1):
            package = ".".join(parts[:split])
            if package in self._packages:
                obj: Any = self._packages[package]
                for attr in parts[split:]:
                    try:
                        obj = getattr(obj, attr)
                    except AttributeError:
                        raise ReflectionLookupError(
                            f"Unable to find `{attr}` while resolving `{qualified_path}`"
                        ) from None
                return obj
        raise ReflectionLookupError(f"No compiled package holds `{qualified_path}`")


class Compiler(ABC):
    """Abstract compiler collaborator."""

    @abstractmethod
    def compile(
        self,
        sources: Mapping[str, str],
        options: Sequence[str] = (),
        deadline: float | None = None,
    ) -> Any:
        """Compile *sources* (qualified name → text) and return a module handle.

        *deadline* is a ``time.monotonic()`` value after which compilation
        fails. Raises ``CompileError`` when the sources are rejected.
        """
        ...


@dataclass(frozen=True)
class PythonCompileSettings:
    optimize: int = -1
    warnings_as_errors: bool = False


def parse_options(options: Sequence[str]) -> PythonCompileSettings:
    """Map compiler option strings onto ``compile()`` settings.

    Raises ``ValueError`` for options the Python compiler does not understand.
    """
    optimize = -1
    warnings_as_errors = False
    for option in options:
        if option == constants.OPTION_OPTIMIZE:
            optimize = max(optimize, 1)
        elif option == constants.OPTION_OPTIMIZE_DOCSTRINGS:
            optimize = 2
        elif option == constants.OPTION_WARNINGS_AS_ERRORS:
            warnings_as_errors = True
        else:
            raise ValueError(
                f"Unsupported compiler option: {option}. "
                f"Supported: {list(constants.SUPPORTED_COMPILER_OPTIONS)}"
            )
    return PythonCompileSettings(
        optimize=optimize, warnings_as_errors=warnings_as_errors
    )


def _build_packages(names: Sequence[str]) -> dict[str, types.ModuleType]:
    """Create an empty package module for every package named in *names*."""
    packages: dict[str, types.ModuleType] = {}
    for name in names:
        parts = package_of(name).split(".")
        for depth in range(1, len(parts) + 1):
            package = ".".join(parts[:depth])
            if package in packages:
                continue
            module = types.ModuleType(package)
            module.__path__ = []
            module.__package__ = package
            packages[package] = module
            if depth > 1:
                setattr(packages[".".join(parts[: depth - 1])], parts[depth - 1], module)
    return packages


@contextlib.contextmanager
def _installed(packages: Mapping[str, types.ModuleType]) -> Iterator[None]:
    """Make *packages* importable for the duration of the block."""
    previous = {name: sys.modules.get(name) for name in packages}
    sys.modules.update(packages)
    try:
        yield
    finally:
        for name, module in previous.items():
            if module is None:
                sys.modules.pop(name, None)
            else:
                sys.modules[name] = module


def _force_annotations(obj: Any) -> None:
    """Evaluate the annotations of *obj* and of every class nested in it.

    With deferred annotation evaluation, a reference to an out-of-scope name
    would otherwise only fail when first read.
    """
    if not isinstance(obj, type):
        return
    inspect.get_annotations(obj)
    prefix = obj.__qualname__ + "."
    for value in list(vars(obj).values()):
        if isinstance(value, type) and value.__qualname__.startswith(prefix):
            _force_annotations(value)


def split_header(text: str) -> tuple[str, str]:
    """Split a source into its header line and its body.

    The body keeps a leading blank line, so its line numbers match the
    whole source.
    """
    header, _, body = text.partition("\n")
    return header, "\n" + body


def _bind_imports(header: types.CodeType, namespace: dict[str, Any], declared: set[str]) -> None:
    """Run a header's imports, binding only names the package has not declared."""
    imported: dict[str, Any] = {}
    exec(header, imported)
    for key, value in imported.items():
        if not key.startswith("__") and key not in declared:
            namespace[key] = value


def _run_body(body: types.CodeType, namespace: dict[str, Any]) -> list[str]:
    """Execute *body* and return the names it bound or rebound."""
    before = dict(namespace)
    exec(body, namespace)
    return [
        key
        for key, value in namespace.items()
        if key not in before or before[key] is not value
    ]


def _check_deadline(deadline: float | None) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise CompileError(
            [
                Diagnostic(
                    qualified_name="",
                    filename="",
                    line=0,
                    column=0,
                    message="compilation deadline exceeded",
                )
            ]
        )


class PythonCompiler(Compiler):
    """Compiles sources with builtin ``compile()`` and executes them.

    Each source runs in the namespace of its package module, in the order
    given, so a later source sees every name an earlier one in the same
    package defined. The first line of a source is its import header: it runs
    on its own and never rebinds a name that an earlier body in the package
    declared, so a snippet named like a ``typing`` export keeps its name.
    The synthetic packages are placed in ``sys.modules`` only while
    executing.
    """

    def compile(
        self,
        sources: Mapping[str, str],
        options: Sequence[str] = (),
        deadline: float | None = None,
    ) -> CompiledModule:
        settings = parse_options(options)
        logger.info("Compiling %d sources (options=%s)", len(sources), list(options))
        _check_deadline(deadline)

        code_objects: dict[str, tuple[types.CodeType, types.CodeType]] = {}
        diagnostics: list[Diagnostic] = []
        with warnings.catch_warnings():
            if settings.warnings_as_errors:
                warnings.simplefilter("error")
            for name, text in sources.items():
                try:
                    code_objects[name] = tuple(
                        compile(
                            part,
                            source_filename(name),
                            "exec",
                            dont_inherit=True,
                            optimize=settings.optimize,
                        )
                        for part in split_header(text)
                    )
                except SyntaxError as exc:
                    diagnostics.append(from_syntax_error(name, exc))
        if diagnostics:
            logger.info("Compilation failed with %d syntax errors", len(diagnostics))
            raise CompileError(diagnostics)

        packages = _build_packages(list(sources))
        declared: dict[str, set[str]] = {package: set() for package in packages}
        with _installed(packages):
            for name, (header, body) in code_objects.items():
                _check_deadline(deadline)
                package = package_of(name)
                namespace = vars(packages[package])
                try:
                    _bind_imports(header, namespace, declared[package])
                    bound = _run_body(body, namespace)
                    declared[package].update(bound)
                    for key in bound:
                        value = namespace[key]
                        if isinstance(value, type) and value.__module__ == package:
                            _force_annotations(value)
                except Exception as exc:
                    logger.info("Executing %s failed: %s", name, exc)
                    raise CompileError(
                        [from_exception(name, source_filename(name), sources[name], exc)]
                    ) from exc
        return CompiledModule(packages, list(sources))
