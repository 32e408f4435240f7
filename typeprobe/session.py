"""Session: registration, the one-shot compilation gate, and compiled lookups.

Basic usage::

    sources = Session()
    X = sources.add("X", "class X: pass")
    types = sources.types()
    types.add("tuple[X, ...]")
    with types.block("T") as block:
        block.add("T")
    sources.compile()

    X.get()                       # the compiled class gen.X
    types["tuple[X, ...]"]        # annotated TypeDescriptor
    types.plain["T"]              # plain TypeDescriptor
"""

from __future__ import annotations

import logging
import time
from typing import Any

from .assembler import assemble
from .cache import TypeDescriptorCache
from .compiler import Compiler, PythonCompiler
from .descriptor import DescriptorPair, TypeDescriptor
from .errors import (
    AlreadyCompiledError,
    DuplicateNameError,
    NotCompiledError,
    SealedSessionError,
    UnknownNameError,
)
from .handles import ClassHandle, TypeHandle, TypeSet
from .macros import trim_indent as _trim_indent
from .reflection import Reflector, TypingReflector
from .scope import Probe, Scope, ScopeTree
from .session_types import CompileStats, SessionConfig, SessionState
from . import constants

logger = logging.getLogger(__name__)


class Session:
    """Single-use, single-writer context owning sources up to one compile."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        compiler: Compiler | None = None,
        reflector: Reflector | None = None,
    ):
        self.config = config or SessionConfig()
        self.root_package = self.config.root_package
        self.compiler_options: list[str] = list(self.config.compiler_options)
        self.global_imports: list[str] = list(self.config.global_imports)
        self.snippets: dict[str, str] = {}
        self.scope_tree = ScopeTree(self.root_package)
        self.stats = CompileStats()
        self._compiler = compiler or PythonCompiler()
        self._reflector = reflector or TypingReflector()
        self._cache = TypeDescriptorCache()
        self._module: Any = None
        self._state = SessionState.OPEN

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def sealed(self) -> bool:
        return self._state != SessionState.OPEN

    @property
    def module(self) -> Any:
        self._require_compiled()
        return self._module

    def _require_open(self) -> None:
        if self.sealed:
            raise SealedSessionError("The sources have already been compiled")

    def _require_compiled(self) -> None:
        if self._state != SessionState.COMPILED:
            raise NotCompiledError("The sources have not been compiled")

    def _unit_names(self) -> set[str]:
        return {unit.qualified_name for unit in self.scope_tree.units}

    # ── Registration ─────────────────────────────────────────────

    def add(self, name: str, code: str, trim_indent: bool | None = None) -> ClassHandle:
        """Add a snippet declaring *name* relative to the root package.

        ``add("relative.X", ...)`` places ``X`` in ``gen.relative``; such
        sources star-import the root package. ``@meta`` and ``NOP`` are
        expanded when the sources are assembled.

        Returns:
            A handle to the compiled declaration, usable after ``compile()``.
        """
        self._require_open()
        qualified_name = f"{self.root_package}.{name}"
        if qualified_name in self.snippets or qualified_name in self._unit_names():
            raise DuplicateNameError(f"Class name {name} already exists")
        should_trim = self.config.trim_indent if trim_indent is None else trim_indent
        self.snippets[qualified_name] = _trim_indent(code) if should_trim else code
        logger.debug("Added snippet %s", qualified_name)
        return ClassHandle(self, qualified_name)

    def begin_root_scope(self, package: str | None = None) -> Scope:
        """Create a new probe unit and return its root scope."""
        self._require_open()
        full_package = f"{self.root_package}.{package}" if package else self.root_package
        class_name = constants.UNIT_CLASS_TEMPLATE.format(index=len(self.scope_tree.units))
        if f"{full_package}.{class_name}" in self.snippets:
            raise DuplicateNameError(f"Class name {full_package}.{class_name} already exists")
        return self.scope_tree.begin_root_scope(package)

    def declare_child_scope(self, parent: Scope, *parameters: str) -> Scope:
        self._require_open()
        return self.scope_tree.declare_child_scope(parent, *parameters)

    def declare_probe(self, scope: Scope, name: str, expression: str) -> Probe:
        self._require_open()
        return self.scope_tree.declare_probe(scope, name, expression)

    def types(self, package: str | None = None) -> TypeSet:
        """Start a new set of type probes, optionally in a sub-package."""
        return TypeSet(self, self.begin_root_scope(package))

    # ── Compilation gate ─────────────────────────────────────────

    def assemble(self) -> dict[str, str]:
        return assemble(self)

    def compile(self) -> Any:
        """Compile every registered source; callable exactly once.

        Raises:
            AlreadyCompiledError: The session already compiled or failed.
            CompileError: The compiler rejected the sources. This and any
                other exception raised while compiling leave the session in
                the ``FAILED`` state.
        """
        if self._state != SessionState.OPEN:
            raise AlreadyCompiledError("The sources have already been compiled")
        self.scope_tree.seal()

        started = time.perf_counter()
        assembled = started
        try:
            sources = self.assemble()
            assembled = time.perf_counter()
            self.stats = CompileStats(
                snippet_count=len(self.snippets),
                unit_count=len(self.scope_tree.units),
                probe_count=self.scope_tree.probe_count,
                source_lines=sum(text.count("\n") + 1 for text in sources.values()),
                assemble_time=assembled - started,
            )
            deadline = (
                time.monotonic() + self.config.compile_timeout
                if self.config.compile_timeout is not None
                else None
            )
            module = self._compiler.compile(sources, list(self.compiler_options), deadline)
        except BaseException:
            # Any failure is terminal: the session is already sealed.
            self._state = SessionState.FAILED
            self.stats = self.stats.model_copy(
                update={"compile_time": time.perf_counter() - assembled}
            )
            logger.info("Compilation failed\n%s", self.stats.report())
            raise
        self._module = module
        self._state = SessionState.COMPILED
        self.stats = self.stats.model_copy(
            update={"compile_time": time.perf_counter() - assembled, "succeeded": True}
        )
        logger.info("Compilation succeeded\n%s", self.stats.report())
        return module

    # ── Compiled lookups ─────────────────────────────────────────

    def _is_declared(self, qualified_name: str) -> bool:
        declared = set(self.snippets) | self._unit_names()
        return any(
            qualified_name == name or qualified_name.startswith(name + ".")
            for name in declared
        )

    def get_class(self, qualified_name: str) -> Any:
        """Get a compiled declaration by its fully-qualified name, e.g. ``gen.X``."""
        self._require_compiled()
        if not self._is_declared(qualified_name):
            raise UnknownNameError(f"No such class declared: `{qualified_name}`")
        return self._module.lookup(qualified_name)

    def class_handle(self, qualified_name: str) -> ClassHandle:
        return ClassHandle(self, qualified_name)

    def resolve(self, name: str, unit: int | None = None) -> DescriptorPair:
        """Plain and annotated descriptors of the probe named *name*.

        With *unit*, only probes of that unit are found.
        """
        self._require_compiled()
        probe = self.scope_tree.probe(name)
        if unit is not None and self.scope_tree.scopes[probe.scope].unit != unit:
            owner = self.scope_tree.units[unit].qualified_name
            raise UnknownNameError(f"No such type found in {owner}: `{name}`")

        def compute() -> DescriptorPair:
            path = self.scope_tree.declaration_path(probe.scope)
            logger.debug("Resolving %r at %s.%s", name, path, probe.field_name)
            return self._reflector.describe_field(self._module, path, probe.field_name)

        return self._cache.get_or_compute(name, compute)

    def plain(self, name: str) -> TypeDescriptor:
        return self.resolve(name).plain

    def annotated(self, name: str) -> TypeDescriptor:
        return self.resolve(name).annotated

    def handle(self, name: str) -> TypeHandle:
        return TypeHandle(self, name)
