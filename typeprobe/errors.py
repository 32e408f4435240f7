"""Error taxonomy for sessions, registries and compiled lookups."""

from __future__ import annotations

from typing import Iterable

from .diagnostics import Diagnostic, format_diagnostics


class TypeProbeError(Exception):
    """Base class for every error raised by typeprobe."""


class SealedSessionError(TypeProbeError, RuntimeError):
    """A registration was attempted after the session left the open state."""


class AlreadyCompiledError(TypeProbeError, RuntimeError):
    """``compile()`` was called on a session that is no longer open."""


class NotCompiledError(TypeProbeError, RuntimeError):
    """A compiled lookup was attempted before a successful compile."""


class DuplicateNameError(TypeProbeError, ValueError):
    """A snippet or probe name is already registered in the session."""


class DuplicateParameterError(TypeProbeError, ValueError):
    """A scope declaration names the same generic parameter twice."""


class UnknownNameError(TypeProbeError, ValueError):
    """A lookup named something that was never declared."""


class ReflectionLookupError(TypeProbeError, LookupError):
    """The compiled module does not hold a member the assembler generated."""


class MemberLookupError(TypeProbeError, LookupError):
    """A class does not declare the member, or no declared member accepts the arguments."""


class CompileError(TypeProbeError):
    """The compiler rejected the assembled sources.

    ``str(error)`` is the compiler's output, unaltered; ``diagnostics`` holds
    the same information as structured records.
    """

    def __init__(self, diagnostics: Iterable[Diagnostic]):
        self.diagnostics: tuple[Diagnostic, ...] = tuple(diagnostics)
        super().__init__(format_diagnostics(self.diagnostics))
