"""Runtime-compiled type probes for reflection tests."""

from .session import Session  # noqa: F401
from .session_types import SessionConfig, SessionState  # noqa: F401
from .descriptor import DescriptorPair, TypeDescriptor, TypeKind  # noqa: F401
from .errors import (  # noqa: F401
    AlreadyCompiledError,
    CompileError,
    DuplicateNameError,
    DuplicateParameterError,
    MemberLookupError,
    NotCompiledError,
    ReflectionLookupError,
    SealedSessionError,
    TypeProbeError,
    UnknownNameError,
)
