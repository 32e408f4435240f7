"""Session data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from . import constants


class SessionState(Enum):
    """Compilation gate states; ``COMPILED`` and ``FAILED`` are terminal."""

    OPEN = "open"
    COMPILED = "compiled"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionConfig:
    """Groups the defaults a new session starts from."""

    root_package: str = constants.ROOT_PACKAGE
    compiler_options: tuple[str, ...] = ()
    global_imports: tuple[str, ...] = constants.DEFAULT_GLOBAL_IMPORTS
    trim_indent: bool = True
    compile_timeout: float | None = None


class CompileStats(BaseModel):
    """Size and timing of one compilation."""

    snippet_count: int = 0
    unit_count: int = 0
    probe_count: int = 0
    source_lines: int = 0
    assemble_time: float = 0.0
    compile_time: float = 0.0
    succeeded: bool = False

    def report(self) -> str:
        outcome = "compiled" if self.succeeded else "failed"
        return "\n".join(
            [
                "═══ Compile Statistics ═══",
                f"  Sources: {self.snippet_count} snippets, {self.unit_count} units"
                f" ({self.probe_count} probes, {self.source_lines} lines)",
                f"  {'Assemble':<12} {self.assemble_time * 1000:>8.1f}ms",
                f"  {'Compile':<12} {self.compile_time * 1000:>8.1f}ms",
                f"  Outcome: {outcome}",
            ]
        )
