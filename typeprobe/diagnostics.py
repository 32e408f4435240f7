"""Compiler diagnostics: structured records plus their text rendering."""

from __future__ import annotations

import traceback

from pydantic import BaseModel


class Diagnostic(BaseModel):
    """One compiler-reported problem, located in a synthetic source."""

    qualified_name: str
    filename: str
    line: int
    column: int
    message: str
    source_line: str = ""

    def __str__(self) -> str:
        lines = [f"{self.filename}:{self.line}:{self.column}: error: {self.message}"]
        if self.source_line:
            lines.append(self.source_line)
            if self.column > 0:
                lines.append(" " * (self.column - 1) + "^")
        return "\n".join(lines)


def from_syntax_error(qualified_name: str, exc: SyntaxError) -> Diagnostic:
    """Build a diagnostic from a ``SyntaxError`` raised by ``compile()``."""
    return Diagnostic(
        qualified_name=qualified_name,
        filename=exc.filename or "",
        line=exc.lineno or 0,
        column=exc.offset or 0,
        message=exc.msg,
        source_line=(exc.text or "").rstrip("\n"),
    )


def from_exception(
    qualified_name: str, filename: str, source: str, exc: BaseException
) -> Diagnostic:
    """Build a diagnostic from an exception raised while executing *source*.

    The innermost traceback frame that belongs to *filename* supplies the
    location; when no such frame exists the diagnostic points at line 0.
    """
    frames = [
        frame
        for frame in traceback.extract_tb(exc.__traceback__)
        if frame.filename == filename
    ]
    line = frames[-1].lineno if frames else 0
    colno = getattr(frames[-1], "colno", None) if frames else None
    source_lines = source.splitlines()
    source_line = source_lines[line - 1] if 0 < (line or 0) <= len(source_lines) else ""
    return Diagnostic(
        qualified_name=qualified_name,
        filename=filename,
        line=line or 0,
        column=colno + 1 if colno is not None else 0,
        message=f"{type(exc).__name__}: {exc}",
        source_line=source_line,
    )


def format_diagnostics(diagnostics: list[Diagnostic] | tuple[Diagnostic, ...]) -> str:
    """Render diagnostics the way the compiler prints them."""
    count = len(diagnostics)
    lines = ["Compilation error:"]
    lines.extend(str(diagnostic) for diagnostic in diagnostics)
    lines.append(f"{count} error" if count == 1 else f"{count} errors")
    return "\n".join(lines) + "\n"
