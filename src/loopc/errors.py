"""
LOOP Translator Error Hierarchy
===============================

This module defines the exception hierarchy for the LOOP-to-C translator.
All exceptions inherit from LoopError, allowing callers to catch every
translator error with a single except clause if desired.

Exception Hierarchy
-------------------
LoopError (base)
├── LoopSyntaxError - lexical and syntactic errors in the source
│   ├── UnexpectedEndOfInputError - input ended in the middle of a program
│   ├── ExpectedTokenError - a literal, number, or whitespace is missing
│   └── LoopStructureError - unmatched END, misplaced ELSE, trailing input
├── InternalCompilerError - the emitter met a tree the parser cannot build
├── SourceUnavailableError - an input or output file cannot be accessed
└── LoopConfigError - invalid translator options

Error Message Format
--------------------
Syntax errors carry the position of the failing character and are
rendered in the same way as a C compiler diagnostic:

    program.loop:3:12: error: expected ":="
    x1 : = 0
         ^

The second line is the physical input line with tabs, carriage returns
and newlines shown as spaces; the caret sits under the failing column.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class LoopError(Exception):
    """
    Base exception for all translator errors.

        try:
            compile_loop(source)
        except LoopError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in LOOP source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Absolute column number, counted across read segments
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Syntax Errors
# =============================================================================

class LoopSyntaxError(LoopError):
    """
    Syntax error in LOOP source code.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        source_line: The physical input line, whitespace normalized (optional)
        caret_column: Column of the caret within source_line (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        caret_column: Optional[int] = None,
    ):
        self.message = message
        self.location = location
        self.source_line = source_line
        if caret_column is None and location is not None:
            caret_column = location.column
        self.caret_column = caret_column
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and source context.

        Example output:
            prog.loop:1:5: error: expected ":="
            x1 : = 0
                ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.caret_column is not None:
            parts.append(self.source_line)
            padding = " " * max(self.caret_column - 1, 0)
            parts.append(f"{padding}^")

        return "\n".join(parts)


class UnexpectedEndOfInputError(LoopSyntaxError):
    """
    The input ended where more program text was required.

    Examples:
        - An empty source file
        - A trailing ';' after the last instruction
        - A LOOP, WHILE, or IF block without its END
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        caret_column: Optional[int] = None,
    ):
        super().__init__(
            "unexpected end of input",
            location=location,
            source_line=source_line,
            caret_column=caret_column,
        )


class ExpectedTokenError(LoopSyntaxError):
    """
    A required literal, number, operator, or whitespace is missing.

    Attributes:
        expected: Description of what the parser was looking for
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        caret_column: Optional[int] = None,
    ):
        self.expected = expected
        super().__init__(
            f"expected {expected}",
            location=location,
            source_line=source_line,
            caret_column=caret_column,
        )


class LoopStructureError(LoopSyntaxError):
    """
    Block structure error.

    Raised when:
        - END appears with no open block
        - ELSE does not close the 'then' arm of an IF
        - Input continues after the program has logically ended
    """
    pass


# =============================================================================
# Other Errors
# =============================================================================

class InternalCompilerError(LoopError):
    """
    The code emitter met an instruction the parser never produces.

    This signals a defect in the translator rather than bad input.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"internal error: {message}")


class SourceUnavailableError(LoopError):
    """
    A source or output file cannot be opened, read, or written.

    Attributes:
        filename: The file that failed
        reason: The operating system's description of the failure
        action: "read" or "write"
    """

    def __init__(self, filename: str, reason: str, action: str = "read"):
        self.filename = filename
        self.reason = reason
        self.action = action
        super().__init__(f"cannot {action} '{filename}': {reason}")


class LoopConfigError(LoopError):
    """Invalid translator configuration (empty names, unknown types)."""
    pass
