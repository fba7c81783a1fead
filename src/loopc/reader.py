"""
LOOP Positioned Reader
======================

This module implements the character source used by the LOOP parser.
There is no separate tokenizer: the parser pulls one character at a time
and pushes back at most one character when it has looked too far.

Buffering
---------
The reader refills from the underlying text stream in fixed-width chunks,
the same way C's fgets() fills a line buffer of BUFFER_WIDTH bytes:
each chunk holds at most BUFFER_WIDTH - 1 characters and ends early at a
newline.

A logical line longer than one chunk is split into *segments*. Moving to
a new chunk inside the same line increments the segment instead of the
line number, and the reported column becomes

    segment * (BUFFER_WIDTH - 1) + column_in_chunk

so diagnostics stay stable across wrapped physical lines.

Example Usage
-------------
>>> from loopc.reader import PositionedReader, EOF
>>> reader = PositionedReader.from_string("x0 := 1", "test.loop")
>>> reader.next_char()
'x'
>>> reader.next_char()
'0'
>>> reader.push_back()
>>> reader.next_char()
'0'
>>> reader.location
SourceLocation(filename='test.loop', line=1, column=2)
"""

import io
from pathlib import Path
from typing import TextIO, Type

from loopc.errors import (
    LoopSyntaxError,
    SourceLocation,
    SourceUnavailableError,
)


# Width of the read buffer, including room for C's terminating NUL
BUFFER_WIDTH = 256

# Returned by next_char() once the source is exhausted
EOF = ""


class PositionedReader:
    """
    Supplies source characters one at a time with position tracking.

    Attributes:
        name: Source name used in diagnostics
        width: Read buffer width (chunks hold width - 1 characters)
        line: Current line number (0 before the first read)
        segment: Chunk index within the current line
    """

    def __init__(
        self,
        stream: TextIO,
        name: str = "<input>",
        width: int = BUFFER_WIDTH,
    ):
        """
        Initialize the reader.

        Args:
            stream: Text stream to read from; only '\\n' ends a line
            name: Source name for error messages
            width: Read buffer width, at least 2
        """
        if width < 2:
            raise ValueError(f"buffer width must be at least 2, got {width}")

        self.name = name
        self.width = width
        self._stream = stream

        self._buffer = ""
        self._position = 0
        self.line = 0
        self.segment = 0
        self._end_of_line = True

    @classmethod
    def from_string(cls, text: str, name: str = "<input>", width: int = BUFFER_WIDTH) -> "PositionedReader":
        """Create a reader over an in-memory program text."""
        return cls(io.StringIO(text, newline="\n"), name, width)

    @classmethod
    def from_file(cls, path: str | Path, width: int = BUFFER_WIDTH) -> "PositionedReader":
        """
        Open a program file for reading.

        Raises:
            SourceUnavailableError: If the file cannot be opened
        """
        try:
            stream = open(path, "r", encoding="utf-8", newline="\n")
        except OSError as e:
            raise SourceUnavailableError(str(path), e.strerror or str(e)) from e
        return cls(stream, str(path), width)

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()

    def __enter__(self) -> "PositionedReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    # =========================================================================
    # Character Access
    # =========================================================================

    def next_char(self) -> str:
        """
        Consume and return the next character, or EOF when exhausted.

        Raises:
            SourceUnavailableError: If the stream fails while refilling
        """
        while True:
            if self._position < len(self._buffer):
                char = self._buffer[self._position]
                self._position += 1
                return char

            # Step past the end of the chunk, as reading the NUL would
            self._position = len(self._buffer) + 1
            chunk = self._refill()
            if not chunk:
                return EOF

            if self._end_of_line:
                self.line += 1
                self.segment = 0
            else:
                self.segment += 1
            self._buffer = chunk
            self._position = 0
            self._end_of_line = chunk.endswith("\n")

    def push_back(self) -> None:
        """Un-read the character returned by the last next_char() call."""
        if self._position > 0:
            self._position -= 1

    def peek(self) -> str:
        """Return the next character without consuming it."""
        char = self.next_char()
        self.push_back()
        return char

    def _refill(self) -> str:
        try:
            return self._stream.readline(self.width - 1)
        except OSError as e:
            raise SourceUnavailableError(self.name, e.strerror or str(e)) from e
        except UnicodeDecodeError as e:
            raise SourceUnavailableError(self.name, str(e)) from e

    # =========================================================================
    # Position and Diagnostics
    # =========================================================================

    @property
    def column(self) -> int:
        """Column of the last consumed character, counted across segments."""
        return self.segment * (self.width - 1) + self._position

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for the last consumed character."""
        return SourceLocation(self.name, self.line, self.column)

    @property
    def current_line(self) -> str:
        """The current chunk with tabs, CRs and newlines shown as spaces."""
        return self._buffer.translate(_WHITESPACE_TO_SPACES)

    def error(self, error_class: Type[LoopSyntaxError] = LoopSyntaxError, *args) -> LoopSyntaxError:
        """
        Create a positioned error at the last consumed character.

        Args:
            error_class: LoopSyntaxError subclass to instantiate
            *args: Leading constructor arguments (the message or expected text)

        Returns:
            The error, ready to be raised
        """
        return error_class(
            *args,
            location=self.location,
            source_line=self.current_line,
            caret_column=self._position,
        )


_WHITESPACE_TO_SPACES = str.maketrans("\t\r\n", "   ")
