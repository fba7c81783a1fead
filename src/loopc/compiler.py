"""
LOOP Compiler Main Module
=========================

This module provides the main translator interface. It orchestrates the
complete translation:

    Source → Reader → Parser → Instruction tree → Code Emitter → C

Usage
-----
Command line:
    $ loopc -O -a program.loop -o program.c

Programmatic:
    >>> from loopc import compile_loop
    >>> c_source = compile_loop("x0 := x1 + 1")

Error Handling
--------------
Translation stops at the first error. Nothing is written until the whole
program has been parsed and emitted, so a failed run never leaves a
truncated output file behind.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loopc.codegen import DEFAULT_TYPE, CodeEmitter, print_macro_for
from loopc.errors import LoopConfigError, SourceUnavailableError
from loopc.parser import LoopParser
from loopc.profile import GrammarProfile
from loopc.program import Program
from loopc.reader import PositionedReader


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Translator configuration options.

    Attributes:
        profile: Grammar extensions accepted by the parser
        function_name: Name of the generated C function
        type_name: Unsigned integer type of the variable array
        emit_header: Also generate a declaration-only header
        header_name: File name of the header, written next to the C file
                     and included by it (required in header mode)
    """
    profile: GrammarProfile = field(default_factory=GrammarProfile.base)
    function_name: str = "program"
    type_name: str = DEFAULT_TYPE
    emit_header: bool = False
    header_name: Optional[str] = None

    def __post_init__(self):
        if not self.function_name:
            raise LoopConfigError("function name must not be empty")
        print_macro_for(self.type_name)
        if self.emit_header:
            if not self.header_name:
                raise LoopConfigError("header mode needs a header file name")
            if Path(self.header_name).name != self.header_name:
                raise LoopConfigError(f"header name '{self.header_name}' must be a plain file name")


@dataclass
class CompilerResult:
    """
    Result of a translation.

    Attributes:
        filename: Source filename
        success: True if translation succeeded
        program: Parsed instruction tree
        c_source: Generated C file
        header_source: Generated header (header mode only)
        header_name: File name the C file includes (header mode only)
        highest_index: Largest variable index used by the program
        instruction_count: Number of instructions in the tree
    """
    filename: str = ""
    success: bool = False
    program: Optional[Program] = None
    c_source: str = ""
    header_source: Optional[str] = None
    header_name: Optional[str] = None
    highest_index: int = 0
    instruction_count: int = 0


class LoopCompiler:
    """
    LOOP-to-C translator.

    Example:
        compiler = LoopCompiler(CompilerOptions(profile=GrammarProfile.klausur()))
        result = compiler.compile_file("sum.loop")
        print(result.c_source)

    Attributes:
        options: Translator configuration
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()
        self._emitter = CodeEmitter(self.options.type_name)

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Translate LOOP source text.

        Args:
            source: Program text
            filename: Source filename for error messages

        Returns:
            CompilerResult with the generated C

        Raises:
            LoopSyntaxError: If the program is malformed
        """
        return self._compile(PositionedReader.from_string(source, filename))

    def compile_file(self, filepath: str | Path) -> CompilerResult:
        """
        Translate a LOOP source file.

        Raises:
            SourceUnavailableError: If the file cannot be read
            LoopSyntaxError: If the program is malformed
        """
        with PositionedReader.from_file(filepath) as reader:
            return self._compile(reader)

    def _compile(self, reader: PositionedReader) -> CompilerResult:
        options = self.options
        logger.debug(f"Translating {reader.name} with profile: {options.profile}")

        program = LoopParser(reader, options.profile).parse()

        result = CompilerResult(filename=reader.name, program=program)
        result.highest_index = program.highest_index
        result.instruction_count = program.count()

        if options.emit_header:
            result.header_name = options.header_name
            result.header_source = self._emitter.generate_header(options.function_name)
        result.c_source = self._emitter.generate(program, options.function_name, result.header_name)

        result.success = True
        logger.debug(
            f"Translated {result.instruction_count} instructions, "
            f"{len(result.c_source)} bytes of C"
        )
        return result


# =============================================================================
# Output Files
# =============================================================================

def normalize_output_path(path: str | Path) -> Path:
    """
    Give an output name the '.c' extension unless it already has it.

    Example:
        >>> normalize_output_path("a")
        PosixPath('a.c')
    """
    text = str(path)
    if not text.endswith(".c"):
        text += ".c"
    return Path(text)


def header_path_for(output_path: str | Path) -> Path:
    """Return the header path that belongs to a '.c' output path."""
    return Path(output_path).with_suffix(".h")


def write_result(result: CompilerResult, output_path: str | Path) -> list[Path]:
    """
    Write a successful translation to disk.

    The C file goes to output_path. In header mode the header is written
    into the same directory under the name the C file includes.

    Either every file is written or none is: if a later write fails, the
    files already written by this call are removed again.

    Returns:
        The paths written

    Raises:
        SourceUnavailableError: If an output file cannot be written
    """
    output_path = Path(output_path)
    outputs = [(output_path, result.c_source)]
    if result.header_source is not None:
        outputs.append((output_path.with_name(result.header_name), result.header_source))

    written: list[Path] = []
    for path, text in outputs:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            _remove_outputs(written)
            raise SourceUnavailableError(str(path), e.strerror or str(e), action="write") from e
        logger.debug(f"Wrote {len(text)} bytes to {path}")
        written.append(path)
    return written


def _remove_outputs(paths: list[Path]) -> None:
    for path in paths:
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial output {path}: {e}")
        else:
            logger.debug(f"Removed partial output {path}")


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_loop(
    source: str,
    profile: Optional[GrammarProfile] = None,
    function_name: str = "program",
    filename: str = "<input>",
) -> str:
    """
    Translate LOOP source text to a complete C file.

    Args:
        source: Program text
        profile: Grammar extensions to accept (base LOOP if None)
        function_name: Name of the generated C function
        filename: Source filename for error messages

    Returns:
        Generated C source

    Example:
        >>> c_source = compile_loop("LOOP x1 DO x0 := x0 + 1 END")
    """
    options = CompilerOptions(
        profile=profile or GrammarProfile.base(),
        function_name=function_name,
    )
    return LoopCompiler(options).compile_source(source, filename).c_source
