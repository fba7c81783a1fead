"""
LOOP-to-C Translator
====================

This package translates programs written in the LOOP teaching language,
optionally extended with WHILE, IF/ELSE, relational tests, and richer
assignments, into C source operating on an array of fixed-width
unsigned integers.

Pipeline
--------
    LOOP source → PositionedReader → LoopParser → Instruction tree
                → CodeEmitter → C source (+ optional header)

Quick Start
-----------
Translate a string:
    >>> from loopc import compile_loop, GrammarProfile
    >>> c_source = compile_loop("LOOP x1 DO x0 := x0 + 1 END")

Translate a file with extensions:
    >>> from loopc import LoopCompiler, CompilerOptions
    >>> compiler = LoopCompiler(CompilerOptions(profile=GrammarProfile.klausur()))
    >>> result = compiler.compile_file("max.loop")
    >>> print(result.c_source)

Or use the command-line tool:
    $ loopc -k max.loop -o max.c
    $ cc max.c -o max && ./max 3 7

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from loopc.errors import (
    LoopError,
    LoopSyntaxError,
    UnexpectedEndOfInputError,
    ExpectedTokenError,
    LoopStructureError,
    InternalCompilerError,
    SourceUnavailableError,
    LoopConfigError,
    SourceLocation,
)
from loopc.profile import GrammarProfile
from loopc.reader import PositionedReader, EOF
from loopc.program import (
    Instruction,
    InstructionKind,
    AssignmentOperator,
    Relation,
    Program,
    ProgramPrinter,
    walk,
)
from loopc.parser import LoopParser, parse_source
from loopc.codegen import CodeEmitter, INTEGER_TYPES, DEFAULT_TYPE, print_macro_for
from loopc.compiler import (
    LoopCompiler,
    CompilerOptions,
    CompilerResult,
    compile_loop,
    normalize_output_path,
    header_path_for,
    write_result,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "LoopError",
    "LoopSyntaxError",
    "UnexpectedEndOfInputError",
    "ExpectedTokenError",
    "LoopStructureError",
    "InternalCompilerError",
    "SourceUnavailableError",
    "LoopConfigError",
    "SourceLocation",
    # Configuration
    "GrammarProfile",
    # Reader
    "PositionedReader",
    "EOF",
    # Instruction tree
    "Instruction",
    "InstructionKind",
    "AssignmentOperator",
    "Relation",
    "Program",
    "ProgramPrinter",
    "walk",
    # Parser
    "LoopParser",
    "parse_source",
    # Code generator
    "CodeEmitter",
    "INTEGER_TYPES",
    "DEFAULT_TYPE",
    "print_macro_for",
    # Compiler driver
    "LoopCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_loop",
    "normalize_output_path",
    "header_path_for",
    "write_result",
]
