"""
C Code Generator for LOOP
=========================

This module lowers a parsed LOOP program to C. The program variables
live in one array ``x`` of a fixed-width unsigned integer type; x[0] is
the result and x[1..] hold the arguments.

Lowering Table
--------------
| Instruction                 | C                                      |
|-----------------------------|----------------------------------------|
| x<i> := c                   | x[i] = c;                              |
| x<i> := x<j>                | x[i] = x[j];                           |
| x<i> := x<j> + c            | x[i] = x[j] + c;                       |
| x<i> := x<j> - c            | x[i] = x[j] > c ? x[j] - c : 0;        |
| x<i> := x<j> * / DIV / MOD c| x[i] = x[j] * c;  / and % likewise     |
| LOOP x<i> DO                | for (T i = x[i]; i; --i) {             |
| WHILE x<i> <rel> c DO       | while (x[i] <rel> c) {                 |
| IF x<i> <rel> c THEN        | if (x[i] <rel> c) {                    |
| ELSE                        | } else {                               |
| END                         | }                                      |

A variable operand ``x<k>`` is written as ``x[k]`` in place of c.
Subtraction is natural-number subtraction: the comparison comes first,
so the unsigned difference is never taken when it would wrap.

The LOOP counter is a fresh block-local ``i``, so the number of
iterations is fixed when the loop starts even if the body changes x[i].

Traversal
---------
The body is emitted with an explicit stack that mirrors the parser's:
descending into a body pushes the opener and indents one level; every
pop on the way back out writes one closing brace.

Generated File Layout
---------------------
    #include <stdlib.h> ... <inttypes.h>
    #include "name.h"                         (header mode only)

    T program(T argc, T *argv) {
        T *x = calloc(N + 1, sizeof(T));
        ... copy up to N arguments into x[1..N] ...
        <translated body>

        T ret = x[0];
        free(x);
        return ret;
    }

    int main(int argc, char **argv) { ... }
"""

import logging
from typing import Optional

from loopc.errors import InternalCompilerError, LoopConfigError
from loopc.program import (
    AssignmentOperator,
    Instruction,
    InstructionKind,
    Program,
    Relation,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Integer Types
# =============================================================================

# Supported unsigned types and the <inttypes.h> macro that prints them
INTEGER_TYPES: dict[str, str] = {
    "uint_fast64_t": "PRIuFAST64",
    "uint64_t": "PRIu64",
    "uint_least64_t": "PRIuLEAST64",
    "uintmax_t": "PRIuMAX",
    "uint_fast32_t": "PRIuFAST32",
    "uint32_t": "PRIu32",
    "uint16_t": "PRIu16",
    "uint8_t": "PRIu8",
}

DEFAULT_TYPE = "uint_fast64_t"


def print_macro_for(type_name: str) -> str:
    """
    Return the <inttypes.h> print macro for a supported integer type.

    Raises:
        LoopConfigError: If the type is not supported
    """
    try:
        return INTEGER_TYPES[type_name]
    except KeyError:
        supported = ", ".join(INTEGER_TYPES)
        raise LoopConfigError(
            f"unsupported integer type '{type_name}' (supported: {supported})"
        ) from None


# =============================================================================
# Boilerplate Templates
# =============================================================================

INCLUDES = (
    "#include <stdlib.h>\n"
    "#include <stdio.h>\n"
    "#include <string.h>\n"
    "#include <inttypes.h>\n"
)

FUNCTION_START = (
    "\n"
    "{type} {name}({type} argc, {type} *argv) {{\n"
    "\t{type} *x = calloc({size}, sizeof({type}));\n"
    "\t{type} n = argc < {highest} ? argc : {highest};\n"
    "\tmemcpy(x + 1, argv, n * sizeof({type}));\n"
)

FUNCTION_END = (
    "\n"
    "\t{type} ret = x[0];\n"
    "\tfree(x);\n"
    "\treturn ret;\n"
    "}}\n"
    "\n"
    "int main(int argc, char **argv) {{\n"
    "\t{type} *arr = malloc((argc - 1) * sizeof({type}));\n"
    "\tfor (int i = 0; i < argc - 1; ++i) {{\n"
    "\t\tarr[i] = strtoull(argv[i + 1], NULL, 10);\n"
    "\t}}\n"
    "\t{type} res = {name}(argc - 1, arr);\n"
    "\tfree(arr);\n"
    "\tprintf(\"%\" {print_macro} \"\\n\", res);\n"
    "\treturn 0;\n"
    "}}\n"
)

HEADER = (
    "#ifndef LOOP_{name}_H\n"
    "#define LOOP_{name}_H\n"
    "\n"
    "{type} {name}({type} argc, {type} *argv);\n"
    "\n"
    "#endif\n"
)


# =============================================================================
# Code Emitter
# =============================================================================

class CodeEmitter:
    """
    Generates C source from a LOOP instruction tree.

    The emitter never modifies the tree. It assumes the tree came from
    LoopParser; an instruction the parser cannot produce raises
    InternalCompilerError.

    Attributes:
        type_name: Unsigned integer type of the variable array
        print_macro: <inttypes.h> macro used to print the result
    """

    C_RELATIONS = {
        Relation.EQUAL: "==",
        Relation.NOT_EQUAL: "!=",
        Relation.GREATER: ">",
        Relation.GREATER_EQUAL: ">=",
        Relation.LESS: "<",
        Relation.LESS_EQUAL: "<=",
    }

    C_OPERATORS = {
        AssignmentOperator.ADD: "+",
        AssignmentOperator.MULTIPLY: "*",
        AssignmentOperator.DIVIDE: "/",
        AssignmentOperator.MODULO: "%",
    }

    def __init__(self, type_name: str = DEFAULT_TYPE):
        """
        Initialize the emitter.

        Args:
            type_name: One of INTEGER_TYPES

        Raises:
            LoopConfigError: If the type is not supported
        """
        self.print_macro = print_macro_for(type_name)
        self.type_name = type_name

    # =========================================================================
    # Translation Unit
    # =========================================================================

    def generate(
        self,
        program: Program,
        function_name: str = "program",
        header_name: Optional[str] = None,
    ) -> str:
        """
        Generate a complete C file for the program.

        Args:
            program: Parsed program
            function_name: Name of the generated C function
            header_name: If given, the file includes this header

        Returns:
            C source text
        """
        if program.root is None:
            raise InternalCompilerError("encountered empty program")

        parts = [INCLUDES]
        if header_name:
            parts.append(f'#include "{header_name}"\n')
        parts.append(FUNCTION_START.format(
            type=self.type_name,
            name=function_name,
            size=program.highest_index + 1,
            highest=program.highest_index,
        ))
        parts.append(self.emit_body(program.root))
        parts.append("\n")
        parts.append(FUNCTION_END.format(
            type=self.type_name,
            name=function_name,
            print_macro=self.print_macro,
        ))
        return "".join(parts)

    def generate_header(self, function_name: str = "program") -> str:
        """Generate the declaration-only header for the function."""
        return HEADER.format(type=self.type_name, name=function_name)

    # =========================================================================
    # Body Lowering
    # =========================================================================

    def emit_body(self, root: Instruction, indentation: int = 1) -> str:
        """
        Lower an instruction tree to C statements.

        Args:
            root: First instruction of the top-level block
            indentation: Tab depth of the top-level block

        Returns:
            The statements, one per line, without a trailing newline
        """
        lines: list[str] = []
        stack: list[Instruction] = []
        node: Optional[Instruction] = root
        opened = closed = 0

        while node is not None:
            text = self.emit_instruction(node)
            if node.kind is InstructionKind.IF_BRANCH_ELSE and lines:
                lines[-1] += " " + text
            else:
                lines.append("\t" * indentation + text)

            if node.opens_block:
                if node.body is None:
                    raise InternalCompilerError("encountered block without body")
                stack.append(node)
                node = node.body
                indentation += 1
                opened += 1
                continue

            while node.next is None:
                if not stack:
                    node = None
                    break
                node = stack.pop()
                indentation -= 1
                lines.append("\t" * indentation + "}")
                closed += 1

            if node is not None:
                node = node.next

        logger.debug(f"Emitted {len(lines)} lines ({opened} blocks opened, {closed} closed)")
        return "\n".join(lines)

    def emit_instruction(self, node: Instruction) -> str:
        """Return the C text that opens or performs one instruction."""
        kind = node.kind
        if kind is InstructionKind.ASSIGNMENT:
            return self._emit_assignment(node)
        if kind is InstructionKind.BOUNDED_LOOP:
            return f"for ({self.type_name} i = x[{node.target_index}]; i; --i) {{"
        if kind is InstructionKind.CONDITIONAL_LOOP:
            return f"while ({self._condition(node, 'WHILE')}) {{"
        if kind is InstructionKind.IF_BRANCH_START:
            return f"if ({self._condition(node, 'IF')}) {{"
        if kind is InstructionKind.IF_BRANCH_ELSE:
            return "else {"
        raise InternalCompilerError("encountered instruction of undefined type")

    def _operand(self, node: Instruction) -> str:
        if node.operand_is_variable:
            return f"x[{node.literal}]"
        return str(node.literal)

    def _emit_assignment(self, node: Instruction) -> str:
        target = f"x[{node.target_index}]"
        source = f"x[{node.source_index}]"
        operator = node.operator

        if operator is AssignmentOperator.SET_CONSTANT:
            return f"{target} = {node.literal};"
        if operator is AssignmentOperator.COPY_VARIABLE:
            return f"{target} = {source};"
        if operator is AssignmentOperator.SUBTRACT_SATURATING:
            operand = self._operand(node)
            return f"{target} = {source} > {operand} ? {source} - {operand} : 0;"
        if operator in self.C_OPERATORS:
            return f"{target} = {source} {self.C_OPERATORS[operator]} {self._operand(node)};"
        raise InternalCompilerError("encountered assignment with undefined operation")

    def _condition(self, node: Instruction, keyword: str) -> str:
        relation = self.C_RELATIONS.get(node.operator)
        if relation is None:
            raise InternalCompilerError(f"encountered {keyword} with undefined relation")
        return f"x[{node.target_index}] {relation} {self._operand(node)}"
