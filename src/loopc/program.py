"""
LOOP Instruction Tree
=====================

This module defines the tree produced by the LOOP parser and consumed by
the code emitter.

Tree Shape
----------
Each Instruction holds two optional owned links:

- ``body``: the first instruction of the block this instruction opens
  (LOOP, WHILE, IF, ELSE)
- ``next``: the following instruction in the same block

so the program is a first-child / next-sibling tree. For example

    LOOP x1 DO x0 := x0 + 1; x2 := x2 + 1 END; x3 := x0 + 0

becomes

    LOOP x1 ──next──> x3 := x0 + 0
      │
     body
      │
    x0 := x0 + 1 ──next──> x2 := x2 + 1

An ELSE is the ``next`` of its IF; the 'else' arm is the ELSE's body.

Design Notes
------------
- Links are only ever set to freshly allocated nodes, so the tree has
  no cycles and no node has two owners.
- Instructions compare by identity and do not include their links in
  repr(), so deep trees never recurse.
- All traversals here use explicit stacks.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, Optional, Union

from loopc.errors import SourceLocation


# =============================================================================
# Instruction Variants
# =============================================================================

class InstructionKind(Enum):
    """Kinds of instruction in a LOOP program."""
    ASSIGNMENT = auto()         # x<i> := ...
    BOUNDED_LOOP = auto()       # LOOP x<i> DO
    CONDITIONAL_LOOP = auto()   # WHILE x<i> <rel> c DO
    IF_BRANCH_START = auto()    # IF x<i> <rel> c THEN
    IF_BRANCH_ELSE = auto()     # ELSE


class AssignmentOperator(Enum):
    """Right-hand side forms of an assignment."""
    SET_CONSTANT = auto()          # x<i> := c
    COPY_VARIABLE = auto()         # x<i> := x<j>
    ADD = auto()                   # x<i> := x<j> + c
    SUBTRACT_SATURATING = auto()   # x<i> := x<j> - c, clamped at 0
    MULTIPLY = auto()              # x<i> := x<j> * c
    DIVIDE = auto()                # x<i> := x<j> DIV c
    MODULO = auto()                # x<i> := x<j> MOD c


class Relation(Enum):
    """Relational tests used by WHILE and IF."""
    EQUAL = auto()           # =
    NOT_EQUAL = auto()       # !=
    GREATER = auto()         # >
    GREATER_EQUAL = auto()   # >=
    LESS = auto()            # <
    LESS_EQUAL = auto()      # <=


BLOCK_OPENERS = frozenset({
    InstructionKind.BOUNDED_LOOP,
    InstructionKind.CONDITIONAL_LOOP,
    InstructionKind.IF_BRANCH_START,
    InstructionKind.IF_BRANCH_ELSE,
})


# =============================================================================
# Tree Nodes
# =============================================================================

@dataclass(eq=False)
class Instruction:
    """
    One statement or block opener.

    A node is allocated as an empty placeholder (kind is None) before the
    parser reads the instruction that fills it.

    Attributes:
        kind: Instruction variant, None while still a placeholder
        operator: AssignmentOperator or Relation, None for LOOP and ELSE
        target_index: Variable written (assignment) or tested (loop, IF)
        source_index: Left operand variable of binary assignments
        literal: Constant operand, or a variable index when
            operand_is_variable is set
        operand_is_variable: literal names a variable rather than a constant
        body: First instruction of the opened block
        next: Following instruction in the same block
        location: Where the instruction starts in the source
    """
    kind: Optional[InstructionKind] = None
    operator: Optional[Union[AssignmentOperator, Relation]] = None
    target_index: int = 0
    source_index: int = 0
    literal: int = 0
    operand_is_variable: bool = False
    body: Optional["Instruction"] = field(default=None, repr=False)
    next: Optional["Instruction"] = field(default=None, repr=False)
    location: Optional[SourceLocation] = field(default=None, repr=False)

    @property
    def opens_block(self) -> bool:
        """True for LOOP, WHILE, IF and ELSE."""
        return self.kind in BLOCK_OPENERS


@dataclass(eq=False)
class Program:
    """
    Result of parsing one LOOP source.

    Attributes:
        root: First instruction of the top-level block
        highest_index: Largest n seen in any x<n> of the source
        source_name: Name of the parsed source
    """
    root: Instruction
    highest_index: int = 0
    source_name: str = "<input>"

    def __iter__(self) -> Iterator[Instruction]:
        for instruction, _ in walk(self.root):
            yield instruction

    def count(self, *kinds: InstructionKind) -> int:
        """Count instructions of the given kinds (all kinds if none given)."""
        return sum(1 for node in self if not kinds or node.kind in kinds)


def walk(root: Optional[Instruction]) -> Iterator[tuple[Instruction, int]]:
    """
    Yield (instruction, depth) pairs in source order.

    Depth is 0 for the top-level block and grows by one inside each body.
    """
    stack: list[tuple[Instruction, int]] = []
    if root is not None:
        stack.append((root, 0))
    while stack:
        node, depth = stack.pop()
        yield node, depth
        # Push next first so the body is visited before the sibling
        if node.next is not None:
            stack.append((node.next, depth))
        if node.body is not None:
            stack.append((node.body, depth + 1))


# =============================================================================
# Tree Printer
# =============================================================================

class ProgramPrinter:
    """
    Pretty printer for instruction tree debugging.

    Usage:
        printer = ProgramPrinter()
        print(printer.print(program))
    """

    RELATION_TEXT = {
        Relation.EQUAL: "=",
        Relation.NOT_EQUAL: "!=",
        Relation.GREATER: ">",
        Relation.GREATER_EQUAL: ">=",
        Relation.LESS: "<",
        Relation.LESS_EQUAL: "<=",
    }

    OPERATOR_TEXT = {
        AssignmentOperator.ADD: "+",
        AssignmentOperator.SUBTRACT_SATURATING: "-",
        AssignmentOperator.MULTIPLY: "*",
        AssignmentOperator.DIVIDE: "DIV",
        AssignmentOperator.MODULO: "MOD",
    }

    def print(self, program: Program) -> str:
        """Print the tree and return it as a string."""
        lines = [f"Program {program.source_name} (highest index {program.highest_index})"]
        for node, depth in walk(program.root):
            lines.append(f"{'  ' * (depth + 1)}{self._describe(node)}")
        return "\n".join(lines)

    def _operand(self, node: Instruction) -> str:
        return f"x{node.literal}" if node.operand_is_variable else str(node.literal)

    def _describe(self, node: Instruction) -> str:
        kind = node.kind
        if kind is InstructionKind.ASSIGNMENT:
            if node.operator is AssignmentOperator.SET_CONSTANT:
                return f"Assign: x{node.target_index} := {node.literal}"
            if node.operator is AssignmentOperator.COPY_VARIABLE:
                return f"Assign: x{node.target_index} := x{node.source_index}"
            symbol = self.OPERATOR_TEXT.get(node.operator, "?")
            return f"Assign: x{node.target_index} := x{node.source_index} {symbol} {self._operand(node)}"
        if kind is InstructionKind.BOUNDED_LOOP:
            return f"Loop: x{node.target_index}"
        if kind is InstructionKind.CONDITIONAL_LOOP:
            return f"While: x{node.target_index} {self.RELATION_TEXT.get(node.operator, '?')} {self._operand(node)}"
        if kind is InstructionKind.IF_BRANCH_START:
            return f"If: x{node.target_index} {self.RELATION_TEXT.get(node.operator, '?')} {self._operand(node)}"
        if kind is InstructionKind.IF_BRANCH_ELSE:
            return "Else"
        return "<empty>"
