"""
LOOP Parser
===========

This module turns LOOP source text into an instruction tree. It reads
characters straight from a PositionedReader; there is no token stream.

Grammar
-------
program      ::= instruction ((';' | closer) instruction)*
instruction  ::= assignment | loop | while | if
assignment   ::= 'x' N ':=' ( 'x' N op operand        (base form)
                            | N                        (-a)
                            | 'x' N )                  (-a)
op           ::= '+' | '-' | '*' | 'DIV' | 'MOD'       (*, DIV, MOD with -O)
loop         ::= 'LOOP' 'x' N 'DO' program 'END'
while        ::= 'WHILE' 'x' N rel operand 'DO' program 'END'     (-w)
if           ::= 'IF' 'x' N rel operand 'THEN' program
                 ('ELSE' program)? 'END'                          (-i)
rel          ::= '!=' (WHILE) | '=' (IF)
               | '=' | '!=' | '>' | '>=' | '<' | '<='             (-W, -I)
operand      ::= '0' | N | 'x' N                       (N and x N with -a/-W/-I)

Whitespace is required between words (and before END after a statement)
unless the profile allows missing whitespace.

Nesting Strategy
----------------
Blocks are not parsed by recursive calls. The parser runs one loop over
instructions and keeps an explicit stack of the block openers that are
still waiting for their END:

- A block opener is filled in, pushed, and gets a fresh placeholder as
  its body; parsing continues at that placeholder.
- ';' gives the current instruction a fresh placeholder as its next.
- END pops the stack. Closers chain: after END the parser goes straight
  back to looking for ';', END, ELSE, or end of input, so ``END END``
  closes two blocks without an instruction in between.
- ELSE pops the enclosing IF, attaches an ELSE instruction as its next,
  and opens the ELSE's body, so it both closes and opens a block.

Example Usage
-------------
>>> from loopc.parser import parse_source
>>> program = parse_source("LOOP x1 DO x0 := x0 + 1 END")
>>> program.root.kind
<InstructionKind.BOUNDED_LOOP: 2>
>>> program.highest_index
1
"""

import logging
from typing import Optional

from loopc.errors import (
    ExpectedTokenError,
    LoopStructureError,
    SourceLocation,
    UnexpectedEndOfInputError,
)
from loopc.profile import GrammarProfile
from loopc.program import (
    AssignmentOperator,
    Instruction,
    InstructionKind,
    Program,
    Relation,
)
from loopc.reader import EOF, PositionedReader


logger = logging.getLogger(__name__)

WHITESPACE = " \t\r\n"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_whitespace(char: str) -> bool:
    return char != EOF and char in WHITESPACE


class LoopParser:
    """
    Builds the instruction tree for one LOOP source.

    The parser stops at the first error; every error is a LoopSyntaxError
    subclass positioned at the failing character.

    Attributes:
        reader: Character source
        profile: Grammar extensions accepted
        highest_index: Largest variable index seen so far in this parse
    """

    def __init__(self, reader: PositionedReader, profile: Optional[GrammarProfile] = None):
        """
        Initialize the parser.

        Args:
            reader: Positioned reader over the program text
            profile: Grammar extensions to accept (base LOOP if None)
        """
        self.reader = reader
        self.profile = profile or GrammarProfile.base()
        self.highest_index = 0

    def parse(self) -> Program:
        """
        Parse the whole source into a Program.

        Returns:
            Program holding the tree root and the highest variable index

        Raises:
            LoopSyntaxError: If the source is malformed
        """
        self.highest_index = 0
        reader = self.reader
        profile = self.profile

        root = Instruction()
        current: Optional[Instruction] = root
        stack: list[Instruction] = []

        while current is not None:
            self._skip_whitespace(0)
            char = reader.next_char()
            current.location = reader.location

            if char == EOF:
                raise reader.error(UnexpectedEndOfInputError)
            elif char == "x":
                trailing = self._parse_assignment(current)
            elif char == "L":
                self._parse_loop(current)
                current = self._open_block(current, stack)
                continue
            elif char == "W" and profile.allow_while:
                self._parse_while(current)
                current = self._open_block(current, stack)
                continue
            elif char == "I" and profile.allow_if:
                self._parse_if(current)
                current = self._open_block(current, stack)
                continue
            else:
                raise reader.error(ExpectedTokenError, "beginning of instruction")

            current = self._finish_statement(current, stack, trailing)

        program = Program(root, self.highest_index, reader.name)
        logger.debug(
            f"Parsed {program.count()} instructions from {reader.name} "
            f"(highest index {program.highest_index})"
        )
        return program

    # =========================================================================
    # Block Structure
    # =========================================================================

    def _open_block(self, opener: Instruction, stack: list[Instruction]) -> Instruction:
        """Push a filled-in block opener and return its empty body."""
        opener.body = Instruction()
        stack.append(opener)
        return opener.body

    def _finish_statement(
        self,
        current: Instruction,
        stack: list[Instruction],
        trailing: int,
    ) -> Optional[Instruction]:
        """
        Resolve what follows a completed instruction.

        Handles ';', any chain of END closers, ELSE, and end of input.

        Args:
            current: The instruction just completed
            stack: Enclosing block openers
            trailing: Whitespace characters consumed after the instruction

        Returns:
            The placeholder to parse next, or None when the program is done
        """
        reader = self.reader
        profile = self.profile

        while True:
            char = reader.next_char()

            if char == ";":
                current.next = Instruction()
                return current.next

            if char == "E":
                if trailing == 0 and not profile.allow_missing_whitespace:
                    raise reader.error(ExpectedTokenError, "whitespace")
                start = reader.location
                char = reader.next_char()
                if char == "N":
                    self._expect("D", keyword="END")
                    if not stack:
                        raise reader.error(LoopStructureError, "unexpected END")
                    current = stack.pop()
                    trailing = self._skip_whitespace(0)
                    continue
                if char == "L":
                    self._expect("SE", keyword="ELSE")
                    return self._open_else(stack, start)
                if char == EOF:
                    raise reader.error(UnexpectedEndOfInputError)
                if profile.allow_if_extended:
                    raise reader.error(ExpectedTokenError, '"END" or "ELSE"')
                raise reader.error(ExpectedTokenError, '"END"')

            if char == EOF:
                if stack:
                    raise reader.error(UnexpectedEndOfInputError)
                return None

            if stack:
                raise reader.error(ExpectedTokenError, "';' or \"END\"")
            raise reader.error(LoopStructureError, "expected ';' or end of input")

    def _open_else(self, stack: list[Instruction], location: SourceLocation) -> Instruction:
        """Close the 'then' arm of the enclosing IF and open its ELSE body."""
        reader = self.reader
        enclosing = stack.pop() if stack else None
        if (
            enclosing is None
            or enclosing.kind is not InstructionKind.IF_BRANCH_START
            or not self.profile.allow_if_extended
        ):
            raise reader.error(LoopStructureError, "unexpected ELSE")

        self._skip_whitespace(1)
        else_branch = Instruction(kind=InstructionKind.IF_BRANCH_ELSE, location=location)
        enclosing.next = else_branch
        return self._open_block(else_branch, stack)

    # =========================================================================
    # Instructions
    # =========================================================================

    def _parse_assignment(self, node: Instruction) -> int:
        """
        Parse ``x<i> := ...`` after the leading 'x'.

        Returns:
            Number of whitespace characters consumed after the instruction
        """
        reader = self.reader
        profile = self.profile
        extended = profile.allow_extended_assignment

        node.kind = InstructionKind.ASSIGNMENT
        node.target_index = self._parse_variable_index()
        self._skip_whitespace(1)
        self._expect(":=")
        self._skip_whitespace(1)

        if extended and _is_digit(reader.peek()):
            node.operator = AssignmentOperator.SET_CONSTANT
            node.literal = self._parse_number()
            return self._skip_whitespace(0)

        self._expect("x")
        node.source_index = self._parse_variable_index()

        if extended:
            trailing = self._skip_whitespace(0)
            char = reader.peek()
            if char in (";", "E") or char == EOF:
                if char == "E" and trailing == 0 and not profile.allow_missing_whitespace:
                    raise reader.error(ExpectedTokenError, "whitespace")
                node.operator = AssignmentOperator.COPY_VARIABLE
                return trailing
        else:
            self._skip_whitespace(1)

        node.operator = self._parse_operator()
        self._skip_whitespace(1)

        if extended:
            char = reader.next_char()
            if char == "x":
                node.operand_is_variable = True
            elif _is_digit(char):
                reader.push_back()
            elif char == EOF:
                raise reader.error(UnexpectedEndOfInputError)
            else:
                raise reader.error(ExpectedTokenError, "a variable or number")

        if node.operand_is_variable:
            node.literal = self._parse_variable_index()
        else:
            node.literal = self._parse_number()
        return self._skip_whitespace(0)

    def _parse_operator(self) -> AssignmentOperator:
        reader = self.reader
        operations = self.profile.allow_operations

        char = reader.next_char()
        if char == "+":
            return AssignmentOperator.ADD
        if char == "-":
            return AssignmentOperator.SUBTRACT_SATURATING
        if operations and char == "*":
            return AssignmentOperator.MULTIPLY
        if operations and char == "D":
            self._expect("IV", keyword="DIV")
            return AssignmentOperator.DIVIDE
        if operations and char == "M":
            self._expect("OD", keyword="MOD")
            return AssignmentOperator.MODULO
        if char == EOF:
            raise reader.error(UnexpectedEndOfInputError)
        if operations:
            raise reader.error(ExpectedTokenError, "'+', '-', '*', \"DIV\", or \"MOD\"")
        raise reader.error(ExpectedTokenError, "'+' or '-'")

    def _parse_loop(self, node: Instruction) -> None:
        """Parse ``LOOP x<i> DO`` after the leading 'L'."""
        node.kind = InstructionKind.BOUNDED_LOOP
        self._expect("OOP", keyword="LOOP")
        self._skip_whitespace(1)
        self._expect("x")
        node.target_index = self._parse_variable_index()
        self._skip_whitespace(1)
        self._expect("DO")
        self._skip_whitespace(1)

    def _parse_while(self, node: Instruction) -> None:
        """Parse ``WHILE x<i> <rel> <operand> DO`` after the leading 'W'."""
        extended = self.profile.allow_while_extended

        node.kind = InstructionKind.CONDITIONAL_LOOP
        self._expect("HILE", keyword="WHILE")
        self._skip_whitespace(1)
        self._expect("x")
        node.target_index = self._parse_variable_index()
        self._skip_whitespace(1)
        node.operator = self._parse_relation(Relation.NOT_EQUAL, extended)
        self._skip_whitespace(1)
        self._parse_condition_operand(node, extended)
        self._skip_whitespace(1)
        self._expect("DO")
        self._skip_whitespace(1)

    def _parse_if(self, node: Instruction) -> None:
        """Parse ``IF x<i> <rel> <operand> THEN`` after the leading 'I'."""
        extended = self.profile.allow_if_extended

        node.kind = InstructionKind.IF_BRANCH_START
        self._expect("F", keyword="IF")
        self._skip_whitespace(1)
        self._expect("x")
        node.target_index = self._parse_variable_index()
        self._skip_whitespace(1)
        node.operator = self._parse_relation(Relation.EQUAL, extended)
        self._skip_whitespace(1)
        self._parse_condition_operand(node, extended)
        self._skip_whitespace(1)
        self._expect("THEN")
        self._skip_whitespace(1)

    def _parse_relation(self, base: Relation, extended: bool) -> Relation:
        """
        Parse a relational operator.

        Args:
            base: The only relation accepted without the extension
            extended: Accept every relation
        """
        reader = self.reader

        char = reader.next_char()
        if char == "!" and (extended or base is Relation.NOT_EQUAL):
            self._expect("=", keyword="!=")
            return Relation.NOT_EQUAL
        if char == "=" and (extended or base is Relation.EQUAL):
            return Relation.EQUAL
        if extended and char in (">", "<"):
            follow = reader.next_char()
            if follow == "=":
                return Relation.GREATER_EQUAL if char == ">" else Relation.LESS_EQUAL
            reader.push_back()
            return Relation.GREATER if char == ">" else Relation.LESS
        if char == EOF:
            raise reader.error(UnexpectedEndOfInputError)
        if extended:
            raise reader.error(ExpectedTokenError, '"=", "!=", ">", ">=", "<", or "<="')
        if base is Relation.NOT_EQUAL:
            raise reader.error(ExpectedTokenError, '"!="')
        raise reader.error(ExpectedTokenError, "'='")

    def _parse_condition_operand(self, node: Instruction, extended: bool) -> None:
        """Parse the right side of a WHILE or IF test."""
        reader = self.reader

        if not extended:
            self._expect("0")
            node.literal = 0
            return

        if reader.next_char() == "x":
            node.operand_is_variable = True
            node.literal = self._parse_variable_index()
        else:
            reader.push_back()
            node.literal = self._parse_number()

    # =========================================================================
    # Character-Level Helpers
    # =========================================================================

    def _expect(self, text: str, keyword: Optional[str] = None) -> None:
        """
        Consume text exactly, character by character.

        Args:
            text: Characters that must come next
            keyword: Whole word to name in the error (defaults to text)

        Raises:
            ExpectedTokenError: At the first mismatching character
            UnexpectedEndOfInputError: If the input ends first
        """
        reader = self.reader
        for expected in text:
            char = reader.next_char()
            if char != expected:
                if char == EOF:
                    raise reader.error(UnexpectedEndOfInputError)
                label = keyword or text
                quoted = f"'{label}'" if len(label) == 1 else f'"{label}"'
                raise reader.error(ExpectedTokenError, quoted)

    def _skip_whitespace(self, minimum: int) -> int:
        """
        Consume whitespace and return how many characters were skipped.

        Raises:
            ExpectedTokenError: If fewer than minimum were found and
                missing whitespace is not allowed
            UnexpectedEndOfInputError: Same, when the input has ended
        """
        reader = self.reader
        count = 0
        char = reader.next_char()
        while _is_whitespace(char):
            count += 1
            char = reader.next_char()

        if count < minimum and not self.profile.allow_missing_whitespace:
            if char == EOF:
                raise reader.error(UnexpectedEndOfInputError)
            raise reader.error(ExpectedTokenError, "whitespace")

        reader.push_back()
        return count

    def _parse_number(self) -> int:
        """Parse one or more decimal digits."""
        reader = self.reader
        digits = []
        char = reader.next_char()
        while _is_digit(char):
            digits.append(char)
            char = reader.next_char()

        if not digits:
            if char == EOF:
                raise reader.error(UnexpectedEndOfInputError)
            raise reader.error(ExpectedTokenError, "number")

        reader.push_back()
        return int("".join(digits))

    def _parse_variable_index(self) -> int:
        """Parse the N of ``x<N>`` and track the highest index."""
        index = self._parse_number()
        if index > self.highest_index:
            self.highest_index = index
        return index


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    profile: Optional[GrammarProfile] = None,
    filename: str = "<input>",
) -> Program:
    """
    Parse LOOP source text.

    Args:
        source: Program text
        profile: Grammar extensions to accept (base LOOP if None)
        filename: Source name for error messages

    Returns:
        The parsed Program

    Raises:
        LoopSyntaxError: If the source is malformed
    """
    reader = PositionedReader.from_string(source, filename)
    return LoopParser(reader, profile).parse()
