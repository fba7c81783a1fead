"""
Grammar Extension Profile
=========================

The base LOOP language has only assignments of the form
``x<i> := x<j> + c`` / ``x<i> := x<j> - c`` and ``LOOP x<i> DO ... END``.
A GrammarProfile selects which extensions the parser accepts on top:

| Flag                       | CLI  | Adds                                      |
|----------------------------|------|-------------------------------------------|
| allow_while                | -w   | WHILE x<i> != 0 DO ... END                |
| allow_while_extended       | -W   | all relations, variable/any operands      |
| allow_operations           | -O   | *, DIV, MOD                               |
| allow_extended_assignment  | -a   | x<i> := c, x<i> := x<j>, variable operand |
| allow_if                   | -i   | IF x<i> = 0 THEN ... END                  |
| allow_if_extended          | -I   | all relations, operands, and ELSE         |
| allow_missing_whitespace   | -N   | whitespace between tokens is optional     |

The flags are independent inside the parser. The command-line layer adds
the implications (-W turns on -w, -I turns on -i) through from_flags().
"""

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class GrammarProfile:
    """
    Immutable set of grammar extension toggles.

    Attributes:
        allow_while: Accept WHILE loops (relation != against 0)
        allow_while_extended: Accept every relation and operand in WHILE
        allow_operations: Accept multiplication, DIV and MOD
        allow_extended_assignment: Accept constant, copy and variable-operand
            assignments
        allow_if: Accept IF blocks (relation = against 0)
        allow_if_extended: Accept every relation and operand in IF, and ELSE
        allow_missing_whitespace: Make required whitespace optional
    """
    allow_while: bool = False
    allow_while_extended: bool = False
    allow_operations: bool = False
    allow_extended_assignment: bool = False
    allow_if: bool = False
    allow_if_extended: bool = False
    allow_missing_whitespace: bool = False

    @classmethod
    def base(cls) -> "GrammarProfile":
        """The plain LOOP language with no extensions."""
        return cls()

    @classmethod
    def klausur(cls) -> "GrammarProfile":
        """Exam preset: operations, extended assignment, and extended IF."""
        return cls(
            allow_operations=True,
            allow_extended_assignment=True,
            allow_if=True,
            allow_if_extended=True,
        )

    @classmethod
    def permissive(cls) -> "GrammarProfile":
        """Every extension enabled."""
        return cls(**{f.name: True for f in fields(cls)})

    @classmethod
    def from_flags(
        cls,
        while_: bool = False,
        while_extended: bool = False,
        operations: bool = False,
        assignment: bool = False,
        if_: bool = False,
        if_extended: bool = False,
        no_whitespace: bool = False,
        klausur: bool = False,
    ) -> "GrammarProfile":
        """
        Build a profile from command-line style switches.

        Extended variants imply their basic form, and the klausur preset
        is merged into the explicit switches.
        """
        if klausur:
            operations = assignment = if_ = if_extended = True
        return cls(
            allow_while=while_ or while_extended,
            allow_while_extended=while_extended,
            allow_operations=operations,
            allow_extended_assignment=assignment,
            allow_if=if_ or if_extended,
            allow_if_extended=if_extended,
            allow_missing_whitespace=no_whitespace,
        )

    def enabled(self) -> list[str]:
        """Names of the enabled extensions, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def is_subset_of(self, other: "GrammarProfile") -> bool:
        """True if every extension enabled here is also enabled in other."""
        return all(getattr(other, name) for name in self.enabled())

    def __str__(self) -> str:
        enabled = self.enabled()
        return ", ".join(enabled) if enabled else "base"
