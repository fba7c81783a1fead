# =============================================================================
# test_codegen.py - C Code Generator Unit Tests
# =============================================================================
# Tests for lowering LOOP instruction trees to C.
#
# Test coverage includes:
#   - Lowering of every assignment form, LOOP, WHILE, IF, and ELSE
#   - Indentation and brace balance
#   - Function, main() and header boilerplate
#   - Integer type selection
#   - Internal errors for trees the parser never builds
# =============================================================================

import pytest

from loopc.codegen import DEFAULT_TYPE, INTEGER_TYPES, CodeEmitter, print_macro_for
from loopc.errors import InternalCompilerError, LoopConfigError
from loopc.parser import parse_source
from loopc.profile import GrammarProfile
from loopc.program import (
    BLOCK_OPENERS,
    AssignmentOperator,
    Instruction,
    InstructionKind,
    Program,
    Relation,
)


# =============================================================================
# Helper Functions
# =============================================================================

def body(source: str, profile: GrammarProfile = None, type_name: str = DEFAULT_TYPE) -> str:
    """Parse source and return the lowered function body."""
    program = parse_source(source, profile or GrammarProfile.permissive())
    return CodeEmitter(type_name).emit_body(program.root)


def generate(source: str, **kwargs) -> str:
    """Parse source and return the complete C file."""
    program = parse_source(source, GrammarProfile.permissive())
    return CodeEmitter().generate(program, **kwargs)


# =============================================================================
# Assignments
# =============================================================================

class TestAssignments:
    """Test lowering of each assignment form."""

    def test_addition(self):
        """x<i> := x<j> + c"""
        assert body("x1 := x0 + 1") == "\tx[1] = x[0] + 1;"

    def test_saturating_subtraction(self):
        """Subtraction compares before subtracting."""
        assert body("x2 := x1 - 3") == "\tx[2] = x[1] > 3 ? x[1] - 3 : 0;"

    def test_saturating_subtraction_variable(self):
        """Subtraction of a variable operand."""
        assert body("x2 := x1 - x3") == "\tx[2] = x[1] > x[3] ? x[1] - x[3] : 0;"

    def test_constant(self):
        """x<i> := c"""
        assert body("x1 := 42") == "\tx[1] = 42;"

    def test_copy(self):
        """x<i> := x<j>"""
        assert body("x1 := x2") == "\tx[1] = x[2];"

    @pytest.mark.parametrize("text,symbol", [
        ("*", "*"),
        ("DIV", "/"),
        ("MOD", "%"),
    ])
    def test_operations(self, text, symbol):
        """*, DIV and MOD map to C operators."""
        assert body(f"x1 := x2 {text} 3") == f"\tx[1] = x[2] {symbol} 3;"

    def test_variable_operand(self):
        """A variable operand is an array access."""
        assert body("x1 := x2 + x3") == "\tx[1] = x[2] + x[3];"

    def test_sequence(self):
        """Sequenced statements are emitted one per line."""
        assert body("x1 := x1 + 1; x2 := x2 + 2") == (
            "\tx[1] = x[1] + 1;\n"
            "\tx[2] = x[2] + 2;"
        )


# =============================================================================
# Blocks
# =============================================================================

class TestBlocks:
    """Test lowering of LOOP, WHILE, IF and ELSE."""

    def test_loop(self):
        """LOOP uses a fresh counter initialized from the variable."""
        assert body("LOOP x1 DO x0 := x0 + 1 END") == (
            "\tfor (uint_fast64_t i = x[1]; i; --i) {\n"
            "\t\tx[0] = x[0] + 1;\n"
            "\t}"
        )

    def test_loop_counter_type(self):
        """The LOOP counter uses the configured type."""
        text = body("LOOP x1 DO x0 := x0 + 1 END", type_name="uint32_t")
        assert text.startswith("\tfor (uint32_t i = x[1]; i; --i) {")

    def test_nested_loops(self):
        """Nested blocks indent and close in order."""
        assert body("LOOP x1 DO LOOP x2 DO x0 := x0 + 1 END END; x3 := x0 + 0") == (
            "\tfor (uint_fast64_t i = x[1]; i; --i) {\n"
            "\t\tfor (uint_fast64_t i = x[2]; i; --i) {\n"
            "\t\t\tx[0] = x[0] + 1;\n"
            "\t\t}\n"
            "\t}\n"
            "\tx[3] = x[0] + 0;"
        )

    def test_while(self):
        """WHILE lowers to a C while loop."""
        assert body("WHILE x1 != 0 DO x1 := x1 - 1 END") == (
            "\twhile (x[1] != 0) {\n"
            "\t\tx[1] = x[1] > 1 ? x[1] - 1 : 0;\n"
            "\t}"
        )

    @pytest.mark.parametrize("text,symbol", [
        ("=", "=="),
        ("!=", "!="),
        (">", ">"),
        (">=", ">="),
        ("<", "<"),
        ("<=", "<="),
    ])
    def test_relations(self, text, symbol):
        """Every relation maps to its C operator."""
        first_line = body(f"WHILE x1 {text} x2 DO x1 := x1 + 1 END").splitlines()[0]
        assert first_line == f"\twhile (x[1] {symbol} x[2]) {{"

    def test_if(self):
        """IF lowers to a C if statement."""
        assert body("IF x1 = 0 THEN x0 := 1 END") == (
            "\tif (x[1] == 0) {\n"
            "\t\tx[0] = 1;\n"
            "\t}"
        )

    def test_if_else(self):
        """ELSE joins the closing brace of the 'then' arm."""
        assert body("IF x1 = 0 THEN x0 := 1 ELSE x0 := 2 END") == (
            "\tif (x[1] == 0) {\n"
            "\t\tx[0] = 1;\n"
            "\t} else {\n"
            "\t\tx[0] = 2;\n"
            "\t}"
        )

    def test_if_else_in_loop(self):
        """IF/ELSE nested in a LOOP, followed by a statement."""
        source = "LOOP x2 DO IF x1 < 3 THEN x0 := x0 + 1 ELSE x0 := x0 + 2 END END; x1 := 0"
        assert body(source) == (
            "\tfor (uint_fast64_t i = x[2]; i; --i) {\n"
            "\t\tif (x[1] < 3) {\n"
            "\t\t\tx[0] = x[0] + 1;\n"
            "\t\t} else {\n"
            "\t\t\tx[0] = x[0] + 2;\n"
            "\t\t}\n"
            "\t}\n"
            "\tx[1] = 0;"
        )

    def test_custom_indentation(self):
        """The top-level depth can be chosen."""
        program = parse_source("x1 := x1 + 1")
        assert CodeEmitter().emit_body(program.root, indentation=0) == "x[1] = x[1] + 1;"

    @pytest.mark.parametrize("source", [
        "x1 := x1 + 1",
        "LOOP x1 DO x0 := x0 + 1 END",
        "LOOP x1 DO LOOP x2 DO x0 := x0 + 1 END END",
        "IF x1 = 0 THEN x0 := 1 ELSE x0 := 2 END",
        "WHILE x1 > 0 DO IF x1 = 1 THEN x0 := 1 END; x1 := x1 - 1 END",
        "LOOP x1 DO LOOP x2 DO x0 := 1 END; IF x2 = 0 THEN x0 := 2 ELSE x0 := 3 END END",
    ])
    def test_braces_balance(self, source):
        """Every opened block is closed exactly once."""
        program = parse_source(source, GrammarProfile.permissive())
        text = CodeEmitter().emit_body(program.root)
        openers = sum(1 for node in program if node.opens_block)
        assert openers == program.count(*BLOCK_OPENERS)
        assert text.count("{") == openers
        assert text.count("}") == openers

    def test_deep_nesting(self):
        """Deep trees are emitted without recursion."""
        depth = 5000
        source = "LOOP x1 DO " * depth + "x0 := x0 + 1" + " END" * depth
        text = body(source)
        assert text.count("{") == depth
        assert text.count("}") == depth
        assert text.splitlines()[depth] == "\t" * (depth + 1) + "x[0] = x[0] + 1;"


# =============================================================================
# Translation Unit
# =============================================================================

class TestTranslationUnit:
    """Test the generated file around the body."""

    def test_includes(self):
        """The standard headers come first."""
        text = generate("x1 := x1 + 1")
        assert text.startswith("#include <stdlib.h>\n#include <stdio.h>\n")
        assert "#include <inttypes.h>" in text
        assert "#include <string.h>" in text

    def test_function_signature(self):
        """The function takes a count and an array and returns x0."""
        text = generate("x1 := x1 + 1")
        assert "uint_fast64_t program(uint_fast64_t argc, uint_fast64_t *argv) {" in text
        assert "\tuint_fast64_t ret = x[0];" in text
        assert "\treturn ret;" in text

    def test_array_sized_by_highest_index(self):
        """The variable array holds x0 through the highest index."""
        text = generate("x3 := x1 + 1")
        assert "calloc(4, sizeof(uint_fast64_t))" in text
        assert "argc < 3 ? argc : 3" in text

    def test_function_name(self):
        """The function name is configurable and used by main()."""
        text = generate("x1 := x1 + 1", function_name="sum")
        assert "uint_fast64_t sum(uint_fast64_t argc" in text
        assert "sum(argc - 1, arr);" in text

    def test_main_prints_result(self):
        """main() prints the result with the matching format macro."""
        text = generate("x1 := x1 + 1")
        assert "int main(int argc, char **argv) {" in text
        assert 'printf("%" PRIuFAST64 "\\n", res);' in text

    def test_body_inside_function(self):
        """The body sits between the setup and the return."""
        text = generate("x1 := x1 + 1")
        setup = text.index("memcpy(")
        statement = text.index("\tx[1] = x[1] + 1;")
        result = text.index("ret = x[0]")
        assert setup < statement < result

    def test_no_header_include_by_default(self):
        """Without a header name nothing local is included."""
        assert '#include "' not in generate("x1 := x1 + 1")

    def test_header_include(self):
        """With a header name the file includes it."""
        text = generate("x1 := x1 + 1", header_name="sum.h")
        assert '#include "sum.h"\n' in text

    def test_header(self):
        """The header declares the function inside an include guard."""
        header = CodeEmitter().generate_header("sum")
        assert header == (
            "#ifndef LOOP_sum_H\n"
            "#define LOOP_sum_H\n"
            "\n"
            "uint_fast64_t sum(uint_fast64_t argc, uint_fast64_t *argv);\n"
            "\n"
            "#endif\n"
        )

    @pytest.mark.parametrize("type_name", list(INTEGER_TYPES))
    def test_integer_types(self, type_name):
        """Each supported type is used throughout with its print macro."""
        program = parse_source("x1 := x1 + 1")
        text = CodeEmitter(type_name).generate(program)
        assert f"{type_name} program({type_name} argc, {type_name} *argv)" in text
        assert f'"%" {INTEGER_TYPES[type_name]} "\\n"' in text

    def test_unsupported_type(self):
        """Unknown types are a configuration error."""
        with pytest.raises(LoopConfigError) as exc_info:
            CodeEmitter("int")
        assert "unsupported integer type 'int'" in str(exc_info.value)

    def test_print_macro_lookup(self):
        """Emitter and options share one type lookup."""
        assert print_macro_for("uint16_t") == "PRIu16"
        assert CodeEmitter("uint16_t").print_macro == "PRIu16"
        with pytest.raises(LoopConfigError):
            print_macro_for("")

    def test_tree_unchanged(self):
        """Generating code leaves the tree as it was."""
        program = parse_source("LOOP x1 DO x0 := x0 + 1 END")
        before = [(n.kind, n.operator, n.target_index, n.literal) for n in program]
        CodeEmitter().generate(program)
        after = [(n.kind, n.operator, n.target_index, n.literal) for n in program]
        assert before == after


# =============================================================================
# Internal Errors
# =============================================================================

class TestInternalErrors:
    """Trees the parser never builds are rejected."""

    def test_placeholder_instruction(self):
        """An instruction without a kind."""
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_body(Instruction())
        assert "undefined type" in str(exc_info.value)

    def test_assignment_without_operation(self):
        """An assignment whose operator is a relation."""
        node = Instruction(kind=InstructionKind.ASSIGNMENT, operator=Relation.EQUAL)
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_body(node)
        assert "assignment with undefined operation" in str(exc_info.value)

    def test_while_without_relation(self):
        """A WHILE whose operator is an assignment operator."""
        node = Instruction(kind=InstructionKind.CONDITIONAL_LOOP, operator=AssignmentOperator.ADD)
        node.body = Instruction(kind=InstructionKind.ASSIGNMENT, operator=AssignmentOperator.ADD)
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_body(node)
        assert "WHILE with undefined relation" in str(exc_info.value)

    def test_if_without_relation(self):
        """An IF with no relation at all."""
        node = Instruction(kind=InstructionKind.IF_BRANCH_START)
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_body(node)
        assert "IF with undefined relation" in str(exc_info.value)

    def test_block_without_body(self):
        """A LOOP that owns no body."""
        node = Instruction(kind=InstructionKind.BOUNDED_LOOP, target_index=1)
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_body(node)
        assert "block without body" in str(exc_info.value)

    def test_empty_program(self):
        """A program without a root instruction."""
        with pytest.raises(InternalCompilerError):
            CodeEmitter().generate(Program(root=None))

    def test_internal_error_message(self):
        """Internal errors are labelled as such."""
        with pytest.raises(InternalCompilerError) as exc_info:
            CodeEmitter().emit_instruction(Instruction())
        assert str(exc_info.value).startswith("internal error: ")
