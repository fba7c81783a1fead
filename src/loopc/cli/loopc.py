"""
loopc - LOOP to C Translator Command-Line Interface
===================================================

This module implements the ``loopc`` command.

Usage Examples
--------------
Basic translation (writes a.c):
    $ loopc program.loop

With output file and function name:
    $ loopc program.loop -o sum.c -n sum

With extensions:
    $ loopc -w -O program.loop        # WHILE, *, DIV, MOD
    $ loopc -k program.loop           # exam preset: -O -a -I

Generate a header next to the C file:
    $ loopc -H program.loop -o sum    # writes sum.c and sum.h

Inspect the parsed program:
    $ loopc --ast -k program.loop
"""

import logging
from pathlib import Path
from typing import Optional

import click

from loopc import __version__
from loopc.cli.errors import handle_cli_exception
from loopc.codegen import DEFAULT_TYPE, INTEGER_TYPES
from loopc.compiler import (
    CompilerOptions,
    LoopCompiler,
    header_path_for,
    normalize_output_path,
    write_result,
)
from loopc.errors import LoopError
from loopc.profile import GrammarProfile
from loopc.program import ProgramPrinter


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    default="a",
    show_default=True,
    help="Place the output into this file ('.c' is appended if missing)",
)
@click.option(
    "-n", "--name",
    default="program",
    show_default=True,
    help="Name of the generated C function",
)
@click.option(
    "-H", "--header",
    is_flag=True,
    help="Also generate and include a header file",
)
@click.option(
    "-O", "--operations",
    is_flag=True,
    help="Also accept multiplication, DIV, and MOD",
)
@click.option(
    "-a", "--assignment",
    is_flag=True,
    help="Also accept constant, copy, and variable-operand assignments",
)
@click.option(
    "-i", "--if", "if_",
    is_flag=True,
    help="Also accept basic IF programs",
)
@click.option(
    "-I", "--ifExtended", "if_extended",
    is_flag=True,
    help="Also accept IF with every relation and ELSE (implies -i)",
)
@click.option(
    "-w", "--while", "while_",
    is_flag=True,
    help="Also accept basic WHILE programs",
)
@click.option(
    "-W", "--whileExtended", "while_extended",
    is_flag=True,
    help="Also accept WHILE with every relation (implies -w)",
)
@click.option(
    "-N", "--noWhitespace", "no_whitespace",
    is_flag=True,
    help="Also accept programs with missing whitespace",
)
@click.option(
    "-k", "--klausur",
    is_flag=True,
    help="The same as -O -a -I",
)
@click.option(
    "-t", "--type", "type_name",
    type=click.Choice(list(INTEGER_TYPES)),
    default=DEFAULT_TYPE,
    show_default=True,
    help="Unsigned integer type of the variables",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print the instruction tree and exit (for debugging)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(__version__, "-v", "--version", prog_name="loopc")
def main(
    input_file: Path,
    output: str,
    name: str,
    header: bool,
    operations: bool,
    assignment: bool,
    if_: bool,
    if_extended: bool,
    while_: bool,
    while_extended: bool,
    no_whitespace: bool,
    klausur: bool,
    type_name: str,
    ast: bool,
    verbose: bool,
) -> None:
    """
    Translate a LOOP program to C.

    INPUT_FILE is the LOOP source to translate.

    The generated C file defines a function taking (count, values) and
    returning x0, plus a main() that reads the initial values x1, x2, ...
    from the command line and prints the result.

    \b
    Examples:
        loopc add.loop                 # Outputs a.c
        loopc add.loop -o add -n add   # Outputs add.c with function add()
        loopc -k max.loop              # Exam preset (-O -a -I)
        loopc -W -N terse.loop         # Extended WHILE, optional whitespace
    """
    setup_logging(verbose)

    profile = GrammarProfile.from_flags(
        while_=while_,
        while_extended=while_extended,
        operations=operations,
        assignment=assignment,
        if_=if_,
        if_extended=if_extended,
        no_whitespace=no_whitespace,
        klausur=klausur,
    )
    output_path = normalize_output_path(output)
    header_name: Optional[str] = header_path_for(output_path).name if header else None

    try:
        if verbose:
            click.echo(f"Translating {input_file}...")
            click.echo(f"Extensions: {profile}")

        options = CompilerOptions(
            profile=profile,
            function_name=name,
            type_name=type_name,
            emit_header=header,
            header_name=header_name,
        )
        result = LoopCompiler(options).compile_file(input_file)

        if ast:
            click.echo(ProgramPrinter().print(result.program))
            return

        written = write_result(result, output_path)

        if verbose:
            click.echo(f"Parsed: {result.instruction_count} instructions")
            click.echo(f"Variables: x0..x{result.highest_index}")
            for path in written:
                click.echo(f"Wrote {path}")

        click.echo(f"Translated {input_file} -> {output_path}")

    except LoopError as e:
        handle_cli_exception(e, verbose)
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
