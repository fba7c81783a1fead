"""
CLI Error Handling
==================

Maps translator exceptions to messages on stderr and process exit codes.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from loopc.errors import (
    InternalCompilerError,
    LoopConfigError,
    LoopError,
    LoopSyntaxError,
    SourceUnavailableError,
)


class ExitCode(IntEnum):
    """Exit codes of the loopc command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Syntax or structure error in the program
    INVALID_ARGS = 2     # Invalid options, unreadable input, unwritable output
    INTERNAL_ERROR = 3   # Translator defect


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print the traceback for internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, LoopSyntaxError):
        # Already formatted as file:line:col: error: ... with caret
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, (SourceUnavailableError, LoopConfigError)):
        click.echo(f"loopc: error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, InternalCompilerError):
        click.echo(f"loopc: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)

    elif isinstance(error, LoopError):
        click.echo(f"loopc: error: {error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    else:
        click.echo(f"loopc: internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
