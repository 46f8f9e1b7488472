"""
kparse - Kaleidoscope Parser Command-Line Interface
===================================================

This module implements a command-line host for the Kaleidoscope front
end. It reads source from a file or stdin and parses it one top-level
unit at a time, printing each unit as it is parsed.

Top-level ';' characters are skipped between units. A syntax error is
printed to stderr as soon as it is found; the offending token is then
skipped and parsing resumes with the next unit. The error count is
reported at the end.

Usage Examples
--------------
Summarise each unit:
    $ kparse program.kal
    Parsed a function definition.
    Parsed an extern.
    Parsed a top-level expression.

Print the AST of each unit:
    $ kparse program.kal --ast

Re-render each unit as fully parenthesised source:
    $ echo "1+2*3" | kparse --source
    Parsed a top-level expression.
    (1 + (2 * 3))

Add or override operators:
    $ kparse program.kal --op /=40 --op -=20

Name the source in diagnostics when reading stdin:
    $ cat program.kal | kparse --filename program.kal

Verbose mode:
    $ kparse -v program.kal
"""

import logging
import sys
from typing import Callable, Optional

import click

from kaleidoscope import __version__
from kaleidoscope.ast import ASTPrinter, Declaration, SourcePrinter, TopLevelUnit
from kaleidoscope.cli.errors import ExitCode, handle_cli_exception
from kaleidoscope.errors import ErrorCollector, ParseError
from kaleidoscope.parser import Parser, ParserOptions

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Utilities
# =============================================================================

def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def parse_operator_spec(spec: str) -> tuple[str, int]:
    """
    Parse an operator option of the form CHAR=PRECEDENCE.

    Raises:
        click.BadParameter: If the spec is malformed
    """
    operator, sep, value = spec.rpartition("=")
    if not sep or len(operator) != 1:
        raise click.BadParameter(f"expected CHAR=PRECEDENCE, got {spec!r}")
    try:
        precedence = int(value)
    except ValueError:
        raise click.BadParameter(f"precedence must be an integer, got {value!r}")
    if precedence <= 0:
        raise click.BadParameter(f"precedence must be positive, got {precedence}")
    return operator, precedence


def _operators_callback(ctx, param, values: tuple[str, ...]) -> dict[str, int]:
    return dict(parse_operator_spec(v) for v in values)


def describe_unit(unit: TopLevelUnit) -> str:
    """One-line summary of a parsed unit."""
    if isinstance(unit, Declaration):
        return "Parsed an extern."
    if unit.is_anonymous:
        return "Parsed a top-level expression."
    return "Parsed a function definition."


def format_unit(unit: TopLevelUnit, output_format: str) -> str:
    """Render a unit in the requested output format."""
    if output_format == "ast":
        return f"{describe_unit(unit)}\n{ASTPrinter().print(unit)}"
    if output_format == "source":
        return f"{describe_unit(unit)}\n{SourcePrinter().print(unit)}"
    return describe_unit(unit)


# =============================================================================
# Driver Loop
# =============================================================================

def drive(
    parser: Parser,
    handle: Callable[[TopLevelUnit], None],
    collector: Optional[ErrorCollector] = None,
    on_error: Optional[Callable[[ParseError], None]] = None,
) -> int:
    """
    Parse units until end of input, passing each one to ``handle``.

    Args:
        parser: The parsing session
        handle: Called with every successfully parsed unit
        collector: Receives syntax errors; parsing stops early once it is
                   full. Errors propagate when no collector is given.
        on_error: Called with each collected error as soon as it occurs

    Returns:
        Number of units parsed successfully
    """
    count = 0
    while not parser.at_end:
        # Ignore top-level semicolons
        if parser.cursor.is_char(";"):
            parser.cursor.advance()
            continue

        try:
            unit = parser.parse_top_level_unit()
        except ParseError as e:
            if collector is None:
                raise
            collector.add(e)
            if on_error is not None:
                on_error(e)
            logger.debug(f"skipping {parser.cursor.current.describe()} after error")
            if collector.should_stop():
                break
            # Skip token for error recovery
            parser.cursor.advance()
            continue

        count += 1
        handle(unit)

    return count


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument("input_file", type=click.File("r"), default="-")
@click.option(
    "--ast", "output_format",
    flag_value="ast",
    help="Print the AST of each unit",
)
@click.option(
    "--source", "output_format",
    flag_value="source",
    help="Print each unit as fully parenthesised source",
)
@click.option(
    "--summary", "output_format",
    flag_value="summary",
    default=True,
    hidden=True,
)
@click.option(
    "--op", "operators",
    multiple=True,
    metavar="CHAR=PREC",
    callback=_operators_callback,
    help="Define or override a binary operator precedence (can be repeated)",
)
@click.option(
    "--filename",
    metavar="NAME",
    help="Source name used in diagnostics (default: INPUT_FILE's name)",
)
@click.option(
    "--max-errors",
    type=click.IntRange(min=1),
    default=20,
    show_default=True,
    help="Stop after this many syntax errors",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="kparse")
def main(
    input_file,
    output_format: str,
    operators: dict[str, int],
    filename: Optional[str],
    max_errors: int,
    verbose: bool,
) -> None:
    """
    Parse Kaleidoscope source and print each top-level unit.

    INPUT_FILE is the source to read ('-' or omitted for stdin).

    \b
    Examples:
        kparse prog.kal                  # One summary line per unit
        kparse prog.kal --ast            # Summary plus AST tree per unit
        echo "1+2*3" | kparse --source   # Summary plus parenthesised source
        kparse prog.kal --op /=40        # Add a division operator
    """
    setup_logging(verbose)

    try:
        if filename is None:
            filename = getattr(input_file, "name", "<stdin>")
        options = ParserOptions(filename=filename, operators=operators)
        if verbose:
            click.echo(f"Parsing {options.filename}...", err=True)
            click.echo(f"Operators: {options.precedence}", err=True)

        parser = Parser(input_file, options=options)
        collector = ErrorCollector(max_errors=max_errors)
        count = drive(
            parser,
            lambda unit: click.echo(format_unit(unit, output_format)),
            collector,
            on_error=lambda error: click.echo(f"{error}\n", err=True),
        )

        if verbose:
            click.echo(f"Parsed {count} unit(s)", err=True)

        if collector.has_errors():
            click.echo(collector.summary(), err=True)
            sys.exit(ExitCode.PARSE_ERROR)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
