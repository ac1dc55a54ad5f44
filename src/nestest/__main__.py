"""Command-line runner.

Executes test files declaring tests with the default `nestest` runner,
then runs everything they declared::

    nestest run tests/test_math.py --filter '^Math'

Test files are plain Python modules. They are executed under the module
name `__nestest__`, so a file can still call `nestest.run()` itself
behind an `if __name__ == '__main__':` guard.
"""

from pathlib import Path
from re import compile as regexp
from re import error as RegexError  # noqa: N812
from runpy import run_path
from typing import TYPE_CHECKING, Any

from click import BadParameter, ClickException, argument, group, option, pass_context
from click import Path as PathParam

import nestest
from nestest.models import RunOptions

if TYPE_CHECKING:
    from re import Pattern

    from click import Context, Parameter

#: Module name test files are executed under.
RUN_NAME = '__nestest__'

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _compile_filter(ctx: 'Context', param: 'Parameter', value: str | None) -> 'Pattern[str] | None':
    """Validate the filter option as a regular expression."""
    if value is None:
        return None

    try:
        return regexp(value)
    except RegexError as error:
        raise BadParameter(f'invalid regular expression: {error}') from error


@group(help='Nested test definition and execution engine.')
def cli() -> None:
    """Root CLI group for nestest tools."""
    return None


@cli.command(
    name='run',
    help='Execute test files and run the tests they declare.',
)
@option(
    '-f', '--filter', 'pattern',
    callback=_compile_filter,
    default=None,
    help='Only run top-level tests whose description matches this regular expression.',
)
@option(
    '--full-backtrace',
    is_flag=True,
    default=False,
    help='Keep engine frames in failure and error backtraces.',
)
@argument(
    'files',
    nargs=-1,
    required=True,
    type=InputFilepath,
)
@pass_context
def run_files(ctx: 'Context', files: tuple[Path, ...],
              pattern: 'Pattern[str] | None', full_backtrace: bool) -> None:
    """Load the given files and run the default runner.

    The process exits with the number of failures and errors (capped
    at 255).
    """
    for path in files:
        try:
            run_path(str(path), run_name=RUN_NAME)
        except Exception as error:
            raise ClickException(f'Failed to load {path}: {type(error).__name__}: {error}') from error

    overrides: dict[str, Any] = {}
    if pattern is not None:
        overrides['filter'] = pattern
    if full_backtrace:
        overrides['full_backtrace'] = True

    stats = nestest.runner.run(RunOptions(**overrides))

    ctx.exit(stats.exit_code)


if __name__ == '__main__':
    cli()
