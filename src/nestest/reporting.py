"""Reporting collaborator interface and the default console reporter.

The runner never renders anything itself. It hands every failure and
fault to a `Reporter` as it happens, buffers the returned detail
blocks, and at the end of a run asks the reporter to display the tree
of results, the buffered details, and the summary.
"""

from linecache import getline
from os import linesep
from pathlib import Path
from traceback import StackSummary, extract_tb
from typing import TYPE_CHECKING, Protocol

from click import echo, style

from nestest.errors import SpecificationError
from nestest.models import RunOptions
from nestest.tree import Result
from nestest.values import indent

if TYPE_CHECKING:
    from nestest.tree import Body, Stats, Suite

#: Directory whose frames are hidden from backtraces by default.
PACKAGE_ROOT = Path(__file__).resolve().parent

#: Lines of code shown before the failing line.
SNIPPET_BEFORE = 3
#: Lines of code shown after the failing line.
SNIPPET_AFTER = 1

#: Width of the description column of the results tree.
TREE_WIDTH = 64

RESULT_STYLES = {
    Result.PASS: ('PASS', 'green'),
    Result.FAIL: ('FAIL', 'red'),
    Result.ERROR: ('ERROR', 'magenta'),
    Result.BLANK: ('-', None),
}


class Reporter(Protocol):
    """Presentation interface used by the runner."""

    def prepare(self, options: RunOptions) -> None:
        """Receive the options of the run about to start."""

    def display_tree(self, suite: 'Suite') -> None:
        """Display the results tree of the finished run."""

    def display_failure_details(self, text: str) -> None:
        """Display the buffered failure and error details."""

    def display_summary(self, stats: 'Stats') -> None:
        """Display the run counters."""

    def report_failure(self, description: str, message: str,
                       backtrace: StackSummary | None) -> str:
        """Render one assertion failure into a detail block."""

    def report_uncaught_fault(self, description: str, fault: BaseException,
                              calls: list['Body']) -> str:
        """Render one fault (including specification errors) into a detail block."""


class ConsoleReporter:
    """Reporter writing to the terminal with `click`.

    Colors are dropped automatically when the output is not a terminal.
    """

    def __init__(self, color: bool | None = None) -> None:
        self.color = color
        self.options: RunOptions | None = None

    def prepare(self, options: RunOptions) -> None:
        self.options = options

    def display_tree(self, suite: 'Suite') -> None:
        for test, level in suite.walk():
            label, color = RESULT_STYLES[test.result]
            name = f'{'  ' * level}{test.description}'
            echo(f'{name:<{TREE_WIDTH}} {style(label, fg=color, bold=True)}', color=self.color)

    def display_failure_details(self, text: str) -> None:
        echo(linesep + style('Failure details', bold=True, underline=True), color=self.color)
        echo(text, color=self.color)

    def display_summary(self, stats: 'Stats') -> None:
        color = 'green' if stats.overall == 'PASS' else 'red'
        echo(linesep + '=' * TREE_WIDTH, color=self.color)
        echo(
            f'{style(stats.overall, fg=color, bold=True)}   '
            f'#pass: {stats.passed}   '
            f'#fail: {stats.failed}   '
            f'#error: {stats.errors}   '
            f'assertions: {stats.assertions}   '
            f'time: {stats.time:.3f}s',
            color=self.color,
        )

    def report_failure(self, description: str, message: str,
                       backtrace: StackSummary | None) -> str:
        frames = self.filter_backtrace(backtrace)

        text = style(f'FAIL: {description}', fg='red', bold=True) + linesep
        text += indent(message, 2) + linesep
        text += self.render_location(frames)

        return text

    def report_uncaught_fault(self, description: str, fault: BaseException,
                              calls: list['Body']) -> str:
        frames = self.filter_backtrace(extract_tb(fault.__traceback__))

        label = 'SPECIFICATION ERROR' if isinstance(fault, SpecificationError) else 'ERROR'
        text = style(f'{label}: {description}', fg='magenta', bold=True) + linesep
        text += indent(f'{type(fault).__qualname__}: {fault}', 2) + linesep

        if calls:
            text += f'  Raised in {_body_name(calls[-1])}{linesep}'

        text += self.render_location(frames)

        return text

    def filter_backtrace(self, backtrace: StackSummary | None) -> StackSummary:
        """Drop the frames belonging to the engine itself.

        Frames are kept as they are when `full_backtrace` is set.
        """
        if backtrace is None:
            return StackSummary()

        if self.options is not None and self.options.full_backtrace:
            return backtrace

        return StackSummary.from_list([
            frame
            for frame in backtrace
            if not _is_internal(frame.filename)
        ])

    def render_location(self, frames: StackSummary) -> str:
        """Render the code around the innermost frame and the backtrace."""
        if not frames:
            return ''

        text = ''
        last = frames[-1]
        if snippet := self.render_snippet(last.filename, last.lineno or 0):
            text += f'  Code ({Path(last.filename).name}:{last.lineno}):{linesep}{snippet}'

        text += f'  Backtrace:{linesep}'
        for frame in reversed(frames):
            text += f'    {frame.filename}:{frame.lineno} in {frame.name}{linesep}'

        return text

    @staticmethod
    def render_snippet(filename: str, lineno: int) -> str:
        """Best-effort rendering of the lines around a source line."""
        if lineno <= 0:
            return ''

        if not getline(filename, lineno).strip():
            return ''

        lines = []
        for number in range(max(1, lineno - SNIPPET_BEFORE), lineno + SNIPPET_AFTER + 1):
            line = getline(filename, number).rstrip()
            if not line and number > lineno:
                break
            marker = '=>' if number == lineno else '  '
            lines.append(f'    {marker} {number:>4}  {line}')

        return linesep.join(lines) + linesep


def _is_internal(filename: str) -> bool:
    try:
        return Path(filename).resolve().is_relative_to(PACKAGE_ROOT)
    except (OSError, ValueError):
        return False


def _body_name(body: 'Body') -> str:
    return getattr(body, '__qualname__', None) or repr(body)
