"""Tests for the command-line runner."""

from textwrap import dedent
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from nestest.__main__ import cli

if TYPE_CHECKING:
    from pathlib import Path

MATH_TESTS = '''
    from nestest import D, Eq

    @D('Math')
    def _(ctx):
        D('add', lambda ctx: Eq(2 + 2, 4))
        D('bad', lambda ctx: Eq(2 + 2, 5))

    @D('Strings')
    def _(ctx):
        Eq('foo'.upper(), 'FOO')

    if __name__ == '__main__':
        raise RuntimeError('executed as a script')
'''


@pytest.fixture
def math_file(tmp_path: 'Path') -> 'Path':
    """Write a test file with one failing test."""
    path = tmp_path / 'test_math.py'
    path.write_text(dedent(MATH_TESTS))

    return path


def test_run(math_file: 'Path') -> None:
    """Test running a file exits with the number of failures."""
    result = CliRunner().invoke(cli, ['run', str(math_file)])

    assert result.exit_code == 1
    assert 'FAIL: bad' in result.output
    assert '#pass: 2   #fail: 1   #error: 0' in result.output


@pytest.mark.parametrize('pattern, exit_code, summary', (
    pytest.param('^Strings$', 0, '#pass: 1   #fail: 0', id='passing only'),
    pytest.param('^Math$', 1, '#pass: 1   #fail: 1', id='failing only'),
))
def test_run_filtered(math_file: 'Path', pattern: str, exit_code: int, summary: str) -> None:
    """Test the filter option."""
    result = CliRunner().invoke(cli, ['run', str(math_file), '--filter', pattern])

    assert result.exit_code == exit_code
    assert summary in result.output


def test_filter_from_environment(math_file: 'Path') -> None:
    """Test the filter is read from the environment."""
    result = CliRunner().invoke(cli, ['run', str(math_file)], env={'NESTEST_FILTER': '^Strings$'})

    assert result.exit_code == 0


def test_full_backtrace(math_file: 'Path') -> None:
    """Test the full backtrace option keeps engine frames."""
    result = CliRunner().invoke(cli, ['run', str(math_file), '--full-backtrace'])

    assert result.exit_code == 1
    assert 'nestest/core/runner.py' in result.output


def test_invalid_filter(math_file: 'Path') -> None:
    """Test an invalid regular expression is rejected."""
    result = CliRunner().invoke(cli, ['run', str(math_file), '--filter', '('])

    assert result.exit_code == 2
    assert 'invalid regular expression' in result.output


def test_missing_file(tmp_path: 'Path') -> None:
    """Test files must exist."""
    result = CliRunner().invoke(cli, ['run', str(tmp_path / 'missing.py')])

    assert result.exit_code == 2


def test_files_required() -> None:
    """Test at least one file is required."""
    result = CliRunner().invoke(cli, ['run'])

    assert result.exit_code == 2


def test_broken_file(tmp_path: 'Path') -> None:
    """Test a file failing to load is reported."""
    path = tmp_path / 'test_broken.py'
    path.write_text('raise ImportError("no such thing")\n')

    result = CliRunner().invoke(cli, ['run', str(path)])

    assert result.exit_code == 1
    assert 'Failed to load' in result.output
    assert 'ImportError: no such thing' in result.output
