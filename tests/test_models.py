"""Tests for settings, tree records and errors."""

import re

import pydantic
import pytest

from nestest.context import Sandbox
from nestest.errors import ErrorContext, NestestError, SpecificationError
from nestest.models import RunOptions
from nestest.names import is_identifier
from nestest.tree import Stats, Suite, Test
from nestest.values import inspect, is_number, truncate


def test_run_options_defaults() -> None:
    """Test the default options."""
    options = RunOptions()

    assert options.filter is None
    assert options.full_backtrace is False


def test_run_options_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test options are read from `NESTEST_*` variables."""
    monkeypatch.setenv('NESTEST_FILTER', '^Math')
    monkeypatch.setenv('NESTEST_FULL_BACKTRACE', 'true')

    options = RunOptions()

    assert options.filter == re.compile('^Math')
    assert options.full_backtrace is True


def test_run_options_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test explicit values take precedence over the environment."""
    monkeypatch.setenv('NESTEST_FILTER', '^Math')

    options = RunOptions(filter='^Strings')

    assert options.filter.pattern == '^Strings'


def test_run_options_frozen() -> None:
    """Test options can not change during a run."""
    options = RunOptions()

    with pytest.raises(pydantic.ValidationError):
        options.full_backtrace = True


@pytest.mark.parametrize('stats, overall, exit_code', (
    pytest.param(Stats(), 'PASS', 0, id='empty'),
    pytest.param(Stats(passed=3, assertions=5), 'PASS', 0, id='passing'),
    pytest.param(Stats(passed=1, failed=1), 'FAIL', 1, id='failure'),
    pytest.param(Stats(failed=2, errors=3), 'FAIL', 5, id='failures and errors'),
    pytest.param(Stats(failed=300), 'FAIL', 255, id='capped'),
))
def test_stats(stats: Stats, overall: str, exit_code: int) -> None:
    """Test the overall result and the exit code."""
    assert stats.overall == overall
    assert stats.exit_code == exit_code


def test_stats_not_negative() -> None:
    """Test counters are validated on assignment."""
    stats = Stats()

    with pytest.raises(pydantic.ValidationError):
        stats.passed -= 1


def test_test_parent() -> None:
    """Test setting the parent links both ways."""
    parent = Test('Parent', lambda ctx: None, Sandbox())
    child = Test('Child', lambda ctx: None)

    child.parent = parent

    assert child.parent is parent
    assert parent.children == [child]
    assert parent.insulated
    assert not child.insulated
    assert child.blank
    assert repr(child) == "<Test 'Child' blank>"


def test_suite_walk_and_filter() -> None:
    """Test listing and filtering the tests of a suite."""
    suite = Suite(Sandbox())
    math = Test('Math', lambda ctx: None, Sandbox())
    add = Test('add', lambda ctx: None)
    add.parent = math
    strings = Test('Strings', lambda ctx: None, Sandbox())
    suite.tests.extend([math, strings])

    assert suite.walk() == [(math, 0), (add, 1), (strings, 0)]

    suite.filter(re.compile('^S'))

    assert suite.tests == [strings]


@pytest.mark.parametrize('value, expected', (
    pytest.param('circle', True, id='name'),
    pytest.param('circle_equality', True, id='underscore'),
    pytest.param('value2', True, id='digit'),
    pytest.param('2value', False, id='leading digit'),
    pytest.param('_value', False, id='leading underscore'),
    pytest.param('my value', False, id='space'),
    pytest.param('véhicule', False, id='non ascii'),
    pytest.param(42, False, id='not a string'),
))
def test_identifiers(value: object, expected: bool) -> None:
    """Test the identifier pattern."""
    assert is_identifier(value) is expected


def test_values_helpers() -> None:
    """Test value rendering helpers."""
    assert truncate('abcdef', 3) == 'abc...'
    assert truncate('abc', 3) == 'abc'
    assert inspect('x' * 10, limit=5) == "'xxxx..."
    assert is_number(1.5)
    assert is_number(1)
    assert not is_number(True)
    assert not is_number('1')


def test_inspect_broken_repr() -> None:
    """Test values whose repr fails are still rendered."""

    class Broken:
        def __repr__(self) -> str:
            raise RuntimeError('no repr')

    assert inspect(Broken()).startswith('<unrepresentable Broken')


def test_error_format() -> None:
    """Test errors render their location and a snippet of the offending data."""
    error = NestestError('Invalid definition', context=ErrorContext(
        name='circle',
        label='radius',
        element={'name': 'circle', 'parameters': [['circle', int]]},
    ))

    assert str(error).splitlines() == [
        'Invalid definition',
        "    for 'circle', field 'radius'",
        '         ...',
        '        name: circle',
        '        parameters:',
        '        - - circle',
        '          - int',
    ]


def test_error_without_context() -> None:
    """Test errors without context keep their message as is."""
    assert str(SpecificationError('misuse')) == 'misuse'
    assert str(SpecificationError('misuse', context=ErrorContext())) == 'misuse'
