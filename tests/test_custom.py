"""Tests for custom assertions."""

import re
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from nestest.assertions import CustomAssertion, CustomContext, Parameter
from nestest.errors import AssertionFailure, RegistryWarning, SpecificationError

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from nestest.dsl import DSL


@dataclass
class Circle:
    x: int
    y: int
    radius: int


@pytest.fixture
def circle(dsl: 'DSL') -> CustomAssertion:
    """Register a three-field custom assertion on the test runner."""

    def run(ctx: CustomContext) -> None:
        ctx.field('x', lambda: dsl.Eq(ctx.circle.x, ctx.values[0]))
        ctx.field('y', lambda: dsl.Eq(ctx.circle.y, ctx.values[1]))
        ctx.field('radius', lambda: dsl.Eq(ctx.circle.radius, ctx.values[2]))

    return dsl.custom(
        'circle',
        description='Circle equality',
        parameters=[('circle', Circle), ('values', list)],
        run=run,
    )


def test_passing(dsl: 'DSL', circle: CustomAssertion) -> None:
    """Test a custom assertion passes when every field holds."""
    assert dsl.T('circle', Circle(4, 5, 6), [4, 5, 6]) is True


def test_failing_field(dsl: 'DSL', circle: CustomAssertion) -> None:
    """Test the failure message names the failing field."""
    with pytest.raises(AssertionFailure) as error:
        dsl.T('circle', Circle(4, 5, 6), [4, 7, 6])

    lines = error.value.message.splitlines()

    assert lines[0] == 'Circle equality test failed: y (details below)'
    assert lines[1] == '    Equality test failed'
    assert lines[2] == '      Should be: 7'


def test_counts_once(dsl: 'DSL', circle: CustomAssertion) -> None:
    """Test one invocation counts as one assertion, whatever it runs inside."""
    shape = Circle(1, 2, 3)

    @dsl.D('Circle')
    def _(ctx: object) -> None:
        dsl.T('circle', shape, [1, 2, 3])
        dsl.T('circle', shape, [1, 0, 3])

    stats = dsl.run()

    assert stats.assertions == 2
    assert stats.failed == 1
    assert stats.passed == 0


def test_passing_counts_for_test(dsl: 'DSL', circle: CustomAssertion) -> None:
    """Test a passing custom assertion is enough to pass a test."""
    test = dsl.D('Circle', lambda ctx: dsl.T('circle', Circle(1, 2, 3), [1, 2, 3]))

    stats = dsl.run()

    assert test.passed
    assert test.passed_assertions == 1
    assert stats.assertions == 1


@pytest.mark.parametrize('args, except_message', (
    pytest.param(
        (Circle(1, 2, 3),),
        r"^Expect 2 arguments after 'circle'; got 1$",
        id='too few arguments',
    ),
    pytest.param(
        (Circle(1, 2, 3), [1, 2, 3], None),
        r"^Expect 2 arguments after 'circle'; got 3$",
        id='too many arguments',
    ),
    pytest.param(
        ((1, 2, 3), [1, 2, 3]),
        r"(?s)^Wrong argument types for custom assertion 'circle'.*circle:",
        id='wrong first type',
    ),
    pytest.param(
        (Circle(1, 2, 3), (1, 2, 3)),
        r"(?s)^Wrong argument types for custom assertion 'circle'.*values:",
        id='tuple is not a list',
    ),
))
def test_wrong_arguments(dsl: 'DSL', circle: CustomAssertion,
                         args: tuple, except_message: str) -> None:
    """Test arguments are checked by count and then by type."""
    with pytest.raises(SpecificationError, match=except_message):
        dsl.T('circle', *args)


def test_strict_types(dsl: 'DSL') -> None:
    """Test argument types are not coerced."""
    dsl.custom('positive', description='Positive', parameters=[('value', int)],
               run=lambda ctx: dsl.T(ctx.value > 0))

    assert dsl.T('positive', 1) is True

    with pytest.raises(SpecificationError, match=r'Wrong argument types'):
        dsl.T('positive', '1')


def test_unknown(dsl: 'DSL') -> None:
    """Test invoking an undefined custom assertion."""
    with pytest.raises(SpecificationError, match=r"^Non-existent custom assertion: 'nothing'$"):
        dsl.T('nothing', 1)


@pytest.mark.parametrize('name', (
    pytest.param('T_not', id='negate'),
    pytest.param('T_q', id='query'),
))
def test_assert_mode_only(dsl: 'DSL', circle: CustomAssertion, name: str) -> None:
    """Test custom assertions only run in assert mode."""
    with pytest.raises(SpecificationError, match=r'only be run in assert mode'):
        getattr(dsl, name)('circle', Circle(1, 2, 3), [1, 2, 3])


def test_single_string_is_truthiness(dsl: 'DSL', circle: CustomAssertion) -> None:
    """Test `T` with a single string argument is a plain truthiness check."""
    assert dsl.T('circle') is True


def test_specification_error_in_field(dsl: 'DSL') -> None:
    """Test misuse inside a field is reported with the field label."""
    dsl.custom('broken', description='Broken', parameters=[('value', int)],
               run=lambda ctx: ctx.field('value', lambda: dsl.Eq(ctx.value)))

    with pytest.raises(SpecificationError) as error:
        dsl.T('broken', 1)

    lines = str(error.value).splitlines()

    assert lines[0] == 'Broken test -- error: value details below'
    assert lines[1] == '    Eq: exactly 2 arguments required, got 1'
    assert lines[2] == "    for 'broken', field 'value'"


def test_failure_outside_field(dsl: 'DSL') -> None:
    """Test a failure outside of a field propagates unchanged."""
    dsl.custom('bare', description='Bare', parameters=[('value', int)],
               run=lambda ctx: dsl.Eq(ctx.value, 0))

    with pytest.raises(AssertionFailure, match=r'^Equality test failed'):
        dsl.T('bare', 1)


def test_decorator_form(dsl: 'DSL') -> None:
    """Test defining a custom assertion as a decorator."""

    @dsl.custom('even', description='Even number', parameters=[('value', int)])
    def even(ctx: CustomContext) -> None:
        ctx.field('value', lambda: dsl.Eq(ctx.value % 2, 0))

    assert isinstance(even, CustomAssertion)
    assert even.parameters == [Parameter(name='value', base=int)]
    assert dsl.T('even', 4) is True


@pytest.mark.parametrize('name, parameters, except_message', (
    pytest.param('1circle', [('circle', Circle)], r'(?s)Invalid custom assertion.*name:', id='bad name'),
    pytest.param('circle', [('my value', int)], r'(?s)parameters\.0\.name:', id='bad parameter name'),
    pytest.param('circle', [('field', int)], r"(?s)parameter name 'field' is reserved", id='reserved name'),
    pytest.param('circle', [('a', int), ('a', str)], r'(?s)parameter names must be unique', id='duplicate'),
    pytest.param('circle', [('a', 'int')], r'(?s)parameters\.0\.base:', id='base not a type'),
    pytest.param('circle', ['a'], r'must be \(name, type\) pairs', id='not a pair'),
))
def test_invalid_definitions(dsl: 'DSL', name: str, parameters: list,
                             except_message: str) -> None:
    """Test invalid definitions are rejected."""
    with pytest.raises(SpecificationError, match=except_message):
        dsl.custom(name, description='Circle', parameters=parameters, run=lambda ctx: None)


def test_empty_description(dsl: 'DSL') -> None:
    """Test the description is required."""
    with pytest.raises(SpecificationError, match=r'(?s)description:'):
        dsl.custom('circle', description='', run=lambda ctx: None)


def test_redefinition(dsl: 'DSL', mocker: 'MockerFixture') -> None:
    """Test redefinition warns and replaces the previous definition."""
    first = mocker.Mock()
    second = mocker.Mock()

    with warnings.catch_warnings():
        warnings.simplefilter('error')
        dsl.custom('check', description='First', parameters=[('value', int)], run=first)

    with pytest.warns(RegistryWarning, match=re.escape("Custom assertion 'check' redefined")):
        dsl.custom('check', description='Second', parameters=[('value', int)], run=second)

    dsl.T('check', 1)

    first.assert_not_called()
    second.assert_called_once()
    assert second.call_args.args[0].value == 1
