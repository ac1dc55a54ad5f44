"""Tests for stopping a run."""

from typing import TYPE_CHECKING

import pytest

from nestest.errors import StopRun

if TYPE_CHECKING:
    from pytest_mock import MockType

    from nestest.context import Sandbox
    from nestest.dsl import DSL


def test_stop_from_nested_test(dsl: 'DSL', reporter: 'MockType') -> None:
    """Test stopping skips everything after the stop point, hooks included."""
    log: list[str] = []

    dsl.D.after_each(lambda ctx: log.append('top after each'))
    dsl.D.after_all(lambda ctx: log.append('top after all'))

    @dsl.D('Outer')
    def outer(ctx: 'Sandbox') -> None:
        dsl.T(True)
        dsl.D.after_each(lambda ctx: log.append('after each'))
        dsl.D.after_all(lambda ctx: log.append('after all'))

        @dsl.D('Stops')
        def _(ctx: 'Sandbox') -> None:
            dsl.T(True)
            dsl.stop()
            log.append('after stop')

        dsl.D('Sibling', lambda ctx: log.append('sibling'))

    later = dsl.D('Later', lambda ctx: log.append('later'))

    stats = dsl.run()

    assert log == []
    assert outer.passed
    assert outer.children[0].blank
    assert outer.children[1].blank
    assert later.blank
    assert stats.passed == 1
    assert dsl.runner.stopped

    reporter.display_tree.assert_called_once()
    reporter.display_summary.assert_called_once()


def test_stop_from_hook(dsl: 'DSL') -> None:
    """Test stopping from a teardown hook skips the remaining hooks."""
    log: list[str] = []

    dsl.D.after_each(lambda ctx: dsl.stop())
    dsl.D.after_each(lambda ctx: log.append('second hook'))
    dsl.D('First', lambda ctx: log.append('first') or dsl.T(True))
    dsl.D('Second', lambda ctx: log.append('second'))

    stats = dsl.run()

    assert log == ['first']
    assert stats.passed == 1


def test_stop_not_caught_by_bodies(dsl: 'DSL') -> None:
    """Test `except Exception` in a body does not intercept a stop."""
    log: list[str] = []

    def body(ctx: 'Sandbox') -> None:
        try:
            dsl.stop()
        except Exception:  # noqa: BLE001
            log.append('caught')

    dsl.D('Test', body)
    dsl.run()

    assert log == []


def test_stacks_unwound(dsl: 'DSL') -> None:
    """Test a stopped run leaves no running test or body behind."""

    @dsl.D('Outer')
    def _(ctx: 'Sandbox') -> None:
        dsl.D('Inner', lambda ctx: dsl.stop())

    dsl.run()

    assert dsl.runner.tests == []
    assert dsl.runner.calls == []
    assert dsl.current_test == '(toplevel)'

    test = dsl.D('Next run', lambda ctx: dsl.T(True))
    stats = dsl.run()

    assert test.passed
    assert stats.passed == 1
    assert not dsl.runner.stopped


def test_stop_outside_run(dsl: 'DSL') -> None:
    """Test stopping outside of a run raises the stop request."""
    with pytest.raises(StopRun):
        dsl.stop()
