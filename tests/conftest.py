"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from nestest.core import Runner
from nestest.dsl import DSL
from nestest.reporting import ConsoleReporter

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep `NESTEST_*` variables of the outer shell out of the tests."""
    monkeypatch.delenv('NESTEST_FILTER', raising=False)
    monkeypatch.delenv('NESTEST_FULL_BACKTRACE', raising=False)


@pytest.fixture
def reporter(mocker: 'MockerFixture') -> 'MockType':
    """Provide a reporter double recording every call of the runner.

    Report methods return short fixed detail blocks so that the
    buffered failure details can be checked by content.
    """
    reporter = mocker.Mock(spec=ConsoleReporter)
    reporter.report_failure.return_value = 'failure\n'
    reporter.report_uncaught_fault.return_value = 'fault\n'

    return reporter


@pytest.fixture
def runner(reporter: 'MockType') -> Runner:
    """Provide a fresh runner reporting to the mocked reporter."""
    return Runner(reporter)


@pytest.fixture
def dsl(runner: Runner) -> DSL:
    """Provide the declaration facade bound to the fresh runner."""
    return DSL(runner)
