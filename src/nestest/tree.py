"""Test tree and run statistics.

A `Test` is a named body of work; a `Suite` is the ordered group of
tests declared at one nesting level together with its setup and
teardown hooks. Tests nest: declarations made while a test body runs
become its children, and are only discovered by running that body.
"""

from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Callable
    from re import Pattern

    from nestest.context import Sandbox

#: A test body or hook. Receives the sandbox it runs against.
type Body = Callable[[Sandbox], object]


class Result(StrEnum):
    """Resolution of a single test."""

    #: The test did not run any passing assertion (yet).
    BLANK = 'blank'
    PASS = 'pass'
    FAIL = 'fail'
    ERROR = 'error'


class Test:
    """A named unit of work, possibly containing nested tests.

    Attributes:
        description: Human-readable test name.
        body: Callable run by the engine with the test's sandbox.
        sandbox: Isolation context; present iff the test is insulated.
        result: Resolution of the test for the current run.
        error: The fault captured when the result is an error.
        parent: Test in whose body this test was declared.
        children: Tests declared while this test's body ran.
        passed_assertions: Number of passing assert/negate assertions
            run while this test was the current test.
    """

    __test__ = False

    def __init__(self, description: str, body: 'Body',
                 sandbox: 'Sandbox | None' = None) -> None:
        self.description = description
        self.body = body
        self.sandbox = sandbox

        self.result = Result.BLANK
        self.error: BaseException | None = None
        self.passed_assertions = 0

        self._parent: Test | None = None
        self.children: list[Test] = []

    @property
    def parent(self) -> 'Test | None':
        return self._parent

    @parent.setter
    def parent(self, test: 'Test | None') -> None:
        self._parent = test
        if test is not None:
            test.children.append(self)

    @property
    def insulated(self) -> bool:
        return self.sandbox is not None

    @property
    def passed(self) -> bool:
        return self.result is Result.PASS

    @property
    def failed(self) -> bool:
        return self.result is Result.FAIL

    @property
    def errored(self) -> bool:
        return self.result is Result.ERROR

    @property
    def blank(self) -> bool:
        return self.result is Result.BLANK

    def __repr__(self) -> str:
        return f'<Test {self.description!r} {self.result}>'


class Suite:
    """Tests declared at one nesting level, plus their hooks.

    Attributes:
        sandbox: Context that hooks and non-insulated tests of this level
            run against.
        tests: Tests in declaration order.
        before_all: Hooks run once before the first test.
        before_each: Hooks run before every test.
        after_each: Hooks run after every test.
        after_all: Hooks run once after the last test.
    """

    __test__ = False

    def __init__(self, sandbox: 'Sandbox') -> None:
        self.sandbox = sandbox

        self.tests: list[Test] = []
        self.before_all: list[Body] = []
        self.before_each: list[Body] = []
        self.after_each: list[Body] = []
        self.after_all: list[Body] = []

    def filter(self, pattern: 'Pattern[str]') -> None:
        """Keep only the tests whose description matches a pattern."""
        self.tests = [
            test
            for test in self.tests
            if pattern.search(test.description)
        ]

    def walk(self) -> 'list[tuple[Test, int]]':
        """List every test in the tree with its nesting level.

        Returns:
            Pairs of test and depth (0 for this suite's own tests),
            in depth-first declaration order.
        """
        result: list[tuple[Test, int]] = []

        def visit(tests: list[Test], level: int) -> None:
            for test in tests:
                result.append((test, level))
                visit(test.children, level + 1)

        visit(self.tests, 0)

        return result


class Stats(BaseModel):
    """Counters accumulated during a run.

    A single instance is reset at the start of a run and mutated while
    it executes; a frozen copy is handed to the reporter at the end.
    """

    model_config = ConfigDict(extra='forbid', validate_assignment=True)

    passed: int = Field(default=0, ge=0, title='Passed tests')
    failed: int = Field(default=0, ge=0, title='Failures')
    errors: int = Field(default=0, ge=0, title='Errors')
    assertions: int = Field(default=0, ge=0, title='Evaluated assertions')
    time: float = Field(default=0.0, ge=0.0, title='Elapsed seconds')

    @property
    def overall(self) -> str:
        """`PASS` when there is neither a failure nor an error."""
        return 'FAIL' if self.failed + self.errors > 0 else 'PASS'

    @property
    def exit_code(self) -> int:
        """Process exit status reflecting failures and errors."""
        return min(self.failed + self.errors, 255)
