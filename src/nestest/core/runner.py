"""Execution engine.

The runner walks the suite tree depth first. For each test it installs
a fresh suite, invokes the body (which may declare nested tests and
hooks into that suite), and then executes the nested suite, so the tree
is built while it runs.

Every body and hook goes through a single invoke boundary. An assertion
failure or any other exception aborts the rest of the body that raised
it, is recorded exactly once against the running test, and execution
continues with the next sibling.
"""

import warnings
from time import perf_counter
from traceback import extract_stack
from typing import TYPE_CHECKING, Literal

from pydantic import Field

from nestest.assertions import BUILTINS, CustomContext, CustomRegistry, Mode
from nestest.context import Sandbox
from nestest.core.builder import SuiteBuilderMixin
from nestest.core.sharing import SharedCodeMixin
from nestest.errors import (
    AssertionFailure,
    FilterWarning,
    SignalThrown,
    SpecificationError,
    StopRun,
)
from nestest.models import RunOptions, SchemaModel
from nestest.reporting import ConsoleReporter
from nestest.tree import Result, Stats, Suite

if TYPE_CHECKING:
    from nestest.assertions.base import Assertion, Block
    from nestest.reporting import Reporter
    from nestest.tree import Body, Test
    from nestest.values import RuntimeValue


class Outcome(SchemaModel):
    """Tagged result of invoking one body."""

    kind: Literal['pass', 'fail', 'error'] = Field(
        title='Outcome kind',
        description=(
            'Whether the body completed, stopped on an assertion failure, '
            'or stopped on any other exception.'
        ),
    )

    message: str | None = Field(
        default=None,
        title='Message',
        description='Failure message or error text, if the body did not complete.',
    )

    error: BaseException | None = Field(
        default=None,
        title='Fault',
        description='The exception that stopped the body.',
    )

    @property
    def aborted(self) -> bool:
        return self.kind != 'pass'


class Runner(SuiteBuilderMixin, SharedCodeMixin):
    """Owner of all state of the engine.

    Attributes:
        reporter: Presentation collaborator.
        registry: Custom assertions.
        shared: Shared code blocks.
        sandbox: Context of hooks declared at the top level.
        top_level: Suite receiving top-level declarations.
        suite: Suite receiving declarations right now.
        tests: Stack of running tests.
        calls: Stack of running bodies and hooks.
        stats: Counters of the current (or last) run.
        catching: Names expected by the signal expectations running now.
        caught_value: Payload of the last signal expectation.
        exception: Fault captured by the last exception expectation.
    """

    def __init__(self, reporter: 'Reporter | None' = None) -> None:
        self.reporter: Reporter = reporter if reporter is not None else ConsoleReporter()
        self.registry = CustomRegistry()
        self.shared: dict[str, Body] = {}

        self.sandbox = Sandbox()
        self.top_level = Suite(self.sandbox)
        self.suite = self.top_level

        self.tests: list[Test] = []
        self.calls: list[Body] = []

        self.options: RunOptions | None = None
        self.stats = Stats()
        self.details: list[str] = []
        self.stopped = False

        self.catching: list[str] = []
        self.caught_value: RuntimeValue = None
        self.exception: BaseException | None = None

        self._custom_depth = 0

    def run(self, options: RunOptions | None = None) -> Stats:
        """Execute every top-level test declared so far and report.

        The top-level suite is emptied afterwards, so the next run only
        sees tests declared after this one.

        Args:
            options: Run options; read from the environment if omitted.

        Returns:
            A copy of the run counters.
        """
        self.options = options if options is not None else RunOptions()

        suite, self.top_level = self.top_level, Suite(self.sandbox)
        self.suite = self.top_level

        if self.options.filter is not None:
            suite.filter(self.options.filter)
            if not suite.tests:
                warnings.warn(
                    f'No tests match the filter {self.options.filter.pattern!r}',
                    category=FilterWarning,
                    stacklevel=2,
                )
                return Stats()

        self.stats = Stats()
        self.details = []
        self.tests = []
        self.calls = []
        self.catching = []
        self.stopped = False

        self.reporter.prepare(self.options)

        started = perf_counter()
        self.suite = suite
        try:
            self.execute(suite)
        except StopRun:
            self.stopped = True
        finally:
            self.suite = self.top_level
            self.stats.time = perf_counter() - started

        self.reporter.display_tree(suite)
        if self.details:
            self.reporter.display_failure_details(''.join(self.details))
        self.reporter.display_summary(self.stats.model_copy())

        return self.stats.model_copy()

    def stop(self) -> None:
        """Abandon the run; nothing else runs, not even teardown hooks."""
        raise StopRun

    def execute(self, suite: Suite) -> None:
        """Execute a suite: hooks around each test, recursing into nested suites.

        A failing hook stops the suite: its remaining hooks and tests
        do not run.
        """
        if not self._run_hooks(suite.before_all, suite.sandbox):
            return

        for test in suite.tests:
            if not self._run_hooks(suite.before_each, suite.sandbox):
                return

            self.execute_test(test, suite)

            if not self._run_hooks(suite.after_each, suite.sandbox):
                return

        self._run_hooks(suite.after_all, suite.sandbox)

    def execute_test(self, test: 'Test', suite: Suite) -> None:
        """Run one test body, then the tests it declared."""
        sandbox = test.sandbox if test.sandbox is not None else suite.sandbox

        parent_suite = self.suite
        self.tests.append(test)
        self.suite = Suite(sandbox)
        try:
            outcome = self.invoke(test.body, sandbox)
            if outcome.aborted:
                return

            if test.blank and test.passed_assertions > 0:
                test.result = Result.PASS
                self.stats.passed += 1

            self.execute(self.suite)
        finally:
            self.suite = parent_suite
            self.tests.pop()

    def invoke(self, body: 'Body', sandbox: Sandbox) -> Outcome:
        """Call a body at the failure boundary.

        Assertion failures, `SystemExit` and any other exception are
        recorded and reported here, once. Run termination and keyboard
        interrupts pass through.
        """
        self.calls.append(body)
        try:
            body(sandbox)
        except AssertionFailure as failure:
            self._record_failure(failure)
            outcome = Outcome(kind='fail', message=failure.message, error=failure)
        except (Exception, SystemExit) as error:  # noqa: BLE001
            self._record_error(error)
            outcome = Outcome(kind='error', message=str(error), error=error)
        else:
            outcome = Outcome(kind='pass')
        finally:
            self.calls.pop()

        return outcome

    def check(self, name: str, mode: Mode, *args: 'RuntimeValue',
              block: 'Block | None' = None, **kwargs: 'RuntimeValue') -> bool:
        """Run a built-in assertion, or a custom one through `T`.

        Args:
            name: Base name of the assertion kind.
            mode: Invocation mode.
            args: Positional arguments of the assertion.
            block: Optional block.
            kwargs: Keyword arguments of the assertion.

        Returns:
            The predicate in query mode, True otherwise.

        Raises:
            AssertionFailure: If an assert or negate assertion fails.
            SpecificationError: On misuse.
        """
        if name == 'T' and len(args) > 1 and isinstance(args[0], str):
            if mode is not Mode.ASSERT:
                raise SpecificationError(
                    f'Custom assertion {args[0]!r} can only be run in assert mode',
                )
            if block is not None or kwargs:
                raise SpecificationError(f'Custom assertion {args[0]!r} takes positional arguments only')
            self.custom(args[0], *args[1:])
            return True

        if name not in BUILTINS:
            raise SpecificationError(f'Unknown assertion {name!r}')

        assertion = BUILTINS[name].build(mode, args, kwargs, block)

        return self.action(assertion)

    def action(self, assertion: 'Assertion') -> bool:
        """Evaluate an assertion and apply its mode."""
        if self._custom_depth == 0:
            self.stats.assertions += 1

        signal = assertion.params.get('signal')
        if signal is not None:
            assertion.params['enclosing'] = frozenset(self.catching)
            self.catching.append(signal)

        try:
            passed = assertion.run()
        finally:
            if signal is not None:
                self.catching.pop()

        if 'exception' in assertion.evidence:
            self.exception = assertion.evidence['exception']
        if 'caught' in assertion.evidence:
            self.caught_value = assertion.evidence['caught']

        if assertion.mode is Mode.QUERY:
            return passed

        if assertion.mode is Mode.NEGATE:
            passed = not passed

        if not passed:
            raise AssertionFailure(
                assertion.message(),
                context=self.calls[-1] if self.calls else None,
                backtrace=extract_stack(),
            )

        self._count_pass()

        return True

    def custom(self, name: str, *args: 'RuntimeValue') -> None:
        """Run a custom assertion; it counts as one assertion."""
        definition = self.registry.lookup(name)
        arguments = definition.validate_arguments(args)

        if self._custom_depth == 0:
            self.stats.assertions += 1

        self._custom_depth += 1
        try:
            definition.run(CustomContext(definition, arguments))
        finally:
            self._custom_depth -= 1

        self._count_pass()

    def throw(self, name: str, value: 'RuntimeValue' = None) -> None:
        """Raise a named signal, to be caught by a signal expectation."""
        if not isinstance(name, str) or not name:
            raise SpecificationError(f'Signal name must be a non-empty string, got {name!r}')

        raise SignalThrown(name, value)

    def _run_hooks(self, hooks: 'list[Body]', sandbox: Sandbox) -> bool:
        for hook in hooks:
            if self.invoke(hook, sandbox).aborted:
                return False

        return True

    def _count_pass(self) -> None:
        if self._custom_depth > 0:
            return

        if (test := self.current_test) is not None:
            test.passed_assertions += 1

    def _resolve(self, result: Result, error: BaseException | None = None) -> None:
        """Record a fault against the running test.

        A test already counted as passed loses that pass, so each test
        is counted once.
        """
        test = self.current_test
        if test is None:
            return

        if test.passed:
            self.stats.passed -= 1

        test.result = result
        test.error = error

    def _record_failure(self, failure: AssertionFailure) -> None:
        self._resolve(Result.FAIL, failure)
        self.stats.failed += 1
        self.details.append(
            self.reporter.report_failure(
                self.current_description,
                failure.message,
                failure.backtrace,
            ),
        )

    def _record_error(self, error: Exception | SystemExit) -> None:
        self._resolve(Result.ERROR, error)
        self.stats.errors += 1
        self.details.append(
            self.reporter.report_uncaught_fault(
                self.current_description,
                error,
                list(self.calls),
            ),
        )
