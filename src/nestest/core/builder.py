"""Suite tree construction.

Declarations (tests and hooks) are appended to whichever suite is
active when they are made. The runner installs a fresh suite before it
invokes each test body, so declarations made inside a body become that
test's children, and the tree is discovered as it runs.
"""

from typing import TYPE_CHECKING

from nestest.context import Sandbox
from nestest.errors import SpecificationError
from nestest.tree import Test

if TYPE_CHECKING:
    from nestest.tree import Body, Suite

#: Description used when no test is running.
TOPLEVEL = '(toplevel)'

#: Hook lists of a suite, in the order they run around a test.
HOOKS = ('before_all', 'before_each', 'after_each', 'after_all')


class SuiteBuilderMixin:
    """Mixin appending declarations to the active suite.

    Expects the host to provide `suite` (the active suite) and `tests`
    (the stack of currently running tests).
    """

    suite: 'Suite'
    tests: list[Test]

    def declare_test(self, description: str, body: 'Body', *,
                     insulate: bool = False) -> Test:
        """Append a test to the active suite.

        Tests declared while no test is running are always insulated.

        Args:
            description: Human-readable test name.
            body: Callable receiving the test's sandbox.
            insulate: If true, the test runs against a fresh sandbox.

        Returns:
            The declared test.

        Raises:
            SpecificationError: If the description is not a string or
                the body is missing.
        """
        if not isinstance(description, str):
            raise SpecificationError(f'Test description must be a string, got {description!r}')

        if body is None or not callable(body):
            raise SpecificationError(f'No body given for test {description!r}')

        parent = self.current_test
        if parent is None:
            insulate = True

        test = Test(description, body, Sandbox() if insulate else None)
        test.parent = parent
        self.suite.tests.append(test)

        return test

    def add_hook(self, kind: str, body: 'Body') -> None:
        """Append a setup or teardown hook to the active suite.

        Args:
            kind: One of `HOOKS`.
            body: Callable receiving the suite's sandbox.

        Raises:
            SpecificationError: If the body is missing.
        """
        if kind not in HOOKS:
            raise SpecificationError(f'Unknown hook {kind!r}')

        if body is None or not callable(body):
            raise SpecificationError(f'No body given for {kind} hook')

        getattr(self.suite, kind).append(body)

    def add_before_each(self, body: 'Body') -> None:
        self.add_hook('before_each', body)

    def add_after_each(self, body: 'Body') -> None:
        self.add_hook('after_each', body)

    def add_before_all(self, body: 'Body') -> None:
        self.add_hook('before_all', body)

    def add_after_all(self, body: 'Body') -> None:
        self.add_hook('after_all', body)

    @property
    def current_test(self) -> Test | None:
        """The innermost running test, if any."""
        return self.tests[-1] if self.tests else None

    @property
    def current_description(self) -> str:
        test = self.current_test
        return test.description if test is not None else TOPLEVEL
