"""Declaration facade.

`DSL` binds the short names test files are written with to a runner::

    from nestest import D, Eq, T

    @D('Math')
    def _(ctx):
        ctx.values = [8, 9, 10]

        @D('Addition')
        def _(ctx):
            Eq(ctx.values[0] + 1, ctx.values[1])

Every built-in assertion kind `B` is exposed three times: `B` asserts,
`B_not` negates and `B_q` queries.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from nestest.assertions import BUILTINS, Mode
from nestest.core import Runner
from nestest.models import RunOptions

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nestest.assertions import CustomAssertion, CustomContext, Parameter
    from nestest.tree import Body, Stats, Test
    from nestest.values import RuntimeValue

#: Name suffix of each assertion mode.
SUFFIXES = {
    Mode.ASSERT: '',
    Mode.NEGATE: '_not',
    Mode.QUERY: '_q',
}


class AssertionFunction(Protocol):
    """Signature shared by all generated assertion functions."""

    def __call__(self, *args: 'RuntimeValue', block: Callable[[], object] | None = None,
                 **kwargs: 'RuntimeValue') -> bool: ...


class Declarations:
    """The `D` object: declares tests and hooks on a runner.

    Called with a body, declares a test right away. Called with a
    description only, returns a decorator declaring the decorated
    function.
    """

    def __init__(self, runner: Runner) -> None:
        self._runner = runner

    def __call__(self, description: str,
                 body: 'Body | None' = None) -> 'Test | Callable[[Body], Test]':
        return self._declare(description, body, insulate=False)

    def insulated(self, description: str,
                  body: 'Body | None' = None) -> 'Test | Callable[[Body], Test]':
        """Declare a test running against a fresh sandbox."""
        return self._declare(description, body, insulate=True)

    def before_each(self, body: 'Body') -> 'Body':
        self._runner.add_before_each(body)
        return body

    def after_each(self, body: 'Body') -> 'Body':
        self._runner.add_after_each(body)
        return body

    def before_all(self, body: 'Body') -> 'Body':
        self._runner.add_before_all(body)
        return body

    def after_all(self, body: 'Body') -> 'Body':
        self._runner.add_after_all(body)
        return body

    def _declare(self, description: str, body: 'Body | None', *,
                 insulate: bool) -> 'Test | Callable[[Body], Test]':
        if body is not None:
            return self._runner.declare_test(description, body, insulate=insulate)

        def decorator(function: 'Body') -> 'Test':
            return self._runner.declare_test(description, function, insulate=insulate)

        return decorator


class DSL:
    """Short-named functions bound to one runner.

    Attributes:
        runner: The runner every declaration and assertion goes to.
        D: Test and hook declarations.
    """

    T: AssertionFunction
    T_not: AssertionFunction
    T_q: AssertionFunction
    F: AssertionFunction
    F_not: AssertionFunction
    F_q: AssertionFunction
    N: AssertionFunction
    N_not: AssertionFunction
    N_q: AssertionFunction
    Eq: AssertionFunction
    Eq_not: AssertionFunction
    Eq_q: AssertionFunction
    Mt: AssertionFunction
    Mt_not: AssertionFunction
    Mt_q: AssertionFunction
    Ko: AssertionFunction
    Ko_not: AssertionFunction
    Ko_q: AssertionFunction
    Ft: AssertionFunction
    Ft_not: AssertionFunction
    Ft_q: AssertionFunction
    Id: AssertionFunction
    Id_not: AssertionFunction
    Id_q: AssertionFunction
    E: AssertionFunction
    E_not: AssertionFunction
    E_q: AssertionFunction
    C: AssertionFunction
    C_not: AssertionFunction
    C_q: AssertionFunction

    def __init__(self, runner: Runner | None = None) -> None:
        self.runner = runner if runner is not None else Runner()
        self.D = Declarations(self.runner)

        for name in BUILTINS:
            for mode, suffix in SUFFIXES.items():
                setattr(self, f'{name}{suffix}', self._make_assertion(name, mode))

    def _make_assertion(self, name: str, mode: Mode) -> AssertionFunction:
        runner = self.runner

        def assertion(*args: 'RuntimeValue', block: Callable[[], object] | None = None,
                      **kwargs: 'RuntimeValue') -> bool:
            return runner.check(name, mode, *args, block=block, **kwargs)

        assertion.__name__ = assertion.__qualname__ = f'{name}{SUFFIXES[mode]}'

        return assertion

    def xD(self, *args: object, **kwargs: object) -> object:  # noqa: N802
        """Disabled declaration: accepts anything and declares nothing.

        In decorator form the decorated function is returned unchanged.
        """
        if len(args) == 1 and not kwargs:
            return lambda body: body

        return None

    def custom(self, name: str, *, description: str,
               parameters: 'Iterable[tuple[str, type] | Parameter]' = (),
               run: 'Callable[[CustomContext], object] | None' = None,
               ) -> 'CustomAssertion | Callable[[Callable[[CustomContext], object]], CustomAssertion]':
        """Define a custom assertion, directly or as a decorator."""
        if run is not None:
            return self.runner.registry.define(name, description, parameters, run)

        def decorator(function: 'Callable[[CustomContext], object]') -> 'CustomAssertion':
            return self.runner.registry.define(name, description, parameters, function)

        return decorator

    def S(self, identifier: str, block: 'Body | None' = None) -> object:  # noqa: N802
        """Share a block under an identifier, or inject it when no block is given."""
        if block is None:
            return self.runner.inject(identifier)

        self.runner.share(identifier, block)
        return None

    def S_now(self, identifier: str, block: 'Body') -> object:  # noqa: N802
        """Share a block and inject it right away."""
        return self.runner.share_and_inject(identifier, block)

    def S_q(self, identifier: str) -> bool:  # noqa: N802
        return self.runner.is_shared(identifier)

    def throw(self, name: str, value: 'RuntimeValue' = None) -> None:
        self.runner.throw(name, value)

    def stop(self) -> None:
        self.runner.stop()

    def run(self, options: RunOptions | None = None, **overrides: object) -> 'Stats':
        """Run every declared test.

        Args:
            options: Run options.
            overrides: Option values used instead of the environment
                when `options` is omitted.
        """
        if options is None:
            options = RunOptions(**overrides)  # type: ignore[arg-type]

        return self.runner.run(options)

    @property
    def caught_value(self) -> 'RuntimeValue':
        """Payload of the signal caught by the last `C`."""
        return self.runner.caught_value

    @property
    def exception(self) -> BaseException | None:
        """Fault captured by the last `E`."""
        return self.runner.exception

    @property
    def current_test(self) -> str:
        """Description of the running test, or `(toplevel)`."""
        return self.runner.current_description
