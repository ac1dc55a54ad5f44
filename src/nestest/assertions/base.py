"""Declarative assertion kinds and their ephemeral instances.

An assertion kind describes one family of checks (truthiness, equality,
exception expectation, ...) by three callables:
- a preparer validating the shape of the arguments and turning them
  into named parameters;
- a checker evaluating the parameters into a pass/fail boolean;
- an explainer producing a human-readable failure message on demand.

Kinds are immutable records. An `Assertion` binds a kind to a mode and
validated parameters for the duration of a single invocation.
"""

from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import Field

from nestest.errors import SpecificationError
from nestest.models import SchemaModel
from nestest.values import RuntimeValue  # noqa: TC001

#: A zero-argument callable standing in for a block of code.
type Block = Callable[[], RuntimeValue]

#: Mutable record of facts gathered while a checker runs (block results,
#: captured exceptions, caught signal payloads). Read by explainers and
#: by the runner after the assertion has run.
type Evidence = dict[str, RuntimeValue]

#: The preparer receives positional arguments, keyword arguments and the
#: optional block, and returns the named parameters of the assertion.
#: It raises `SpecificationError` on any shape violation.
type Preparer = Callable[
    [tuple[RuntimeValue, ...], Mapping[str, RuntimeValue], Block | None],
    dict[str, RuntimeValue],
]

#: The checker receives the parameters and an evidence record, and
#: returns True if the predicate holds.
type CheckRunner = Callable[[Mapping[str, RuntimeValue], Evidence], bool]

#: The explainer receives the parameters, the evidence gathered by the
#: checker and the mode, and returns the failure message.
type Explainer = Callable[[Mapping[str, RuntimeValue], Evidence, Mode], str]


class Mode(StrEnum):
    """Invocation mode shared by every assertion kind."""

    #: Require the predicate to hold.
    ASSERT = 'assert'
    #: Require the predicate not to hold.
    NEGATE = 'negate'
    #: Evaluate the predicate and return the result.
    QUERY = 'query'


class AssertionKind(SchemaModel):
    """Declarative definition of an assertion kind.

    Kind instances are registered in a static table keyed by their base
    name (for example `Eq`) and are compiled into `Assertion` objects each
    time the corresponding DSL function is called.
    """

    name: str = Field(
        title='Base name',
        description=(
            'Base name of the DSL functions running this kind. '
            'The negate and query forms append `_not` and `_q`.'
        ),
        examples=['T', 'Eq', 'Ft'],
    )

    title: str = Field(
        title='Title',
        description='Short human-readable name used in failure messages.',
    )

    prepare: Preparer = Field(
        title='Argument preparer',
        description=(
            'Callable validating the argument shape and returning '
            'the named parameters of the assertion.'
        ),
    )

    checker: CheckRunner = Field(
        title='Checker function',
        description=(
            'Callable implementing the predicate. Must return True if '
            'the predicate holds, or False otherwise.'
        ),
    )

    explain: Explainer = Field(
        title='Message builder',
        description='Callable building the failure message lazily.',
    )

    def build(self, mode: Mode, args: tuple[RuntimeValue, ...],
              kwargs: Mapping[str, RuntimeValue] | None = None,
              block: Block | None = None) -> 'Assertion':
        """Validate arguments and bind them into an assertion instance.

        Args:
            mode: Invocation mode.
            args: Positional arguments given to the DSL function.
            kwargs: Keyword arguments other than `block`.
            block: Optional block given to the DSL function.

        Returns:
            A ready-to-run assertion.

        Raises:
            SpecificationError: If the arguments do not fit the kind.
        """
        if block is not None and not callable(block):
            raise SpecificationError(f'{self.name}: block must be callable, got {block!r}')

        params = self.prepare(args, kwargs or {}, block)

        return Assertion(self, mode, params, block)


class Assertion:
    """Single evaluation of an assertion kind.

    Created and discarded within one assertion invocation.
    """

    def __init__(self, kind: AssertionKind, mode: Mode,
                 params: dict[str, RuntimeValue],
                 block: Block | None = None) -> None:
        self.kind = kind
        self.mode = mode
        self.params = params
        self.block = block

        self.evidence: Evidence = {}

    def run(self) -> bool:
        """Evaluate the predicate (without applying the mode)."""
        return bool(self.kind.checker(self.params, self.evidence))

    def message(self) -> str:
        """Build the failure message for the current mode."""
        return self.kind.explain(self.params, self.evidence, self.mode)


def no_keywords(name: str, kwargs: Mapping[str, Any]) -> None:
    """Reject keyword arguments for kinds that take none."""
    if kwargs:
        raise SpecificationError(
            f'{name}: unexpected keyword arguments {', '.join(sorted(kwargs))}',
        )


def no_block(name: str, block: Block | None) -> None:
    """Reject a block for kinds that only take values."""
    if block is not None:
        raise SpecificationError(f"{name}: this assertion doesn't take a block")


def block_required(name: str, block: Block | None) -> Block:
    """Require a block."""
    if block is None:
        raise SpecificationError(f'{name}: this assertion requires a block')

    return block


def exactly(name: str, args: tuple[RuntimeValue, ...],
            count: int) -> tuple[RuntimeValue, ...]:
    """Require an exact number of positional arguments."""
    if len(args) != count:
        noun = 'argument' if count == 1 else 'arguments'
        raise SpecificationError(
            f'{name}: exactly {count} {noun} required, got {len(args)}',
        )

    return args


def value_or_block(name: str, args: tuple[RuntimeValue, ...],
                   block: Block | None) -> Block:
    """Accept exactly one argument or a block, not both and not neither.

    Returns:
        A block producing the value to check.
    """
    if block is not None and not args:
        return block

    if block is None and len(args) == 1:
        value = args[0]
        return lambda: value

    raise SpecificationError(
        f'{name}: improper arguments; give exactly one value or a block',
    )
