"""User-defined (custom) assertions.

A custom assertion is a named, parameterized group of ordinary
assertions. Test authors define it once::

    custom(
        'circle',
        description='Circle equality',
        parameters=[('circle', Circle), ('values', list)],
        run=check_circle,
    )

and invoke it with `T('circle', circle, [4, 5, 6])`. Arguments are
validated by count and then by position against the declared types;
the `run` callable receives a `CustomContext` exposing them as
attributes, and wraps each group of inner assertions in
`context.field(label, block)` so that failures name the field at fault.
"""

import warnings
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Self

from pydantic import ConfigDict, Field, ValidationError, create_model, model_validator

from nestest.errors import AssertionFailure, ErrorContext, RegistryWarning, SpecificationError
from nestest.models import SchemaModel
from nestest.names import Identifier  # noqa: TC001
from nestest.values import indent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nestest.values import RuntimeValue

#: Attribute names of `CustomContext` a parameter can not take.
RESERVED_NAMES = frozenset({'field'})

#: Indentation of inner messages in custom assertion reports.
DETAILS_INDENT = 4


class Arguments(SchemaModel):
    """Base model of validated custom assertion arguments.

    Validation is strict: values are checked against the declared types
    without coercion (`'1'` is not accepted for an `int` parameter).
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
        strict=True,
    )


class Parameter(SchemaModel):
    """Single positional parameter of a custom assertion."""

    name: Identifier = Field(
        title='Parameter name',
        description='Attribute under which the argument is exposed to the run callable.',
    )

    base: type = Field(
        title='Parameter type',
        description='Class every argument given at this position must be an instance of.',
    )

    @model_validator(mode='after')
    def check_reserved(self) -> Self:
        """Reject names shadowing the context API."""
        if self.name in RESERVED_NAMES:
            raise ValueError(f'parameter name {self.name!r} is reserved')

        return self


class CustomAssertion(SchemaModel):
    """Definition of a custom assertion."""

    name: Identifier = Field(
        title='Assertion name',
        description='Name passed as the first argument of `T` to invoke it.',
    )

    description: str = Field(
        min_length=1,
        title='Description',
        description='Human-readable name used in failure messages.',
    )

    parameters: list[Parameter] = Field(
        default_factory=list,
        title='Parameters',
        description='Ordered positional parameters.',
    )

    run: Callable[..., object] = Field(
        title='Run callable',
        description='Callable performing the inner assertions.',
    )

    @model_validator(mode='after')
    def check_unique_parameters(self) -> Self:
        """Parameter names must be unique."""
        names = [parameter.name for parameter in self.parameters]
        if len(names) != len(set(names)):
            raise ValueError('parameter names must be unique')

        return self

    def build_arguments(self) -> type[Arguments]:
        """Build a strict model checking arguments by declared type.

        Returns:
            A dynamically created `Arguments` subclass.
        """
        fields: dict[str, Any] = {
            parameter.name: (parameter.base, ...)
            for parameter in self.parameters
        }

        return create_model(f'{self.name}_Arguments', __base__=Arguments, **fields)

    def validate_arguments(self, values: 'tuple[RuntimeValue, ...]') -> dict[str, 'RuntimeValue']:
        """Check positional arguments against the parameters.

        Args:
            values: Arguments given after the assertion name.

        Returns:
            Mapping of parameter name to argument.

        Raises:
            SpecificationError: On a wrong count or a wrong type.
        """
        if len(values) != len(self.parameters):
            raise SpecificationError(
                f'Expect {len(self.parameters)} arguments after '
                f'{self.name!r}; got {len(values)}',
            )

        data = {
            parameter.name: value
            for parameter, value in zip(self.parameters, values, strict=True)
        }

        try:
            self.build_arguments().model_validate(data)
        except ValidationError as error:
            raise SpecificationError.from_pydantic_error(
                error,
                message=f'Wrong argument types for custom assertion {self.name!r}',
                data={parameter.name: parameter.base for parameter in self.parameters},
                name=self.name,
            ) from error

        # validated model instances may copy values; the originals are passed on
        return data


class CustomContext:
    """Context passed to the run callable of a custom assertion.

    Arguments are exposed as attributes named after the parameters.
    """

    def __init__(self, definition: CustomAssertion,
                 arguments: dict[str, 'RuntimeValue']) -> None:
        self._definition = definition
        self.__dict__.update(arguments)

    def field(self, label: str, block: Callable[[], object]) -> None:
        """Run a group of inner assertions on behalf of a named field.

        Args:
            label: Name of the field being checked.
            block: Callable running the inner assertions.

        Raises:
            AssertionFailure: If an inner assertion failed.
            SpecificationError: If an inner assertion was misused.
        """
        description = self._definition.description

        try:
            block()
        except AssertionFailure as failure:
            raise AssertionFailure(
                f'{description} test failed: {label} (details below)\n'
                f'{indent(failure.message, DETAILS_INDENT)}',
                context=failure.calling_context,
                backtrace=failure.backtrace,
            ) from failure
        except SpecificationError as error:
            raise SpecificationError(
                f'{description} test -- error: {label} details below\n'
                f'{indent(str(error), DETAILS_INDENT)}',
                context=ErrorContext(name=self._definition.name, label=label),
            ) from error

    def __repr__(self) -> str:
        return f'<CustomContext {self._definition.name!r}>'


class CustomRegistry:
    """Name-to-definition table of custom assertions.

    Definitions persist for the life of the registry (the whole process
    for the default runner). Redefining a name replaces the previous
    definition and emits a `RegistryWarning`.
    """

    def __init__(self) -> None:
        self._definitions: dict[str, CustomAssertion] = {}

    def define(self, name: str, description: str,
               parameters: 'Iterable[tuple[str, type] | Parameter]',
               run: Callable[[CustomContext], object]) -> CustomAssertion:
        """Validate and register a custom assertion.

        Args:
            name: Assertion name.
            description: Human-readable description.
            parameters: Pairs of parameter name and type, in order.
            run: Callable performing the inner assertions.

        Returns:
            The registered definition.

        Raises:
            SpecificationError: If the definition is invalid.
        """
        data = {
            'name': name,
            'description': description,
            'parameters': [
                parameter
                if isinstance(parameter, Parameter)
                else _parameter_data(name, parameter)
                for parameter in parameters
            ],
            'run': run,
        }

        try:
            definition = CustomAssertion.model_validate(data)
        except ValidationError as error:
            raise SpecificationError.from_pydantic_error(
                error,
                message=f'Invalid custom assertion {name!r}',
                data=data,
                name=name if isinstance(name, str) else None,
            ) from error

        if definition.name in self._definitions:
            warnings.warn(
                f'Custom assertion {definition.name!r} redefined',
                category=RegistryWarning,
                stacklevel=3,
            )

        self._definitions[definition.name] = definition

        return definition

    def lookup(self, name: str) -> CustomAssertion:
        """Get a definition by name.

        Raises:
            SpecificationError: If nothing is defined under the name.
        """
        if name not in self._definitions:
            raise SpecificationError(f'Non-existent custom assertion: {name!r}')

        return self._definitions[name]

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


def _parameter_data(name: str, parameter: Any) -> dict[str, Any]:  # noqa: ANN401
    """Turn a `(name, type)` pair into parameter data."""
    if not isinstance(parameter, (tuple, list)) or len(parameter) != 2:
        raise SpecificationError(
            f'Invalid custom assertion {name!r}: parameters must be '
            f'(name, type) pairs, got {parameter!r}',
        )

    return {'name': parameter[0], 'base': parameter[1]}
