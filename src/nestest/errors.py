"""Core exception hierarchy.

This module defines the error, signal, and warning types used across the
engine to report assertion failures, misuse of the DSL, shared-code
problems, and run termination in a structured way.

Three kinds of faults are always kept apart:
- `AssertionFailure`: an assertion did not hold;
- `SpecificationError`: the DSL was used incorrectly by a test author;
- any other exception: a fault in the code under test.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

from nestest.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from traceback import StackSummary
    from typing import Self

    from pydantic_core import ErrorDetails, ValidationError

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the custom assertion or shared-code block involved.
    name: str | None
    #: Label of the custom assertion field being checked.
    label: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None
    #: Declarative element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting engine errors.

    This formatter is responsible for producing human-readable
    error messages with optional location and YAML-based snippets
    of the offending definition.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)
        if not location and not snippet:
            return message

        return f'{message}{linesep}{location}{snippet}'

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format the assertion and field the error belongs to.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string, or an empty string.
        """
        indent = cls._ensure_indent(indent)
        message = ''

        if (name := context.get('name')) is not None:
            message += f'{indent}for {name!r}'
            if (label := context.get('label')) is not None:
                message += f', field {label!r}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing element data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if element := context.get('element'):
            snippet = f'{indent}{SNIPPET_ELLIPSIS}'
            snippet += cls._make_yaml(element, indent)
            snippet += linesep
            return snippet

        return ''

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Non-scalar and non-container objects are replaced with
        a placeholder; types are rendered by their qualified name.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, type):
            return value.__qualname__

        if isinstance(value, MAPPINGS):
            return {
                f'{key}': cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class NestestWarning(UserWarning):
    """Base warning for non-fatal engine issues."""


class FilterWarning(NestestWarning):
    """Warning emitted when a run filter leaves no tests to run."""


class RegistryWarning(NestestWarning):
    """Warning emitted when a custom assertion replaces an existing one."""


class NestestError(Exception, ErrorFormatter):
    """Base exception for all nestest errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location and data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)


class AssertionFailure(NestestError):
    """An assertion did not hold.

    Raised by assert and negate modes of every assertion kind. The runner
    catches it at the boundary of the body being invoked, records the
    failure, and aborts the rest of that body.
    """

    def __init__(self, message: str, *,
                 context: Any = None,  # noqa: ANN401
                 backtrace: 'StackSummary | None' = None) -> None:
        """Initialize a failure.

        Args:
            message: Failure message produced by the assertion.
            context: Block or body in which the failing assertion ran.
            backtrace: Stack at the point of failure.
        """
        self.calling_context = context
        self.backtrace = backtrace

        super().__init__(message)


class SpecificationError(NestestError):
    """The DSL was used incorrectly.

    Raised for wrong arity or argument types passed to an assertion,
    missing blocks or bodies, and invalid custom assertion definitions.
    It aborts the current test body like any other error but is
    reported with a distinct label.
    """

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            message: str | None = None,
                            data: Any = None,  # noqa: ANN401
                            name: str | None = None) -> 'Self':
        """Create a specification error from a Pydantic validation failure.

        Args:
            error: ValidationError raised by Pydantic.
            message: Optional leading message.
            data: Element data shown as a snippet.
            name: Name of the custom assertion involved.

        Returns:
            SpecificationError representing the validation failure.
        """
        error_context = ErrorContext(
            name=name,
            error=error,
            element=data,
        )

        details = [
            cls._describe_pydantic_error(item)
            for item in error.errors(include_url=False, include_input=False)
        ]

        text = message or 'Invalid definition'
        for item in details:
            text += f'{linesep}{' ' * FORMAT_INDENT}{item}'

        return cls(text, context=error_context)

    @staticmethod
    def _describe_pydantic_error(error: 'ErrorDetails') -> str:
        """Render a single Pydantic error as `location: message`."""
        location = '.'.join(f'{item}' for item in error['loc'])
        if not location:
            return error['msg']

        return f'{location}: {error['msg']}'


class SharedCodeError(NestestError):
    """Shared code was defined twice, or injected where it cannot be."""


class SignalThrown(NestestError):
    """Non-local exit carrying a named signal and an optional payload.

    Raised by `throw` and caught by the signal expectation (`C`).
    Outside such an expectation it surfaces as an ordinary error.
    """

    def __init__(self, name: str, value: Any = None) -> None:  # noqa: ANN401
        """Initialize a signal.

        Args:
            name: Symbolic signal name.
            value: Payload delivered to the catcher.
        """
        self.name = name
        self.value = value

        super().__init__(f'uncaught throw {name!r}')


class StopRun(BaseException):  # noqa: N818
    """Request to terminate the whole run immediately.

    Derives from `BaseException` so that neither the invoke boundary nor
    `except Exception` clauses in test bodies intercept it.
    """
