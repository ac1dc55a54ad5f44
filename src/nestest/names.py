"""DSL names primitive types and validation rules.

This module defines the identifier pattern shared by custom assertion
names, custom assertion parameters, and shared-code identifiers.

Parameter names become attributes of a custom assertion context, so the
pattern is restricted to valid ASCII Python identifiers.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for all DSL identifiers.
#: Identifiers must start with a letter and may contain letters, digits, or underscores
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Compiled pattern for identifiers.
IDENTIFIER_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)


Identifier = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Identifier',
        description=(
            'Name of a custom assertion, one of its parameters, or a block '
            'of shared code. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, or underscores. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'person',
            'circle_equality',
            'values',
        ],
    ),
]


def is_identifier(value: object) -> bool:
    """Check whether a value is a valid DSL identifier.

    Args:
        value: Candidate identifier.

    Returns:
        True if the value is a string matching `IDENTIFIER_PATTERN`.
    """
    return isinstance(value, str) and IDENTIFIER_PATTERN.match(value) is not None
