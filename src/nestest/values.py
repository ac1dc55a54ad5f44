"""Value classification and rendering helpers.

This module groups the runtime type families the engine distinguishes
when it renders values into failure messages and YAML snippets, and
provides small helpers used by the assertion kinds.
"""

from datetime import date, datetime, timedelta
from numbers import Real
from typing import Any

#: A value in runtime represents any Python object received from
#: test bodies or the code under test.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (date, datetime, timedelta, str, bytes, int, float, bool)
SEQUENCES = (list, tuple, set)

#: Longest rendering of a single value inside a failure message.
INSPECT_LIMIT = 400


def truncate(value: str, limit: int) -> str:
    """Shorten a string, marking the cut with an ellipsis.

    Args:
        value: String to shorten.
        limit: Maximum number of characters kept.

    Returns:
        The original string, or its first `limit` characters followed by `...`.
    """
    if len(value) <= limit:
        return value

    return f'{value[:limit]}...'


def inspect(value: RuntimeValue, limit: int = INSPECT_LIMIT) -> str:
    """Render a runtime value for a human-readable message.

    Args:
        value: Arbitrary value.
        limit: Maximum length of the rendering.

    Returns:
        A truncated `repr` of the value.
    """
    try:
        text = repr(value)
    except Exception as error:  # noqa: BLE001
        text = f'<unrepresentable {type(value).__name__}: {error!r}>'

    return truncate(text, limit)


def is_number(value: RuntimeValue) -> bool:
    """Check that a value is a real number usable by tolerance comparison.

    Booleans are integers in Python but are rejected here.
    """
    return isinstance(value, Real) and not isinstance(value, bool)


def indent(value: str, width: int) -> str:
    """Indent every line of a multi-line string.

    Args:
        value: Original multi-line string.
        width: Number of spaces to prepend.

    Returns:
        Indented string.
    """
    prefix = ' ' * width

    return '\n'.join(f'{prefix}{line}' for line in value.splitlines())
