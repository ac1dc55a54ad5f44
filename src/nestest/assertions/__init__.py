"""Assertion kinds, built-in and user-defined."""

from nestest.assertions.base import Assertion, AssertionKind, Mode
from nestest.assertions.builtins import BUILTINS
from nestest.assertions.custom import CustomAssertion, CustomContext, CustomRegistry, Parameter

__all__ = (
    'BUILTINS',
    'Assertion',
    'AssertionKind',
    'CustomAssertion',
    'CustomContext',
    'CustomRegistry',
    'Mode',
    'Parameter',
)
