"""Built-in assertion kinds.

This module defines the ten core assertion kinds (truthiness, falsity,
nullity, equality, pattern match, kind-of, float tolerance, identity,
exception expectation, signal expectation) and the static `BUILTINS`
table keyed by their base names.

Each kind is declared by a `_prepare_*` function validating arguments,
a `_check_*` function implementing the predicate, and an `_explain_*`
function building the failure message.
"""

from difflib import SequenceMatcher, ndiff
from os import linesep
from re import Pattern
from typing import TYPE_CHECKING

from nestest.assertions.base import (
    AssertionKind,
    Mode,
    block_required,
    exactly,
    no_block,
    no_keywords,
    value_or_block,
)
from nestest.errors import SignalThrown, SpecificationError
from nestest.values import inspect, is_number

if TYPE_CHECKING:
    from collections.abc import Mapping

    from nestest.assertions.base import Block, Evidence
    from nestest.values import RuntimeValue

#: Default tolerance of the float comparison.
DEFAULT_EPSILON = 1e-6

#: Strings longer than this get a character diff in equality failures.
DIFF_THRESHOLD = 40


def _lines(*lines: str) -> str:
    return linesep.join(lines)


def _evaluate(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> 'RuntimeValue':
    """Run the value block once and remember its result."""
    if 'value' not in evidence:
        evidence['value'] = params['source']()

    return evidence['value']


def _prepare_value(name: str):  # noqa: ANN202
    """Build a preparer for kinds taking one value or a block."""

    def prepare(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                block: 'Block | None') -> dict[str, 'RuntimeValue']:
        no_keywords(name, kwargs)
        return {'source': value_or_block(name, args, block)}

    return prepare


def _prepare_pair(name: str):  # noqa: ANN202
    """Build a preparer for kinds taking exactly two values."""

    def prepare(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                block: 'Block | None') -> dict[str, 'RuntimeValue']:
        no_keywords(name, kwargs)
        no_block(name, block)
        first, second = exactly(name, args, 2)
        return {'first': first, 'second': second}

    return prepare


def _check_truthy(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    """Truthiness: anything but `None` and `False`."""
    value = _evaluate(params, evidence)
    return value is not None and value is not False


def _check_falsy(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    return not _check_truthy(params, evidence)


def _check_null(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    return _evaluate(params, evidence) is None


def _explain_truthy(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    expected = 'a false value (None or False)' if mode is Mode.NEGATE else 'a true value'
    return _lines(
        f'Expected {expected}',
        f'  Got: {inspect(evidence.get('value'))}',
    )


def _explain_falsy(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    expected = 'a true value' if mode is Mode.NEGATE else 'a false value (None or False)'
    return _lines(
        f'Expected {expected}',
        f'  Got: {inspect(evidence.get('value'))}',
    )


def _explain_null(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    if mode is Mode.NEGATE:
        return 'Expected a value other than None'

    return _lines(
        'Expected None',
        f'  Got: {inspect(evidence.get('value'))}',
    )


def _check_equal(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    """Equality, using the expected value's notion of equality."""
    return bool(params['second'] == params['first'])


def _string_diff(expected: str, actual: str) -> str:
    """Render a line diff for multi-line strings, or a character diff.

    In character diffs removed text is shown as `[-text-]` and inserted
    text as `{+text+}`.
    """
    if '\n' in expected or '\n' in actual:
        return linesep.join(
            line.rstrip('\n')
            for line in ndiff(expected.splitlines(), actual.splitlines())
        )

    result = ''
    matcher = SequenceMatcher(a=expected, b=actual, autojunk=False)
    for tag, a_start, a_end, b_start, b_end in matcher.get_opcodes():
        if tag == 'equal':
            result += expected[a_start:a_end]
            continue
        if tag in ('delete', 'replace'):
            result += f'[-{expected[a_start:a_end]}-]'
        if tag in ('insert', 'replace'):
            result += f'{{+{actual[b_start:b_end]}+}}'

    return result


def _explain_equal(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    actual, expected = params['first'], params['second']

    if mode is Mode.NEGATE:
        return _lines(
            'Inequality test failed: values are equal',
            f'  Both values: {inspect(actual)}',
        )

    message = _lines(
        'Equality test failed',
        f'  Should be: {inspect(expected)}',
        f'        Was: {inspect(actual)}',
    )

    if not isinstance(actual, str) or not isinstance(expected, str):
        return message

    if max(len(actual), len(expected)) > DIFF_THRESHOLD or '\n' in actual + expected:
        message += linesep + _lines('  Diff:', _string_diff(expected, actual))

    return message


def _prepare_match(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                   block: 'Block | None') -> dict[str, 'RuntimeValue']:
    """Accept a string and a pattern, in either order."""
    no_keywords('Mt', kwargs)
    no_block('Mt', block)
    first, second = exactly('Mt', args, 2)

    if isinstance(first, str) and isinstance(second, Pattern):
        return {'string': first, 'pattern': second}

    if isinstance(first, Pattern) and isinstance(second, str):
        return {'string': second, 'pattern': first}

    raise SpecificationError(
        f'Mt: expected a string and a compiled pattern, '
        f'got {type(first).__name__} and {type(second).__name__}',
    )


def _check_match(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    return params['pattern'].search(params['string']) is not None


def _explain_match(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    title = 'Non-match test failed' if mode is Mode.NEGATE else 'Match test failed'
    return _lines(
        title,
        f'   String: {inspect(params['string'])}',
        f'  Pattern: {inspect(params['pattern'])}',
    )


def _prepare_kind_of(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                     block: 'Block | None') -> dict[str, 'RuntimeValue']:
    no_keywords('Ko', kwargs)
    no_block('Ko', block)
    obj, kind = exactly('Ko', args, 2)

    kinds = kind if isinstance(kind, tuple) else (kind,)
    if not kinds or not all(isinstance(item, type) for item in kinds):
        raise SpecificationError(f'Ko: second argument must be a type, got {inspect(kind)}')

    return {'object': obj, 'kind': kind}


def _check_kind_of(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    return isinstance(params['object'], params['kind'])


def _kind_name(kind: type | tuple[type, ...]) -> str:
    if isinstance(kind, tuple):
        return ' or '.join(item.__qualname__ for item in kind)

    return kind.__qualname__


def _explain_kind_of(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    expectation = 'not to be' if mode is Mode.NEGATE else 'to be'
    return _lines(
        f'Expected object {expectation} of kind {_kind_name(params['kind'])}',
        f'       Object: {inspect(params['object'])}',
        f'  Actual kind: {type(params['object']).__qualname__}',
    )


def _prepare_float(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                   block: 'Block | None') -> dict[str, 'RuntimeValue']:
    """Accept `(actual, expected)` plus an optional epsilon.

    The epsilon may be given as a third positional argument or as the
    `epsilon` keyword, not both.
    """
    no_block('Ft', block)

    unknown = set(kwargs) - {'epsilon'}
    if unknown:
        no_keywords('Ft', {key: kwargs[key] for key in unknown})

    if len(args) not in (2, 3) or (len(args) == 3 and 'epsilon' in kwargs):
        raise SpecificationError(
            f'Ft: expected (actual, expected[, epsilon]), got {len(args)} arguments',
        )

    actual, expected, *rest = args
    epsilon = rest[0] if rest else kwargs.get('epsilon', DEFAULT_EPSILON)

    for label, value in (('actual', actual), ('expected', expected), ('epsilon', epsilon)):
        if not is_number(value):
            raise SpecificationError(f'Ft: {label} value must be a number, got {inspect(value)}')

    if epsilon < 0:
        raise SpecificationError(f'Ft: epsilon must not be negative, got {epsilon!r}')

    return {'actual': actual, 'expected': expected, 'epsilon': epsilon}


def _check_float(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    """Relative comparison, falling back to absolute around zero."""
    actual, expected, epsilon = params['actual'], params['expected'], params['epsilon']

    if actual == 0 and expected == 0:
        return True

    if actual == 0 or expected == 0:
        evidence['difference'] = abs(actual - expected)
        return evidence['difference'] <= epsilon

    evidence['ratio'] = actual / expected
    return abs(evidence['ratio'] - 1) <= epsilon


def _explain_float(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    if 'ratio' in evidence:
        detail = f'  Ratio: {evidence['ratio']!r} (epsilon {params['epsilon']!r})'
    elif 'difference' in evidence:
        detail = f'  Difference: {evidence['difference']!r} (epsilon {params['epsilon']!r})'
    else:
        detail = '  Both values are zero'

    if mode is Mode.NEGATE:
        return _lines(
            'Float inequality test failed: values are within epsilon',
            f'  Values: {params['actual']!r} and {params['expected']!r}',
            detail,
        )

    return _lines(
        'Float equality test failed',
        f'  Should be: {params['expected']!r}',
        f'        Was: {params['actual']!r}',
        detail,
    )


def _check_identity(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    return params['first'] is params['second']


def _explain_identity(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    first, second = params['first'], params['second']

    if mode is Mode.NEGATE:
        return _lines(
            'Expected two distinct objects',
            f'  Both are: {inspect(first)} (id {id(first):#x})',
        )

    return _lines(
        'Identity test failed',
        f'  Object 1: {inspect(first)} (id {id(first):#x})',
        f'  Object 2: {inspect(second)} (id {id(second):#x})',
    )


def _prepare_error(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                   block: 'Block | None') -> dict[str, 'RuntimeValue']:
    """Accept any number of exception classes and a required block."""
    no_keywords('E', kwargs)
    block = block_required('E', block)

    errors = args or (Exception,)
    for item in errors:
        if not isinstance(item, type) or not issubclass(item, BaseException):
            raise SpecificationError(f'E: expected exception classes, got {inspect(item)}')

    return {'errors': tuple(errors), 'block': block}


def _check_error(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    """Run the block; a matching fault is captured, anything else propagates."""
    evidence['exception'] = None

    try:
        params['block']()
    except params['errors'] as error:
        evidence['exception'] = error
        return True

    return False


def _explain_error(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    names = ', '.join(item.__qualname__ for item in params['errors'])

    if mode is Mode.NEGATE:
        error = evidence.get('exception')
        return _lines(
            f'Expected block NOT to raise any of: {names}',
            f'  Raised: {type(error).__qualname__}: {error}',
        )

    return _lines(
        f'Expected block to raise one of: {names}',
        '  Nothing was raised',
    )


def _prepare_signal(args: tuple['RuntimeValue', ...], kwargs: 'Mapping[str, RuntimeValue]',
                    block: 'Block | None') -> dict[str, 'RuntimeValue']:
    no_keywords('C', kwargs)
    block = block_required('C', block)
    (name,) = exactly('C', args, 1)

    if not isinstance(name, str) or not name:
        raise SpecificationError(f'C: signal name must be a non-empty string, got {inspect(name)}')

    return {'signal': name, 'block': block}


def _check_signal(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence') -> bool:
    """Run the block; a matching signal delivers its payload.

    A signal expected by an enclosing signal expectation unwinds to it.
    """
    evidence['caught'] = None

    try:
        params['block']()
    except SignalThrown as signal:
        if signal.name != params['signal']:
            if signal.name in params.get('enclosing', ()):
                raise
            evidence['other'] = signal.name
            return False
        evidence['caught'] = signal.value
        return True

    return False


def _explain_signal(params: 'Mapping[str, RuntimeValue]', evidence: 'Evidence', mode: Mode) -> str:
    signal = params['signal']

    if mode is Mode.NEGATE:
        return f'Expected block NOT to throw {signal!r}'

    if 'other' in evidence:
        return _lines(
            f'Expected block to throw {signal!r}',
            f'  Thrown instead: {evidence['other']!r}',
        )

    return _lines(
        f'Expected block to throw {signal!r}',
        '  Nothing was thrown',
    )


truthy = AssertionKind(
    name='T',
    title='truthiness',
    prepare=_prepare_value('T'),
    checker=_check_truthy,
    explain=_explain_truthy,
)

falsy = AssertionKind(
    name='F',
    title='falsity',
    prepare=_prepare_value('F'),
    checker=_check_falsy,
    explain=_explain_falsy,
)

nullity = AssertionKind(
    name='N',
    title='nullity',
    prepare=_prepare_value('N'),
    checker=_check_null,
    explain=_explain_null,
)

equality = AssertionKind(
    name='Eq',
    title='equality',
    prepare=_prepare_pair('Eq'),
    checker=_check_equal,
    explain=_explain_equal,
)

match = AssertionKind(
    name='Mt',
    title='pattern match',
    prepare=_prepare_match,
    checker=_check_match,
    explain=_explain_match,
)

kind_of = AssertionKind(
    name='Ko',
    title='kind-of',
    prepare=_prepare_kind_of,
    checker=_check_kind_of,
    explain=_explain_kind_of,
)

float_equal = AssertionKind(
    name='Ft',
    title='float equality',
    prepare=_prepare_float,
    checker=_check_float,
    explain=_explain_float,
)

identity = AssertionKind(
    name='Id',
    title='identity',
    prepare=_prepare_pair('Id'),
    checker=_check_identity,
    explain=_explain_identity,
)

expect_error = AssertionKind(
    name='E',
    title='exception expectation',
    prepare=_prepare_error,
    checker=_check_error,
    explain=_explain_error,
)

expect_signal = AssertionKind(
    name='C',
    title='signal expectation',
    prepare=_prepare_signal,
    checker=_check_signal,
    explain=_explain_signal,
)

#: Static dispatch table of the built-in kinds.
BUILTINS: dict[str, AssertionKind] = {
    kind.name: kind
    for kind in (
        truthy,
        falsy,
        nullity,
        equality,
        match,
        kind_of,
        float_equal,
        identity,
        expect_error,
        expect_signal,
    )
}
