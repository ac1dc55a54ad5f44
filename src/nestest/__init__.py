"""Nested test definition and execution engine.

The `nestest` package provides a small DSL for declaring hierarchical
test suites with setup and teardown hooks, runs them with controlled
isolation between tests, and reports pass, fail and error outcomes.

Key features:
- tests nest, and nested tests are discovered by running their parent;
- insulated tests get a fresh sandbox, others share their parent's;
- an assertion failure or error stops only the test it happened in;
- custom assertions and shared setup code are defined once and reused.

The names exported here are bound to a default runner. Run state that
changes as tests run (`caught_value`, `exception`, `current_test`) is
read from the module, as in `nestest.caught_value`.
"""

from nestest.dsl import DSL

dsl = DSL()
runner = dsl.runner

D = dsl.D
xD = dsl.xD

T, T_not, T_q = dsl.T, dsl.T_not, dsl.T_q
F, F_not, F_q = dsl.F, dsl.F_not, dsl.F_q
N, N_not, N_q = dsl.N, dsl.N_not, dsl.N_q
Eq, Eq_not, Eq_q = dsl.Eq, dsl.Eq_not, dsl.Eq_q
Mt, Mt_not, Mt_q = dsl.Mt, dsl.Mt_not, dsl.Mt_q
Ko, Ko_not, Ko_q = dsl.Ko, dsl.Ko_not, dsl.Ko_q
Ft, Ft_not, Ft_q = dsl.Ft, dsl.Ft_not, dsl.Ft_q
Id, Id_not, Id_q = dsl.Id, dsl.Id_not, dsl.Id_q
E, E_not, E_q = dsl.E, dsl.E_not, dsl.E_q
C, C_not, C_q = dsl.C, dsl.C_not, dsl.C_q

custom = dsl.custom
S, S_now, S_q = dsl.S, dsl.S_now, dsl.S_q

throw = dsl.throw
stop = dsl.stop
run = dsl.run

_STATE = frozenset({'caught_value', 'exception', 'current_test'})


def __getattr__(name: str) -> object:
    if name in _STATE:
        return getattr(dsl, name)

    raise AttributeError(f'module {__name__!r} has no attribute {name!r}')


__all__ = (
    'C',
    'D',
    'DSL',
    'E',
    'F',
    'N',
    'S',
    'T',
    'C_not',
    'C_q',
    'E_not',
    'E_q',
    'Eq',
    'Eq_not',
    'Eq_q',
    'F_not',
    'F_q',
    'Ft',
    'Ft_not',
    'Ft_q',
    'Id',
    'Id_not',
    'Id_q',
    'Ko',
    'Ko_not',
    'Ko_q',
    'Mt',
    'Mt_not',
    'Mt_q',
    'N_not',
    'N_q',
    'S_now',
    'S_q',
    'T_not',
    'T_q',
    'custom',
    'dsl',
    'run',
    'runner',
    'stop',
    'throw',
    'xD',
)
