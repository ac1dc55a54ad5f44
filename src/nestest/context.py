"""Isolation contexts for test bodies.

Every test body and hook receives a `Sandbox` as its only argument.
Insulated tests get a fresh one; non-insulated tests share the sandbox
of the level that declared them, so state set there stays visible to
their siblings and nested tests.
"""

from types import SimpleNamespace


class Sandbox(SimpleNamespace):
    """Blank attribute namespace owned by an insulated test.

    Test bodies store their fixture state as attributes::

        def setup(ctx):
            ctx.values = [8, 9, 10]

    Membership tests check whether an attribute is set
    (`'values' in ctx`).
    """

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self.__dict__
