"""Named blocks of shared setup code.

A block is shared once under an identifier and later injected into any
number of tests. Injection runs the block against the sandbox of the
nearest insulated test that is running, so the state it sets up is
visible to that test and to the non-insulated tests nested in it.
"""

from typing import TYPE_CHECKING

from nestest.errors import SharedCodeError, SpecificationError
from nestest.names import is_identifier

if TYPE_CHECKING:
    from nestest.context import Sandbox
    from nestest.tree import Body, Test


class SharedCodeMixin:
    """Mixin managing the shared-code table.

    Expects the host to provide `shared` (the identifier-to-block table)
    and `tests` (the stack of currently running tests).
    """

    shared: dict[str, 'Body']
    tests: list['Test']

    def share(self, identifier: str, block: 'Body') -> None:
        """Store a block under an identifier.

        Raises:
            SpecificationError: If the identifier or the block is invalid.
            SharedCodeError: If the identifier is already taken.
        """
        if not is_identifier(identifier):
            raise SpecificationError(f'Invalid shared code identifier: {identifier!r}')

        if block is None or not callable(block):
            raise SpecificationError(f'No block given to share as {identifier!r}')

        if identifier in self.shared:
            raise SharedCodeError(f'Shared code {identifier!r} is already defined')

        self.shared[identifier] = block

    def inject(self, identifier: str) -> object:
        """Run a shared block in the nearest insulated test's sandbox.

        Returns:
            Whatever the block returns.

        Raises:
            SharedCodeError: If nothing is shared under the identifier,
                or no test is running.
        """
        if identifier not in self.shared:
            raise SharedCodeError(f'Attempt to inject unknown shared code {identifier!r}')

        sandbox = self.nearest_sandbox()
        if sandbox is None:
            raise SharedCodeError(f'Shared code {identifier!r} injected while no test is running')

        return self.shared[identifier](sandbox)

    def share_and_inject(self, identifier: str, block: 'Body') -> object:
        self.share(identifier, block)
        return self.inject(identifier)

    def is_shared(self, identifier: str) -> bool:
        return identifier in self.shared

    def nearest_sandbox(self) -> 'Sandbox | None':
        """Sandbox of the innermost running insulated test."""
        for test in reversed(self.tests):
            if test.sandbox is not None:
                return test.sandbox

        return None
