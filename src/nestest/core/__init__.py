"""Core engine: suite tree construction, shared code and execution.

The primary entry point is `Runner`, which combines the builder and
shared-code mixins with the execution loop and assertion dispatch.
"""

from .runner import Outcome, Runner

__all__ = (
    'Outcome',
    'Runner',
)
