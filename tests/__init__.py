"""Test suite for the nestest package.

This package contains unit and integration tests validating the
assertion kinds, custom assertions, suite construction, isolation,
hooks, shared code, reporting and the command-line runner.
"""
