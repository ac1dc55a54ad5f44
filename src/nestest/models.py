"""Base Pydantic models and runtime settings.

This module defines the foundational model classes used by declarative
engine records (assertion kinds, custom assertion definitions, outcomes)
and the settings model driving a run.
"""

from re import Pattern  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all declarative engine records.

    Design principles enforced by this model:
        - Immutability: records cannot be modified after creation.
          A registered assertion kind or custom assertion definition
          behaves the same for the whole run.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in definitions.

    All declarative models must inherit from this class.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for all settings models responsible for
    resolving runtime configuration (for example, environment variables,
    CI-provided values, or command-line overrides).

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
          This guarantees consistent behavior during a run.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )


class RunOptions(SettingsModel):
    """Options controlling a single run.

    Values are read from `NESTEST_*` environment variables unless given
    explicitly. For example, `NESTEST_FILTER=^Math` restricts the run to
    top-level tests whose description starts with `Math`.
    """

    model_config = SettingsConfigDict(
        env_prefix='NESTEST_',
        frozen=True,
        extra='ignore',
    )

    filter: Pattern[str] | None = Field(
        default=None,
        title='Description filter',
        description=(
            'Regular expression searched in the description of each '
            'top-level test. Only matching top-level tests are run; '
            'nested tests are not filtered.'
        ),
    )

    full_backtrace: bool = Field(
        default=False,
        title='Full backtrace',
        description=(
            'If true, backtraces in failure and error reports keep the '
            'frames that belong to the engine itself.'
        ),
    )
