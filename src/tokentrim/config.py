"""Engine configuration.

The engine reads these values as plain parameters. Loading them from the
environment is a caller convenience; the engine itself never touches files.

Environment variables:
    TOKENTRIM_OUTPUT_CEILING: Max characters of passthrough text.
    TOKENTRIM_FILTER_LEVEL: none, minimal or aggressive.
    TOKENTRIM_MAX_GROUPS: Files shown by the grouped renderer.
    TOKENTRIM_MAX_PER_GROUP: Entries shown per file.
    TOKENTRIM_MAX_ENTITIES: Lines shown by the one-line-per-entity renderer.
    TOKENTRIM_MAX_DETAILS: Context lines shown per failing test.
    TOKENTRIM_MAX_HUNK_LINES: Changed lines shown per diff hunk.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from tokentrim.models import FilterLevel

ENV_PREFIX = "TOKENTRIM_"

# 64 KiB keeps a pathological passthrough within a reasonable context budget
DEFAULT_OUTPUT_CEILING = 65_536


class EngineConfig(BaseModel):
    """Tunable limits for the engine and its renderers."""

    model_config = ConfigDict(frozen=True)

    output_ceiling: int = Field(default=DEFAULT_OUTPUT_CEILING, ge=1)
    filter_level: FilterLevel = FilterLevel.MINIMAL
    max_groups: int = Field(default=10, ge=1)
    max_per_group: int = Field(default=5, ge=1)
    max_entities: int = Field(default=20, ge=1)
    max_details: int = Field(default=3, ge=0)
    max_hunk_lines: int = Field(default=10, ge=1)

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> EngineConfig:
        """Build a config from ``TOKENTRIM_*`` variables.

        Args:
            environ: Environment mapping, usually ``os.environ``.

        Returns:
            Validated configuration; unset variables keep their defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        values = {
            name: environ[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in environ
        }
        return cls.model_validate(values)
