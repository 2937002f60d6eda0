"""Settings for the dispatch machinery using pydantic-settings."""

import logging
from functools import cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class InterposeSettings(BaseSettings):
    """Tunable behaviour shared by repositories.

    All settings can be configured via environment variables with the
    INTERPOSE_ prefix. For example:
    - INTERPOSE_DISPATCH_LOG_LEVEL=INFO
    - INTERPOSE_CACHE_PLANS=false
    - INTERPOSE_MAX_WRAPPERS=8

    Attributes:
        dispatch_log_level: Level at which each dispatch is logged.
        cache_plans: Whether dispatch plans are memoized per operation. When
            disabled every call resolves a fresh plan.
        max_wrappers: Upper bound on the number of configured wrappers,
            which also bounds the recursion depth of a dispatch.

    Examples:
        Per-repository settings:

        >>> class Users(Repository, settings=InterposeSettings(max_wrappers=4)):
        ...     ...
    """

    dispatch_log_level: str = "DEBUG"
    cache_plans: bool = True
    max_wrappers: int = 32

    model_config = {"env_prefix": "INTERPOSE_"}

    @field_validator("dispatch_log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @field_validator("max_wrappers")
    @classmethod
    def check_max_wrappers(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_wrappers must be positive")
        return value

    @property
    def log_level(self) -> int:
        """Numeric form of ``dispatch_log_level``."""
        return logging.getLevelName(self.dispatch_log_level)


@cache
def default_settings() -> InterposeSettings:
    """Process-wide settings used by repositories that don't pass their own."""
    return InterposeSettings()
