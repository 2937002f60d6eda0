"""Test application package."""

from .repositories import EchoRepository, UserRepository
from .strategies import (
    AsyncEchoStrategy,
    EchoStrategy,
    FailingStrategy,
    InMemoryUserStrategy,
    User,
)
from .wrappers import (
    DoubleResult,
    IncrementArgument,
    LowercaseEmail,
    NoHooks,
    ShortCircuit,
    make_tracer,
)

__all__ = [
    "EchoRepository",
    "UserRepository",
    "AsyncEchoStrategy",
    "EchoStrategy",
    "FailingStrategy",
    "InMemoryUserStrategy",
    "User",
    "DoubleResult",
    "IncrementArgument",
    "LowercaseEmail",
    "NoHooks",
    "ShortCircuit",
    "make_tracer",
]
