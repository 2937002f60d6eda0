"""Central test fixtures - imports from unified test_app."""

from collections.abc import Iterator

import pytest

from interpose.testing import CallRecorder
from tests.fixtures.test_app import (
    EchoRepository,
    InMemoryUserStrategy,
    UserRepository,
)


@pytest.fixture
def recorder() -> CallRecorder:
    """Create an empty call recorder."""
    return CallRecorder()


@pytest.fixture
def echo_repository() -> type[EchoRepository]:
    """Create a fresh, unconfigured echo repository type."""

    class Echoes(EchoRepository):
        pass

    return Echoes


@pytest.fixture
def user_repository() -> Iterator[type[UserRepository]]:
    """Create a fresh user repository type backed by an empty store."""

    class Users(UserRepository):
        pass

    InMemoryUserStrategy.users.clear()
    Users.configure_strategy(InMemoryUserStrategy)
    yield Users
    InMemoryUserStrategy.users.clear()
