"""Helpers for testing code built on mediated repositories."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .repository import Repository


@contextmanager
def with_strategy(repository: type[Repository], strategy: type | None) -> Iterator[None]:
    """Temporarily replace a repository's strategy.

    The previous strategy is restored on exit, even if the block raises.

    Example:
        >>> with with_strategy(UserRepository, FakeUserStrategy):
        ...     assert UserRepository.find(1).name == "fake"
    """
    previous = repository.strategy()
    repository.configure_strategy(strategy)
    try:
        yield
    finally:
        repository.configure_strategy(previous)


@contextmanager
def with_wrappers(repository: type[Repository], wrappers: Iterable[type]) -> Iterator[None]:
    """Temporarily replace a repository's wrappers."""
    previous = repository.wrappers()
    repository.configure_wrappers(wrappers)
    try:
        yield
    finally:
        repository.configure_wrappers(previous)


class CallRecorder:
    """Ordered log of events for asserting the order of a dispatch.

    Wrappers are instantiated per call, so tests share a recorder through
    a class attribute or closure instead of wrapper state.

    Example:
        >>> recorder = CallRecorder()
        >>> recorder.record("enter", "Outer")
        >>> recorder.events
        [('enter', 'Outer')]
    """

    def __init__(self) -> None:
        self.events: list[tuple[str, ...]] = []

    def record(self, *event: str) -> None:
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
