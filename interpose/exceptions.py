"""Exceptions raised by the dispatch machinery.

Errors raised by strategies and wrappers are never translated; only the
conditions detected by the repository itself are reported with these types.
"""


class InterposeError(Exception):
    """Base class for errors raised by interpose itself."""

    pass


class NotConfigured(InterposeError):
    """Raised when an operation is dispatched on a repository with no strategy.

    The error is raised before any wrapper runs.

    Attributes:
        repository: The repository type that was dispatched on.
    """

    def __init__(self, repository: type):
        self.repository = repository
        super().__init__(f"No strategy configured for repository {repository.__qualname__}")


class ReservedOperationName(InterposeError, ValueError):
    """Raised when an operation name would shadow the repository API.

    Attributes:
        name: The rejected operation name.
        repository: The repository type the operation was declared on.
    """

    def __init__(self, name: str, repository: type):
        self.name = name
        self.repository = repository
        super().__init__(
            f"Operation name {name!r} is reserved and cannot be mediated "
            f"on {repository.__qualname__}"
        )
