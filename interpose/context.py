import contextvars
from dataclasses import dataclass

from ulid import ULID


@dataclass(frozen=True)
class DispatchContext:
    """Immutable record of the dispatch currently executing.

    A new context is entered for every call of a mediated operation and
    reset when the call returns or raises. Wrappers and strategies may read
    it to correlate log lines or to detect nested repository calls.

    Attributes:
        call_id: Unique identifier of this dispatch.
        repository: Qualified name of the repository type.
        operation: Name of the dispatched operation.
        parent_call_id: call_id of the enclosing dispatch when the call was
            made from inside another repository's strategy or wrapper.

    Examples:
        >>> class TracingWrapper:
        ...     def find(self, record_id, next):
        ...         ctx = get_context()
        ...         LOGGER.info("find", extra={"call_id": str(ctx.call_id)})
        ...         return next(record_id)
    """

    call_id: ULID
    repository: str
    operation: str
    parent_call_id: ULID | None = None

    @classmethod
    def enter(cls, repository: str, operation: str) -> "DispatchContext":
        """Create a context for a new dispatch, nested under the current one."""
        parent = _context.get()
        return cls(
            call_id=ULID(),
            repository=repository,
            operation=operation,
            parent_call_id=parent.call_id if parent is not None else None,
        )


_context: contextvars.ContextVar[DispatchContext | None] = contextvars.ContextVar(
    "dispatch_context", default=None
)


def get_context() -> DispatchContext | None:
    """Get the context of the dispatch in progress, if any."""
    return _context.get()


def set_context(context: DispatchContext | None) -> contextvars.Token:
    """Set the current dispatch context.

    Returns:
        A token for restoring the previous context with ``reset_context``.
    """
    return _context.set(context)


def reset_context(token: contextvars.Token) -> None:
    """Restore the context that was current before ``set_context``."""
    _context.reset(token)
