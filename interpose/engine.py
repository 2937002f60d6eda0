"""Onion dispatch through a chain of wrappers down to the strategy."""

import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .plan import MethodDispatchPlan, WrapperHooks, after_hook_name, before_hook_name

# Continuation handed to around hooks: calling it runs the rest of the chain
Continuation = Callable[..., Any]


@dataclass(frozen=True)
class Arguments:
    """Replacement call arguments returned by a ``before_<operation>`` hook.

    Examples:
        >>> class Normalize:
        ...     def before_find(self, email):
        ...         return Arguments(email.lower())
    """

    args: tuple[Any, ...]
    kwargs: Mapping[str, Any]

    def __init__(self, *args: Any, **kwargs: Any):
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "kwargs", MappingProxyType(kwargs))

    def __hash__(self) -> int:
        return hash((self.args, frozenset(self.kwargs.items())))


def _apply(replaced: Arguments | None, args: tuple[Any, ...], kwargs: dict[str, Any]):
    if replaced is None:
        return args, kwargs
    return replaced.args, dict(replaced.kwargs)


class DispatchEngine:
    """Runs one call of an operation through its wrapper chain.

    Around hooks follow the middleware convention of taking the call
    arguments first and the continuation last, passed as the ``next``
    keyword::

        def find(self, user_id, next):
            return next(user_id)

    The chain is traversed by position rather than by consuming a queue, so
    a wrapper may invoke its continuation any number of times (for example
    to retry) and every invocation sees the same remaining chain.

    The engine does not await anything itself. Async around hooks await
    their continuation; ``before_``/``after_`` hooks are adapted so that an
    awaitable from the hook or from the rest of the chain is awaited before
    the next step, in which case the call returns a coroutine.

    Exceptions raised by wrappers or by the terminal call are not caught.
    A wrapper that needs cleanup on failure must wrap its own continuation
    call in ``try/finally``.
    """

    __slots__ = ("operation", "bindings", "terminal")

    def __init__(
        self,
        operation: str,
        bindings: Sequence[WrapperHooks],
        terminal: Callable[..., Any],
    ):
        """Initialize the engine.

        Args:
            operation: Name of the operation being dispatched.
            bindings: Wrappers to traverse, outermost first. Entries with
                no hook for the operation are skipped.
            terminal: Callable invoked with the final arguments once the
                chain is exhausted, normally the strategy method.
        """
        self.operation = operation
        self.bindings = tuple(bindings)
        self.terminal = terminal

    @classmethod
    def for_plan(cls, plan: MethodDispatchPlan, terminal: Callable[..., Any]) -> "DispatchEngine":
        return cls(plan.operation, plan.wrappers, terminal)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._run(0, args, kwargs)

    def _run(self, position: int, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        if position >= len(self.bindings):
            return self.terminal(*args, **kwargs)

        hooks = self.bindings[position]
        if not hooks.applies:
            return self._run(position + 1, args, kwargs)

        def next(*sub_args: Any, **sub_kwargs: Any) -> Any:
            return self._run(position + 1, sub_args, sub_kwargs)

        wrapper = hooks.wrapper()
        if hooks.around:
            return getattr(wrapper, self.operation)(*args, next=next, **kwargs)
        return self._before_after(wrapper, hooks, next, args, kwargs)

    def _before_after(
        self,
        wrapper: Any,
        hooks: WrapperHooks,
        next: Continuation,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        if hooks.before:
            replaced = getattr(wrapper, before_hook_name(self.operation))(*args, **kwargs)
            if inspect.isawaitable(replaced):
                return self._before_after_async(wrapper, hooks, next, replaced, args, kwargs)
            args, kwargs = _apply(replaced, args, kwargs)

        result = next(*args, **kwargs)
        if not hooks.after:
            return result
        if inspect.isawaitable(result):
            return self._after_async(wrapper, result, args, kwargs)
        return getattr(wrapper, after_hook_name(self.operation))(result, *args, **kwargs)

    async def _before_after_async(
        self,
        wrapper: Any,
        hooks: WrapperHooks,
        next: Continuation,
        pending: Awaitable[Arguments | None],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        args, kwargs = _apply(await pending, args, kwargs)
        result = next(*args, **kwargs)
        if not hooks.after:
            if inspect.isawaitable(result):
                return await result
            return result
        return await self._after_async(wrapper, result, args, kwargs)

    async def _after_async(
        self,
        wrapper: Any,
        result: Any,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        if inspect.isawaitable(result):
            result = await result
        result = getattr(wrapper, after_hook_name(self.operation))(result, *args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result


def dispatch(
    plan: MethodDispatchPlan,
    terminal: Callable[..., Any],
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Any:
    """Execute ``plan`` for one call.

    Plans without any wrapper hook call the terminal directly, without
    instantiating wrappers or building a chain.
    """
    if plan.is_direct:
        return terminal(*args, **kwargs)
    return DispatchEngine.for_plan(plan, terminal)(*args, **kwargs)
