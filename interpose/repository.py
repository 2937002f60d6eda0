"""Repositories whose operations are mediated through a strategy and wrappers."""

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

from .config import InterposeSettings, default_settings
from .context import DispatchContext, reset_context, set_context
from .engine import dispatch
from .exceptions import NotConfigured, ReservedOperationName
from .plan import MethodDispatchPlan, PlanCache

LOGGER = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """Mutable configuration owned by a single repository type.

    Attributes:
        strategy: Active strategy type, or None while unconfigured.
        wrappers: Wrapper types in onion order, outermost first.
    """

    strategy: type | None = None
    wrappers: tuple[type, ...] = ()


class mediated:
    """Declare a repository operation that is dispatched to the strategy.

    The decorated function only documents the operation; its body is never
    executed. The operation can be called on the repository type or on an
    instance, and in both cases it is dispatched with the type's
    configuration.

    Examples:
        >>> class UserRepository(Repository):
        ...     @mediated
        ...     def find(self, user_id: int) -> User:
        ...         \"\"\"Find a user by id.\"\"\"
        ...
        >>> UserRepository.configure_strategy(SqlUserStrategy)
        >>> UserRepository.find(42)
    """

    def __init__(self, func: Callable[..., Any] | None = None, *, name: str | None = None):
        self.__wrapped__ = func
        self.__doc__ = getattr(func, "__doc__", None)
        self.name = name or getattr(func, "__name__", None)

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: object, owner: type | None = None) -> Callable[..., Any]:
        repository = owner if owner is not None else type(instance)
        operation = self.name

        def entry(*args: Any, **kwargs: Any) -> Any:
            return repository._dispatch(operation, *args, **kwargs)

        entry.__name__ = operation
        entry.__qualname__ = f"{repository.__qualname__}.{operation}"
        entry.__doc__ = self.__doc__
        return entry


class Repository:
    """Base class for repositories with strategy-mediated operations.

    Subclassing attaches the dispatch capability: every subclass gets its
    own empty configuration and its own plan cache, so repositories never
    observe each other's strategies or wrappers.

    A call to a mediated operation resolves the operation's dispatch plan,
    runs the configured wrappers from outermost to innermost and finally
    calls the operation on a fresh strategy instance. Wrappers are
    instantiated fresh for every call as well.

    Reconfiguring the strategy or the wrappers discards the cached plans,
    so the new configuration applies from the next call on. Reconfiguring
    while calls are in flight is the caller's responsibility.

    Examples:
        >>> class UserRepository(Repository):
        ...     @mediated
        ...     def find(self, user_id): ...
        ...
        >>> class Cached:
        ...     def find(self, user_id, next):
        ...         return CACHE.get(user_id) or next(user_id)
        ...
        >>> UserRepository.configure_strategy(SqlUserStrategy)
        >>> UserRepository.configure_wrappers([Cached, Logged])
        >>> UserRepository.find(42)
    """

    _config: ClassVar[RepositoryConfig]
    _plans: ClassVar[PlanCache]
    _settings: ClassVar[InterposeSettings | None] = None

    def __init_subclass__(cls, settings: InterposeSettings | None = None, **kwargs: object) -> None:
        """Give the subclass its own configuration and plan cache."""
        super().__init_subclass__(**kwargs)
        cls._config = RepositoryConfig()
        cls._plans = PlanCache()
        if settings is not None:
            cls._settings = settings

        for value in cls.__dict__.values():
            if isinstance(value, mediated):
                cls._check_name(value.name)

    @classmethod
    def _check_name(cls, name: str | None) -> None:
        if not name or name.startswith("_") or hasattr(Repository, name):
            raise ReservedOperationName(str(name), cls)

    @classmethod
    def mediate(cls, name: str) -> None:
        """Declare ``name`` as a mediated operation of this repository.

        Raises:
            ReservedOperationName: If ``name`` is private or would shadow
                part of the repository API.
        """
        cls._check_name(name)
        setattr(cls, name, mediated(name=name))

    @classmethod
    def configure_strategy(cls, strategy: type | None) -> None:
        """Replace the active strategy.

        The strategy's shape is not validated; a missing operation surfaces
        as an AttributeError when the operation is called.
        """
        cls._config.strategy = strategy
        cls._plans.clear()

    @classmethod
    def configure_wrappers(cls, wrappers: Iterable[type]) -> None:
        """Replace the wrapper list wholesale.

        Args:
            wrappers: Wrapper types, outermost first. The sequence is copied.

        Raises:
            ValueError: If more wrappers are given than the settings allow.
        """
        wrappers = tuple(wrappers)
        limit = cls.settings().max_wrappers
        if len(wrappers) > limit:
            raise ValueError(
                f"{cls.__qualname__} configured with {len(wrappers)} wrappers, "
                f"at most {limit} allowed"
            )
        cls._config.wrappers = wrappers
        cls._plans.clear()

    @classmethod
    def strategy(cls) -> type | None:
        return cls._config.strategy

    @classmethod
    def wrappers(cls) -> tuple[type, ...]:
        return cls._config.wrappers

    @classmethod
    def operations(cls) -> frozenset[str]:
        """Names of the mediated operations, including inherited ones."""
        return frozenset(
            name
            for klass in cls.__mro__
            for name, value in klass.__dict__.items()
            if isinstance(value, mediated) and cls._is_operation(name)
        )

    @classmethod
    def _is_operation(cls, name: str) -> bool:
        return isinstance(inspect.getattr_static(cls, name, None), mediated)

    @classmethod
    def settings(cls) -> InterposeSettings:
        return cls._settings if cls._settings is not None else default_settings()

    @classmethod
    def plan_for(cls, operation: str) -> MethodDispatchPlan:
        """Return the dispatch plan for ``operation``.

        Raises:
            KeyError: If ``operation`` is not mediated by this repository.
            NotConfigured: If no strategy is configured.
        """
        if not cls._is_operation(operation):
            raise KeyError(f"{operation!r} is not an operation of {cls.__qualname__}")
        config = cls._config
        if config.strategy is None:
            raise NotConfigured(cls)
        if not cls.settings().cache_plans:
            return MethodDispatchPlan.build(operation, config.strategy, config.wrappers)
        return cls._plans.resolve(operation, config.strategy, config.wrappers)

    @classmethod
    def _dispatch(cls, operation: str, /, *args: Any, **kwargs: Any) -> Any:
        if cls._config.strategy is None:
            raise NotConfigured(cls)
        plan = cls.plan_for(operation)

        def terminal(*sub_args: Any, **sub_kwargs: Any) -> Any:
            return getattr(plan.strategy(), operation)(*sub_args, **sub_kwargs)

        ctx = DispatchContext.enter(cls.__qualname__, operation)
        extra = {
            "repository": ctx.repository,
            "operation": operation,
            "call_id": str(ctx.call_id),
        }
        if ctx.parent_call_id is not None:
            extra["parent_call_id"] = str(ctx.parent_call_id)
        LOGGER.log(cls.settings().log_level, "Dispatching operation", extra=extra)

        token = set_context(ctx)
        try:
            result = dispatch(plan, terminal, args, kwargs)
        finally:
            reset_context(token)

        if inspect.isawaitable(result):
            return _within_context(ctx, result)
        return result


async def _within_context(ctx: DispatchContext, awaitable: Any) -> Any:
    """Await ``awaitable`` with ``ctx`` as the current dispatch context."""
    token = set_context(ctx)
    try:
        return await awaitable
    finally:
        reset_context(token)
