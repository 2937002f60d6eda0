"""Dispatch plans and their per-repository cache.

A plan records, for one operation, which strategy is invoked and which of
the configured wrappers take part in the call. Hook lookup happens once,
when the plan is built, instead of on every dispatch.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

LOGGER = logging.getLogger(__name__)


def before_hook_name(operation: str) -> str:
    return f"before_{operation}"


def after_hook_name(operation: str) -> str:
    return f"after_{operation}"


def _defines(wrapper: type, name: str) -> bool:
    return callable(getattr(wrapper, name, None))


@dataclass(frozen=True)
class WrapperHooks:
    """Which hooks a wrapper type implements for a single operation.

    Attributes:
        wrapper: The wrapper type.
        around: Defines a method named after the operation that receives
            the continuation.
        before: Defines ``before_<operation>``.
        after: Defines ``after_<operation>``.
    """

    wrapper: type
    around: bool = False
    before: bool = False
    after: bool = False

    @classmethod
    def inspect(cls, wrapper: type, operation: str) -> "WrapperHooks":
        return cls(
            wrapper=wrapper,
            around=_defines(wrapper, operation),
            before=_defines(wrapper, before_hook_name(operation)),
            after=_defines(wrapper, after_hook_name(operation)),
        )

    @property
    def applies(self) -> bool:
        return self.around or self.before or self.after


@dataclass(frozen=True)
class MethodDispatchPlan:
    """Resolved dispatch description for one operation of one repository.

    Attributes:
        operation: Name of the mediated operation.
        strategy: Strategy type the plan was built against.
        wrappers: Wrappers implementing a hook for the operation, in
            configured order, without duplicates.
        skip_before: True when no configured wrapper runs code before the
            strategy (no around or before hook).
        skip_after: True when no configured wrapper runs code after the
            strategy (no around or after hook).
    """

    operation: str
    strategy: type
    wrappers: tuple[WrapperHooks, ...]
    skip_before: bool
    skip_after: bool

    @property
    def wrapper_types(self) -> tuple[type, ...]:
        return tuple(hooks.wrapper for hooks in self.wrappers)

    @property
    def is_direct(self) -> bool:
        """True when the strategy can be called without building a chain."""
        return self.skip_before and self.skip_after

    @classmethod
    def build(
        cls, operation: str, strategy: type, wrappers: Iterable[type]
    ) -> "MethodDispatchPlan":
        """Build a plan from the currently configured strategy and wrappers.

        Args:
            operation: Name of the operation to plan.
            strategy: Active strategy type.
            wrappers: Configured wrapper types, outermost first. The
                iterable is read once and never modified.

        Returns:
            A new plan.
        """
        inspected = [WrapperHooks.inspect(wrapper, operation) for wrapper in wrappers]

        seen: set[type] = set()
        applicable: list[WrapperHooks] = []
        for hooks in inspected:
            if hooks.applies and hooks.wrapper not in seen:
                seen.add(hooks.wrapper)
                applicable.append(hooks)

        return cls(
            operation=operation,
            strategy=strategy,
            wrappers=tuple(applicable),
            skip_before=not any(h.around or h.before for h in inspected),
            skip_after=not any(h.around or h.after for h in inspected),
        )


class PlanCache:
    """Lazily built mapping from operation name to dispatch plan.

    Each repository type owns one cache. Plans are never evicted on their
    own; the repository clears its cache whenever its strategy or wrappers
    are reconfigured. Concurrent first-time resolution of the same
    operation builds the plan exactly once.
    """

    __slots__ = ("_plans", "_lock")

    def __init__(self) -> None:
        self._plans: dict[str, MethodDispatchPlan] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._plans)

    def __contains__(self, operation: object) -> bool:
        return operation in self._plans

    def get(self, operation: str) -> MethodDispatchPlan | None:
        return self._plans.get(operation)

    def resolve(
        self, operation: str, strategy: type, wrappers: Iterable[type]
    ) -> MethodDispatchPlan:
        """Return the cached plan for ``operation``, building it if missing.

        Args:
            operation: Name of the operation.
            strategy: Strategy type used if the plan has to be built.
            wrappers: Wrapper types used if the plan has to be built.

        Returns:
            The plan stored for ``operation``.
        """
        plan = self._plans.get(operation)
        if plan is not None:
            return plan

        with self._lock:
            plan = self._plans.get(operation)
            if plan is None:
                plan = MethodDispatchPlan.build(operation, strategy, wrappers)
                LOGGER.debug(
                    "Built dispatch plan",
                    extra=_describe(plan),
                )
                self._plans[operation] = plan
        return plan

    def clear(self) -> None:
        with self._lock:
            self._plans.clear()


def _describe(plan: MethodDispatchPlan) -> dict[str, Any]:
    return {
        "operation": plan.operation,
        "strategy": plan.strategy.__qualname__,
        "wrappers": [wrapper.__qualname__ for wrapper in plan.wrapper_types],
        "skip_before": plan.skip_before,
        "skip_after": plan.skip_after,
    }
