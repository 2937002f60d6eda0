"""Tests for dispatch plans and the plan cache."""

import threading
from unittest.mock import patch

from interpose.plan import MethodDispatchPlan, PlanCache, WrapperHooks
from tests.fixtures.test_app import (
    DoubleResult,
    EchoStrategy,
    IncrementArgument,
    LowercaseEmail,
    NoHooks,
)


class AfterOnly:
    def after_echo(self, result, value):
        return result


def test_inspect_detects_around_hook():
    hooks = WrapperHooks.inspect(IncrementArgument, "echo")
    assert hooks.around is True
    assert hooks.before is False
    assert hooks.after is False
    assert hooks.applies is True


def test_inspect_detects_before_and_after_hooks():
    assert WrapperHooks.inspect(LowercaseEmail, "save").before is True
    assert WrapperHooks.inspect(AfterOnly, "echo").after is True


def test_inspect_wrapper_without_hook_does_not_apply():
    assert WrapperHooks.inspect(NoHooks, "echo").applies is False


def test_plan_keeps_only_applicable_wrappers_in_order():
    plan = MethodDispatchPlan.build(
        "echo", EchoStrategy, [NoHooks, DoubleResult, LowercaseEmail, IncrementArgument]
    )
    assert plan.wrapper_types == (DoubleResult, IncrementArgument)
    assert plan.strategy is EchoStrategy
    assert plan.operation == "echo"


def test_plan_removes_duplicates_preserving_first_occurrence():
    plan = MethodDispatchPlan.build(
        "echo", EchoStrategy, [IncrementArgument, DoubleResult, IncrementArgument]
    )
    assert plan.wrapper_types == (IncrementArgument, DoubleResult)


def test_plan_does_not_mutate_configured_wrappers():
    wrappers = [NoHooks, DoubleResult, DoubleResult]
    MethodDispatchPlan.build("echo", EchoStrategy, wrappers)
    assert wrappers == [NoHooks, DoubleResult, DoubleResult]


def test_skip_flags_without_applicable_wrappers():
    plan = MethodDispatchPlan.build("echo", EchoStrategy, [NoHooks, LowercaseEmail])
    assert plan.wrappers == ()
    assert plan.skip_before is True
    assert plan.skip_after is True
    assert plan.is_direct is True


def test_around_hook_clears_both_skip_flags():
    plan = MethodDispatchPlan.build("echo", EchoStrategy, [DoubleResult])
    assert plan.skip_before is False
    assert plan.skip_after is False


def test_before_hook_only_clears_skip_before():
    plan = MethodDispatchPlan.build("save", EchoStrategy, [LowercaseEmail])
    assert plan.skip_before is False
    assert plan.skip_after is True
    assert plan.is_direct is False


def test_after_hook_only_clears_skip_after():
    plan = MethodDispatchPlan.build("echo", EchoStrategy, [AfterOnly])
    assert plan.skip_before is True
    assert plan.skip_after is False


def test_cache_returns_same_plan_and_builds_once():
    cache = PlanCache()
    with patch.object(MethodDispatchPlan, "build", wraps=MethodDispatchPlan.build) as build:
        first = cache.resolve("echo", EchoStrategy, [DoubleResult])
        second = cache.resolve("echo", EchoStrategy, [DoubleResult])

    assert build.call_count == 1
    assert first is second
    assert first.wrappers is second.wrappers
    assert first.strategy is second.strategy


def test_cache_keys_by_operation():
    cache = PlanCache()
    echo = cache.resolve("echo", EchoStrategy, [DoubleResult])
    save = cache.resolve("save", EchoStrategy, [DoubleResult])
    assert echo is not save
    assert len(cache) == 2
    assert "echo" in cache


def test_cache_clear_forces_rebuild():
    cache = PlanCache()
    first = cache.resolve("echo", EchoStrategy, [DoubleResult])
    cache.clear()
    assert cache.get("echo") is None
    second = cache.resolve("echo", EchoStrategy, [IncrementArgument])
    assert second is not first
    assert second.wrapper_types == (IncrementArgument,)


def test_concurrent_resolution_builds_plan_once():
    cache = PlanCache()
    barrier = threading.Barrier(8)
    plans = []

    def resolve():
        barrier.wait()
        plans.append(cache.resolve("echo", EchoStrategy, [DoubleResult]))

    with patch.object(MethodDispatchPlan, "build", wraps=MethodDispatchPlan.build) as build:
        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert build.call_count == 1
    assert len(plans) == 8
    assert all(plan is plans[0] for plan in plans)
