"""Interpose - strategy mediation with composable wrapper chains.

This module provides the public API for declaring repositories whose
operations are implemented by a swappable strategy and intercepted by
an ordered list of wrappers.
"""

from .config import InterposeSettings, default_settings
from .context import DispatchContext, get_context
from .engine import Arguments, Continuation, DispatchEngine
from .exceptions import InterposeError, NotConfigured, ReservedOperationName
from .plan import MethodDispatchPlan, PlanCache, WrapperHooks
from .repository import Repository, RepositoryConfig, mediated

__all__ = [
    # Repositories
    "Repository",
    "RepositoryConfig",
    "mediated",
    # Dispatch
    "Arguments",
    "Continuation",
    "DispatchEngine",
    "MethodDispatchPlan",
    "PlanCache",
    "WrapperHooks",
    # Context and settings
    "DispatchContext",
    "get_context",
    "InterposeSettings",
    "default_settings",
    # Errors
    "InterposeError",
    "NotConfigured",
    "ReservedOperationName",
]
