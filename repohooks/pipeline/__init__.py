"""
Pipeline module for hook execution.

This module provides the core of the hook runner: trigger resolution, ignore
rules, trust decisions, shared repositories and execution.
"""

from . import error_handling
from . import logging
from . import models

# Export commonly used functions and classes for easier access
from .error_handling import (
    ErrorSeverity,
    HookError,
    HookExecutionError,
    SharedRepositoryError,
    TrustStoreError,
    safe_execute,
)
from .logging import get_logger, init_logging
from .models import DecisionSession, ExecutionPlan, HookItem, HookOrigin, HookTrigger, Stage

__all__ = [
    'DecisionSession',
    'ExecutionPlan',
    'HookItem',
    'HookOrigin',
    'HookTrigger',
    'Stage',
]
