"""
Error handling for the hook execution pipeline.

This module provides the error hierarchy used across the pipeline and a
decorator for absorbing recoverable failures with a log line.
"""

import functools
import logging
import time
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, TypeVar

# Type definitions
F = TypeVar('F', bound=Callable[..., Any])


class ErrorSeverity(Enum):
    """Enum to classify error severity levels."""
    WARNING = "WARNING"         # Recoverable, the run continues
    ERROR = "ERROR"             # Operation failed
    CRITICAL = "CRITICAL"       # The triggering Git operation must abort


class HookError(Exception):
    """Base exception class for hook pipeline errors."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        original_exception: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.original_exception = original_exception
        self.context = context or {}
        self.timestamp = time.time()

    def __str__(self) -> str:
        error_info = f"{self.severity.value}: {self.message}"
        if self.original_exception:
            error_info += f"\nCaused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            error_info += f"\nContext: {context_str}"
        return error_info


class ConfigError(HookError):
    """Error loading application configuration."""
    pass


class GitCommandError(HookError):
    """A git subprocess exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: int = 1,
        output: str = "",
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        original_exception: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, severity, original_exception, context)
        self.returncode = returncode
        self.output = output


class SharedRepositoryError(HookError):
    """Error cloning or updating a shared hook repository mirror."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        original_exception: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, severity, original_exception, context)


class TrustStoreError(HookError):
    """Error persisting a trust decision to the checksum store."""
    pass


class HookExecutionError(HookError):
    """A hook item exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        exit_code: int,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        original_exception: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, severity, original_exception, context)
        self.exit_code = exit_code


def safe_execute(error_type: Type[HookError] = HookError, default_value: Any = None) -> Callable[[F], F]:
    """
    Decorator that logs a failure and returns ``default_value`` instead of raising.

    Exceptions that are not already ``error_type`` are wrapped in it first, so
    the log line carries the call's context.
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if isinstance(e, error_type):
                    wrapped_error = e
                else:
                    wrapped_error = error_type(
                        message=f"Error executing {func.__name__}: {str(e)}",
                        original_exception=e,
                        context={"args": args[1:] if args else args, "kwargs": kwargs}
                    )

                logger = logging.getLogger(func.__module__)
                if wrapped_error.severity == ErrorSeverity.WARNING:
                    logger.warning(str(wrapped_error))
                else:
                    logger.error(str(wrapped_error))
                logger.debug(traceback.format_exc())
                return default_value

        return wrapper

    return decorator
