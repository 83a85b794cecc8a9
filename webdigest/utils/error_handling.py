"""
Standardized error handling for WebDigest.

Foreign exceptions (aiohttp, openai, parsing) are wrapped into the package's
:class:`~webdigest.types.WebDigestError` hierarchy at stage boundaries so the
caller of the pipeline sees exactly one failure type per stage.
"""
import logging
from typing import Any, Dict, Optional, Type

from ..types.types import WebDigestError
from .logging_config import get_logger


def wrap_error(
    exc: BaseException,
    error_type: Type[WebDigestError],
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> WebDigestError:
    """Return ``exc`` unchanged if it is already a WebDigestError, else wrap it."""
    if isinstance(exc, WebDigestError):
        return exc
    return error_type(
        message=f"Error in {operation}: {exc}",
        context=dict(context or {}),
        cause=exc,
    )


class ErrorContext:
    """Context manager for error wrapping and logging around one operation."""

    def __init__(
        self,
        operation: str,
        error_type: Type[WebDigestError] = WebDigestError,
        log_errors: bool = True,
        context: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.operation = operation
        self.error_type = error_type
        self.log_errors = log_errors
        self.context = context or {}
        self.logger = logger or get_logger(__name__)

    def __enter__(self):
        self.logger.debug(f"Starting operation: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Completed operation: {self.operation}")
            return False

        if not issubclass(exc_type, Exception):
            # KeyboardInterrupt, CancelledError and friends
            return False

        if issubclass(exc_type, WebDigestError):
            if self.log_errors:
                self.logger.error(f"{exc_type.__name__} in {self.operation}: {exc_val}")
            return False

        wrapped_error = wrap_error(exc_val, self.error_type, self.operation, self.context)
        if self.log_errors:
            self.logger.error(f"Error in {self.operation}: {exc_val}", exc_info=True)

        raise wrapped_error from exc_val
