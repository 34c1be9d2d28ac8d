"""
Error Taxonomy
--------------
Categories for every failure the assistant can see, with the log
severity each one gets.

Nothing in this taxonomy is raised across the dispatcher or router
boundary. The dispatcher and the classifier map what they catch to a
category, and the category decides how loudly it is logged.
"""

from enum import Enum, auto
from typing import Dict, Optional
import logging


class ErrorCategory(Enum):
    """Categories of errors for handling decisions."""
    VALIDATION_ERROR = auto()            # Tool input failed its schema
    UNKNOWN_TOOL = auto()                # Caller named a tool nobody registered
    DOMAIN_ERROR = auto()                # Typed tool error (not found, unauthorized)
    UNEXPECTED_ERROR = auto()            # Anything else a tool raised
    CLASSIFICATION_TIMEOUT = auto()      # Fast classifier lost the race
    CLASSIFICATION_UNPARSEABLE = auto()  # Classifier answered with no usable label
    LLM_FAILURE = auto()                 # Provider call raised


# Expected caller mistakes stay at INFO; only anomalies reach ERROR.
LOG_LEVELS: Dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION_ERROR: logging.INFO,
    ErrorCategory.UNKNOWN_TOOL: logging.INFO,
    ErrorCategory.DOMAIN_ERROR: logging.WARNING,
    ErrorCategory.UNEXPECTED_ERROR: logging.ERROR,
    ErrorCategory.CLASSIFICATION_TIMEOUT: logging.WARNING,
    ErrorCategory.CLASSIFICATION_UNPARSEABLE: logging.WARNING,
    ErrorCategory.LLM_FAILURE: logging.ERROR,
}


def classify_exception(
    exc: BaseException,
    default: ErrorCategory = ErrorCategory.UNEXPECTED_ERROR,
) -> ErrorCategory:
    """
    Map an exception to its category; `default` covers anything unrecognized.

    Imports are local so the taxonomy has no dependency on the packages
    that define the concrete exception types.
    """
    from pydantic import ValidationError
    from tools.errors import ToolExecutionError
    from llm.claude import ClaudeError

    if isinstance(exc, ValidationError):
        return ErrorCategory.VALIDATION_ERROR
    if isinstance(exc, ToolExecutionError):
        return ErrorCategory.DOMAIN_ERROR
    if isinstance(exc, ClaudeError):
        return ErrorCategory.LLM_FAILURE
    return default


def log_error(
    logger: logging.Logger,
    category: ErrorCategory,
    message: str,
    exc_info: Optional[BaseException] = None,
) -> None:
    """Log a failure at the severity its category calls for."""
    level = LOG_LEVELS.get(category, logging.ERROR)
    logger.log(
        level,
        f"{category.name}: {message}",
        exc_info=exc_info if level >= logging.ERROR else None,
        extra={"error_category": category.name},
    )
