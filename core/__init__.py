# Core module - cross-cutting error taxonomy

from .errors import ErrorCategory, classify_exception, log_error

__all__ = ["ErrorCategory", "classify_exception", "log_error"]
