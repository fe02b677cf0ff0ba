"""Utility functions for the Azure Remedy Operator."""

from .errors import ProviderError, StatusUpdateError, sanitize_exception
from .events import emit_event
from .failed_operations import clear_failure, get_failure, record_failure
from .rate_limit import rate_limit_azure, rate_limit_k8s

__all__ = [
    "ProviderError",
    "StatusUpdateError",
    "sanitize_exception",
    "emit_event",
    "record_failure",
    "clear_failure",
    "get_failure",
    "rate_limit_k8s",
    "rate_limit_azure",
]
