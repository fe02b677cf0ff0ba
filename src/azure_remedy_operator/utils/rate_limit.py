"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_AZURE_RATE_LIMIT_PER_SECOND = float(os.getenv("AZURE_RATE_LIMIT_PER_SECOND", "5.0"))

# Track last call times per API type
_last_call_time: dict[str, float] = {"k8s": 0.0, "azure": 0.0}
_lock = threading.Lock()


def _throttle(api_type: str, calls_per_second: float) -> None:
    """Sleep until at least 1/calls_per_second elapsed since the last call."""
    min_interval = 1.0 / calls_per_second
    with _lock:
        time_since_last_call = time.time() - _last_call_time[api_type]
        if time_since_last_call < min_interval:
            metrics.rate_limit_hits_total.labels(api_type=api_type).inc()
            time.sleep(min_interval - time_since_last_call)
        _last_call_time[api_type] = time.time()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _throttle("k8s", _K8S_RATE_LIMIT_PER_SECOND)
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_azure(func: _F) -> _F:
    """Decorator to rate limit Azure Resource Manager API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _throttle("azure", _AZURE_RATE_LIMIT_PER_SECOND)
        return func(*args, **kwargs)

    return wrapper  # type: ignore
