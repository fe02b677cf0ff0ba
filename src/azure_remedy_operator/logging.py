"""Structured logging configuration for the Azure Remedy Operator.

Every resource event is one JSON object per line. Extra fields are passed
through :func:`sanitize_secrets` so that credentials and SAS tokens picked up
from Azure SDK errors never reach the log.
"""

import json
import logging
import sys
from typing import Any

from .utils.errors import sanitize_error_message

REDACTED = "***REDACTED***"

# Matched as substrings of lower-cased keys
SECRET_KEY_FRAGMENTS = (
    "client_secret",
    "access_token",
    "refresh_token",
    "password",
    "credential",
    "sas_token",
    "connection_string",
    "shared_key",
)

# The Azure SDK logs every request and response at INFO
NOISY_LOGGERS = (
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "urllib3",
)


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging and quieten the SDK loggers."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "level": logging.getLevelName(level),
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": sanitize_error_message(message),
    }
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Redact secret fields, recursing into nested dicts.

    String values of other fields are scrubbed with the same patterns as
    error messages, so a bearer token or subscription ID inside an Azure
    error text is redacted too.
    """
    sanitized: dict[str, Any] = {}
    for key, value in log_data.items():
        if any(fragment in key.lower() for fragment in SECRET_KEY_FRAGMENTS):
            sanitized[key] = REDACTED
        elif isinstance(value, dict):
            sanitized[key] = sanitize_secrets(value)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value
    return sanitized
