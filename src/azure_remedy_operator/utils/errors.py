"""Error sanitization utilities to prevent information leakage."""

import re

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"client[_\s]?secret[:=\s]+([^\s,;\)]+)",
    r"access[_\s]?token[:=\s]+([^\s,;\)]+)",
    r"sig=([A-Za-z0-9%/+=]+)",
    r"/subscriptions/([0-9a-fA-F\-]{36})",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "client_secret",
    "access_token",
    "refresh_token",
    "password",
    "secret",
    "credential",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{field}[:=\s]+(?!\[REDACTED\])([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


class StatusUpdateError(Exception):
    """Raised when the status of a resource could not be written.

    Not a kopf.TemporaryError; kopf retries it with its regular error backoff.
    """

    pass


class ProviderError(Exception):
    """Raised when a call to the cloud provider fails.

    The message names the failing operation, e.g.
    "could not get Azure public IP address by IP: <cause>".
    """

    pass
