"""Operator configuration loaded from environment variables.

Invalid configurations raise ConfigurationError at startup rather than
failing in the middle of a reconciliation.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


DEFAULT_REQUEUE_INTERVAL_SECONDS = 60.0
DEFAULT_DELETION_GRACE_PERIOD_SECONDS = 300.0
DEFAULT_MAX_GET_ATTEMPTS = 5
DEFAULT_MAX_CLEAN_ATTEMPTS = 5
DEFAULT_SYNC_PERIOD_SECONDS = 300.0

VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
MAX_RESOURCE_GROUP_NAME_LENGTH = 90


def _get_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer: {value}") from e


def _get_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number: {value}") from e


@dataclass(frozen=True)
class AzureConfig:
    """Where the orphaned public IP addresses live and which identity to use."""

    subscription_id: str = ""
    resource_group: str = ""
    # Client ID of a user-assigned managed identity; system-assigned if unset
    client_id: str | None = None

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")
        if not self.resource_group:
            errors.append("AZURE_RESOURCE_GROUP is required")
        elif len(self.resource_group) > MAX_RESOURCE_GROUP_NAME_LENGTH:
            errors.append(
                f"AZURE_RESOURCE_GROUP exceeds maximum length of {MAX_RESOURCE_GROUP_NAME_LENGTH}"
            )
        return errors


@dataclass(frozen=True)
class RemedyConfig:
    """Orphaned public IP remedy configuration.

    Durations are in seconds, matching the ``delay`` of kopf.TemporaryError.
    """

    # Delay before a lookup, detach or delete is retried
    requeue_interval: float = DEFAULT_REQUEUE_INTERVAL_SECONDS
    # Minimum time between the deletion request and the first cleanup attempt
    deletion_grace_period: float = DEFAULT_DELETION_GRACE_PERIOD_SECONDS
    max_get_attempts: int = DEFAULT_MAX_GET_ATTEMPTS
    max_clean_attempts: int = DEFAULT_MAX_CLEAN_ATTEMPTS
    # Interval of the periodic re-trigger of every PublicIPAddress
    sync_period: float = DEFAULT_SYNC_PERIOD_SECONDS

    azure: AzureConfig = field(default_factory=AzureConfig)

    def __post_init__(self) -> None:
        errors: list[str] = []

        if self.requeue_interval <= 0:
            errors.append("REQUEUE_INTERVAL_SECONDS must be greater than 0")
        if self.deletion_grace_period < 0:
            errors.append("DELETION_GRACE_PERIOD_SECONDS must not be negative")
        if self.max_get_attempts < 1:
            errors.append("MAX_GET_ATTEMPTS must be at least 1")
        if self.max_clean_attempts < 1:
            errors.append("MAX_CLEAN_ATTEMPTS must be at least 1")
        if self.sync_period <= 0:
            errors.append("SYNC_PERIOD_SECONDS must be greater than 0")

        if errors:
            raise ConfigurationError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

    @classmethod
    def from_env(cls) -> RemedyConfig:
        """Load configuration from environment variables.

        Environment Variables:
            REQUEUE_INTERVAL_SECONDS: Retry delay in seconds (default: 60)
            DELETION_GRACE_PERIOD_SECONDS: Wait after a deletion request (default: 300)
            MAX_GET_ATTEMPTS: Lookup attempt budget (default: 5)
            MAX_CLEAN_ATTEMPTS: Detach/delete attempt budget (default: 5)
            SYNC_PERIOD_SECONDS: Periodic re-trigger interval (default: 300)
            AZURE_SUBSCRIPTION_ID: Subscription holding the public IP addresses
            AZURE_RESOURCE_GROUP: Resource group holding the public IP addresses
            AZURE_CLIENT_ID: Optional user-assigned managed identity client ID
        """
        return cls(
            requeue_interval=_get_float("REQUEUE_INTERVAL_SECONDS", DEFAULT_REQUEUE_INTERVAL_SECONDS),
            deletion_grace_period=_get_float(
                "DELETION_GRACE_PERIOD_SECONDS", DEFAULT_DELETION_GRACE_PERIOD_SECONDS
            ),
            max_get_attempts=_get_int("MAX_GET_ATTEMPTS", DEFAULT_MAX_GET_ATTEMPTS),
            max_clean_attempts=_get_int("MAX_CLEAN_ATTEMPTS", DEFAULT_MAX_CLEAN_ATTEMPTS),
            sync_period=_get_float("SYNC_PERIOD_SECONDS", DEFAULT_SYNC_PERIOD_SECONDS),
            azure=AzureConfig(
                subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
                resource_group=os.environ.get("AZURE_RESOURCE_GROUP", ""),
                client_id=os.environ.get("AZURE_CLIENT_ID") or None,
            ),
        )


def sync_period_from_env() -> float:
    """Read and validate SYNC_PERIOD_SECONDS on its own.

    kopf fixes timer intervals when the handlers are registered, before the
    startup handler loads the rest of the configuration.

    Raises:
        ConfigurationError: If the value is not a positive number
    """
    return RemedyConfig(sync_period=_get_float("SYNC_PERIOD_SECONDS", DEFAULT_SYNC_PERIOD_SECONDS)).sync_period
