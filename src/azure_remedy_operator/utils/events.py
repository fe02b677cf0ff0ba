"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CLEANUP_EXHAUSTED,
    EVENT_REASON_PUBLIC_IP_DELETED,
    EVENT_REASON_PUBLIC_IP_FOUND,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (apiVersion, kind and metadata are used as the reference)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_public_ip_found(body: dict[str, Any], azure_name: str) -> None:
    """Emit public IP address found event."""
    emit_event(body, EVENT_REASON_PUBLIC_IP_FOUND, f"Azure public IP address {azure_name} found")


def emit_public_ip_deleted(body: dict[str, Any], azure_name: str) -> None:
    """Emit public IP address deleted event."""
    emit_event(body, EVENT_REASON_PUBLIC_IP_DELETED, f"Azure public IP address {azure_name} deleted")


def emit_cleanup_exhausted(body: dict[str, Any], message: str) -> None:
    """Emit cleanup attempts exhausted event."""
    emit_event(body, EVENT_REASON_CLEANUP_EXHAUSTED, message, type_="Warning")
