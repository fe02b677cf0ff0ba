"""Data model of the PublicIPAddress custom resource.

The operator reads PublicIPAddress objects as plain dicts (kopf bodies and
CustomObjectsApi responses) and converts them into the dataclasses below so
that status changes can be computed and compared structurally. Only the
status is ever written back.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from .constants import API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS, OperationType


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as written by the Kubernetes API server."""
    if value is None or isinstance(value, datetime):
        return value
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a timestamp the way the Kubernetes API server does (second precision, Z suffix)."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class FailedOperation:
    """A failed operation on the Azure public IP address, one per operation type."""

    type: OperationType
    attempts: int
    error_message: str
    timestamp: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FailedOperation:
        return cls(
            type=OperationType(data["type"]),
            attempts=int(data.get("attempts", 1)),
            error_message=data.get("errorMessage", ""),
            timestamp=parse_timestamp(data.get("timestamp")) or datetime.now(timezone.utc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "attempts": self.attempts,
            "errorMessage": self.error_message,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass(frozen=True)
class PublicIPAddressStatus:
    """Observed state of a PublicIPAddress.

    ``exists`` implies ``id`` and ``name`` are set; a status where ``exists``
    is false never carries an Azure identity.
    """

    exists: bool = False
    id: str | None = None
    name: str | None = None
    provisioning_state: str | None = None
    failed_operations: tuple[FailedOperation, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PublicIPAddressStatus:
        data = data or {}
        return cls(
            exists=bool(data.get("exists", False)),
            id=data.get("id"),
            name=data.get("name"),
            provisioning_state=data.get("provisioningState"),
            failed_operations=tuple(
                FailedOperation.from_dict(op) for op in data.get("failedOperations") or []
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise as a merge patch: cleared fields are sent as None so they get removed."""
        return {
            "exists": self.exists,
            "id": self.id,
            "name": self.name,
            "provisioningState": self.provisioning_state,
            "failedOperations": [op.to_dict() for op in self.failed_operations] or None,
        }

    def with_azure_public_ip(self, azure_ip: AzurePublicIPAddress | None) -> PublicIPAddressStatus:
        """Project the given Azure public IP address (or its absence) into this status."""
        if azure_ip is None:
            return replace(self, exists=False, id=None, name=None, provisioning_state=None)
        return replace(
            self,
            exists=True,
            id=azure_ip.id,
            name=azure_ip.name,
            provisioning_state=azure_ip.provisioning_state,
        )


@dataclass(frozen=True)
class AzurePublicIPAddress:
    """The parts of an Azure public IP address the operator cares about."""

    id: str
    name: str
    ip_address: str | None = None
    provisioning_state: str | None = None

    @classmethod
    def from_sdk(cls, obj: Any) -> AzurePublicIPAddress:
        """Build from an ``azure.mgmt.network.models.PublicIPAddress``."""
        provisioning_state = getattr(obj, "provisioning_state", None)
        # The SDK may hand back a ProvisioningState enum member or a plain string
        provisioning_state = getattr(provisioning_state, "value", provisioning_state)
        return cls(
            id=obj.id,
            name=obj.name,
            ip_address=getattr(obj, "ip_address", None),
            provisioning_state=provisioning_state,
        )


@dataclass
class PublicIPAddress:
    """A PublicIPAddress custom resource."""

    namespace: str
    name: str
    ip_address: str
    uid: str = ""
    resource_version: str | None = None
    deletion_timestamp: datetime | None = None
    status: PublicIPAddressStatus = field(default_factory=PublicIPAddressStatus)

    @classmethod
    def from_dict(cls, body: dict[str, Any]) -> PublicIPAddress:
        meta = body.get("metadata", {})
        spec = body.get("spec", {})
        return cls(
            namespace=meta.get("namespace", "default"),
            name=meta.get("name", ""),
            uid=meta.get("uid", ""),
            resource_version=meta.get("resourceVersion"),
            deletion_timestamp=parse_timestamp(meta.get("deletionTimestamp")),
            ip_address=spec.get("ipAddress", ""),
            status=PublicIPAddressStatus.from_dict(body.get("status")),
        )

    def to_dict(self) -> dict[str, Any]:
        meta: dict[str, Any] = {"name": self.name, "namespace": self.namespace}
        if self.uid:
            meta["uid"] = self.uid
        if self.resource_version:
            meta["resourceVersion"] = self.resource_version
        if self.deletion_timestamp is not None:
            meta["deletionTimestamp"] = format_timestamp(self.deletion_timestamp)
        status = {k: v for k, v in self.status.to_dict().items() if v is not None}
        return {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_PUBLIC_IP_ADDRESS,
            "metadata": meta,
            "spec": {"ipAddress": self.ip_address},
            "status": status,
        }

    @property
    def meta(self) -> dict[str, Any]:
        """Metadata subset used for structured logging."""
        return {"name": self.name, "namespace": self.namespace, "uid": self.uid or "unknown"}

    @property
    def key(self) -> tuple[str, str]:
        return self.namespace, self.name
