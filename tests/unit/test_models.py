"""Tests for the PublicIPAddress data model."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from azure_remedy_operator.constants import API_GROUP_VERSION, OperationType
from azure_remedy_operator.models import (
    AzurePublicIPAddress,
    FailedOperation,
    PublicIPAddress,
    PublicIPAddressStatus,
    format_timestamp,
    parse_timestamp,
)

AZURE_ID = "/subscriptions/xxx/resourceGroups/rg/providers/Microsoft.Network/publicIPAddresses/ip1"


def make_body() -> dict:
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": "PublicIPAddress",
        "metadata": {
            "name": "test-service-1.2.3.4",
            "namespace": "test",
            "uid": "1234",
            "resourceVersion": "42",
            "deletionTimestamp": "2026-10-16T12:00:00Z",
        },
        "spec": {"ipAddress": "1.2.3.4"},
        "status": {
            "exists": True,
            "id": AZURE_ID,
            "name": "ip1",
            "provisioningState": "Succeeded",
            "failedOperations": [
                {
                    "type": "RemoveFromLoadBalancer",
                    "attempts": 2,
                    "errorMessage": "boom",
                    "timestamp": "2026-10-16T11:59:00Z",
                },
            ],
        },
    }


class TestTimestamps:
    """Test cases for timestamp helpers."""

    def test_parse_zulu(self):
        assert parse_timestamp("2026-10-16T12:00:00Z") == datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)

    def test_parse_naive_is_utc(self):
        assert parse_timestamp("2026-10-16T12:00:00").tzinfo == timezone.utc

    def test_parse_passthrough(self):
        now = datetime.now(timezone.utc)
        assert parse_timestamp(now) is now
        assert parse_timestamp(None) is None

    def test_format(self):
        assert format_timestamp(datetime(2026, 10, 16, 12, 0, 5, 999, tzinfo=timezone.utc)) == "2026-10-16T12:00:05Z"


class TestPublicIPAddress:
    """Test cases for PublicIPAddress conversion."""

    def test_from_dict(self):
        """Test that a kopf body is parsed including the failure history."""
        resource = PublicIPAddress.from_dict(make_body())

        assert resource.namespace == "test"
        assert resource.name == "test-service-1.2.3.4"
        assert resource.ip_address == "1.2.3.4"
        assert resource.uid == "1234"
        assert resource.resource_version == "42"
        assert resource.deletion_timestamp == datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)
        assert resource.status.exists is True
        assert resource.status.name == "ip1"
        assert resource.status.failed_operations == (
            FailedOperation(
                type=OperationType.REMOVE_FROM_LOAD_BALANCER,
                attempts=2,
                error_message="boom",
                timestamp=datetime(2026, 10, 16, 11, 59, tzinfo=timezone.utc),
            ),
        )

    def test_from_dict_without_status(self):
        """Test that a fresh resource gets an empty status."""
        body = make_body()
        del body["status"]
        del body["metadata"]["deletionTimestamp"]

        resource = PublicIPAddress.from_dict(body)

        assert resource.status == PublicIPAddressStatus()
        assert resource.deletion_timestamp is None

    def test_to_dict_round_trips(self):
        body = make_body()

        assert PublicIPAddress.from_dict(body).to_dict() == body

    def test_meta(self):
        resource = PublicIPAddress(namespace="ns", name="n", ip_address="1.2.3.4")

        assert resource.meta == {"name": "n", "namespace": "ns", "uid": "unknown"}


class TestPublicIPAddressStatus:
    """Test cases for PublicIPAddressStatus."""

    def test_to_dict_clears_fields(self):
        """Test that an empty status is written as a patch removing every field."""
        assert PublicIPAddressStatus().to_dict() == {
            "exists": False,
            "id": None,
            "name": None,
            "provisioningState": None,
            "failedOperations": None,
        }

    def test_with_azure_public_ip(self):
        """Test projection of a found Azure public IP address."""
        azure_ip = AzurePublicIPAddress(id=AZURE_ID, name="ip1", ip_address="1.2.3.4", provisioning_state="Updating")

        status = PublicIPAddressStatus().with_azure_public_ip(azure_ip)

        assert status == PublicIPAddressStatus(exists=True, id=AZURE_ID, name="ip1", provisioning_state="Updating")

    def test_with_azure_public_ip_none_keeps_history(self):
        """Test that projecting a missing IP clears the identity but keeps failures."""
        op = FailedOperation(
            type=OperationType.DELETE_PUBLIC_IP_ADDRESS,
            attempts=1,
            error_message="x",
            timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        status = PublicIPAddressStatus(exists=True, id=AZURE_ID, name="ip1", failed_operations=(op,))

        assert status.with_azure_public_ip(None) == PublicIPAddressStatus(failed_operations=(op,))


class TestAzurePublicIPAddress:
    """Test cases for AzurePublicIPAddress."""

    def test_from_sdk_with_enum_state(self):
        obj = SimpleNamespace(
            id=AZURE_ID,
            name="ip1",
            ip_address="1.2.3.4",
            provisioning_state=SimpleNamespace(value="Succeeded"),
        )

        assert AzurePublicIPAddress.from_sdk(obj) == AzurePublicIPAddress(
            id=AZURE_ID, name="ip1", ip_address="1.2.3.4", provisioning_state="Succeeded"
        )

    def test_from_sdk_with_string_state(self):
        obj = SimpleNamespace(id=AZURE_ID, name="ip1", ip_address=None, provisioning_state="Deleting")

        assert AzurePublicIPAddress.from_sdk(obj).provisioning_state == "Deleting"
