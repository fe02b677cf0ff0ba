"""Tests for the Azure public IP address client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from azure_remedy_operator.models import AzurePublicIPAddress
from azure_remedy_operator.services.azure.client import AzurePublicIPAddressClient

RESOURCE_GROUP = "shoot--dev--test"
PREFIX = f"/subscriptions/xxx/resourceGroups/{RESOURCE_GROUP}/providers/Microsoft.Network"
IP1_ID = f"{PREFIX}/publicIPAddresses/ip1"
IP2_ID = f"{PREFIX}/publicIPAddresses/ip2"
LB_ID = f"{PREFIX}/loadBalancers/shoot--dev--test"


def ref(id_: str) -> SimpleNamespace:
    return SimpleNamespace(id=id_)


def sdk_public_ip(name: str, ip_address: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=f"{PREFIX}/publicIPAddresses/{name}",
        name=name,
        ip_address=ip_address,
        provisioning_state="Succeeded",
    )


def make_lb() -> SimpleNamespace:
    fe1 = SimpleNamespace(id=f"{LB_ID}/frontendIPConfigurations/fe1", public_ip_address=ref(IP1_ID))
    fe2 = SimpleNamespace(id=f"{LB_ID}/frontendIPConfigurations/fe2", public_ip_address=ref(IP2_ID))
    return SimpleNamespace(
        name="shoot--dev--test",
        frontend_ip_configurations=[fe1, fe2],
        load_balancing_rules=[
            SimpleNamespace(name="rule1", frontend_ip_configuration=ref(fe1.id)),
            SimpleNamespace(name="rule2", frontend_ip_configuration=ref(fe2.id)),
        ],
        inbound_nat_rules=[SimpleNamespace(name="nat1", frontend_ip_configuration=ref(fe1.id))],
        inbound_nat_pools=None,
        outbound_rules=[
            SimpleNamespace(name="out1", frontend_ip_configurations=[ref(fe1.id)]),
            SimpleNamespace(name="out2", frontend_ip_configurations=[ref(fe2.id)]),
        ],
    )


@pytest.fixture(autouse=True)
def no_throttle():
    with patch("azure_remedy_operator.utils.rate_limit._AZURE_RATE_LIMIT_PER_SECOND", 1_000_000.0):
        yield


@pytest.fixture
def network_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(network_client) -> AzurePublicIPAddressClient:
    return AzurePublicIPAddressClient(network_client, RESOURCE_GROUP)


class TestLookup:
    """Test cases for public IP address lookups."""

    def test_get_by_ip(self, client, network_client):
        network_client.public_ip_addresses.list.return_value = iter([
            sdk_public_ip("ip1", "1.1.1.1"),
            sdk_public_ip("ip2", "1.2.3.4"),
        ])

        result = client.get_by_ip("1.2.3.4")

        network_client.public_ip_addresses.list.assert_called_once_with(RESOURCE_GROUP)
        assert result == AzurePublicIPAddress(
            id=IP2_ID, name="ip2", ip_address="1.2.3.4", provisioning_state="Succeeded"
        )

    def test_get_by_ip_not_found(self, client, network_client):
        network_client.public_ip_addresses.list.return_value = iter([sdk_public_ip("ip1", "1.1.1.1")])

        assert client.get_by_ip("1.2.3.4") is None

    def test_get_by_ip_propagates_errors(self, client, network_client):
        network_client.public_ip_addresses.list.side_effect = HttpResponseError("throttled")

        with pytest.raises(HttpResponseError):
            client.get_by_ip("1.2.3.4")

    def test_get_by_name(self, client, network_client):
        network_client.public_ip_addresses.get.return_value = sdk_public_ip("ip1", "1.1.1.1")

        result = client.get_by_name("ip1")

        network_client.public_ip_addresses.get.assert_called_once_with(RESOURCE_GROUP, "ip1")
        assert result.id == IP1_ID

    @patch("azure_remedy_operator.services.azure.client.metrics")
    def test_get_by_name_not_found(self, mock_metrics, client, network_client):
        """Test that a missing public IP is reported as None and counted as not_found."""
        network_client.public_ip_addresses.get.side_effect = ResourceNotFoundError("gone")

        assert client.get_by_name("ip1") is None
        mock_metrics.api_call_total.labels.assert_called_once_with(
            api_type="azure", operation="get_public_ip_address", result="not_found"
        )


class TestRemoveFromLoadBalancer:
    """Test cases for detaching public IPs from load balancers."""

    def test_strip_public_ips(self):
        """Test that the frontend and every rule using it are dropped."""
        lb = make_lb()

        removed = AzurePublicIPAddressClient._strip_public_ips(lb, [IP1_ID.upper()])

        assert removed == {f"{LB_ID}/frontendIPConfigurations/fe1".lower()}
        assert [fe.public_ip_address.id for fe in lb.frontend_ip_configurations] == [IP2_ID]
        assert [r.name for r in lb.load_balancing_rules] == ["rule2"]
        assert lb.inbound_nat_rules == []
        assert lb.inbound_nat_pools == []
        assert [r.name for r in lb.outbound_rules] == ["out2"]

    def test_strip_public_ips_untouched(self):
        lb = make_lb()

        assert AzurePublicIPAddressClient._strip_public_ips(lb, [f"{PREFIX}/publicIPAddresses/other"]) == set()
        assert len(lb.frontend_ip_configurations) == 2
        assert lb.inbound_nat_pools is None

    def test_updates_only_changed_load_balancers(self, client, network_client):
        """Test that only load balancers referencing the IP are written."""
        lb = make_lb()
        other = SimpleNamespace(
            name="other",
            frontend_ip_configurations=[
                SimpleNamespace(id="fe", public_ip_address=ref(f"{PREFIX}/publicIPAddresses/other")),
            ],
        )
        network_client.load_balancers.list.return_value = iter([lb, other])

        client.remove_from_load_balancer([IP1_ID])

        network_client.load_balancers.begin_create_or_update.assert_called_once_with(
            RESOURCE_GROUP, "shoot--dev--test", lb
        )
        network_client.load_balancers.begin_create_or_update.return_value.result.assert_called_once_with()

    def test_noop_without_references(self, client, network_client):
        network_client.load_balancers.list.return_value = iter([])

        client.remove_from_load_balancer([IP1_ID])

        network_client.load_balancers.begin_create_or_update.assert_not_called()

    def test_propagates_update_errors(self, client, network_client):
        network_client.load_balancers.list.return_value = iter([make_lb()])
        network_client.load_balancers.begin_create_or_update.side_effect = HttpResponseError("conflict")

        with pytest.raises(HttpResponseError):
            client.remove_from_load_balancer([IP1_ID])


class TestDelete:
    """Test cases for deleting public IPs."""

    def test_delete_waits_for_completion(self, client, network_client):
        client.delete("ip1")

        network_client.public_ip_addresses.begin_delete.assert_called_once_with(RESOURCE_GROUP, "ip1")
        network_client.public_ip_addresses.begin_delete.return_value.result.assert_called_once_with()

    def test_delete_propagates_errors(self, client, network_client):
        network_client.public_ip_addresses.begin_delete.side_effect = HttpResponseError("in use")

        with pytest.raises(HttpResponseError):
            client.delete("ip1")
