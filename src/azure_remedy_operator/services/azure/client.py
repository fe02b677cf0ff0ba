"""Azure network client for public IP addresses and load balancers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.mgmt.network import NetworkManagementClient

from ... import metrics
from ...models import AzurePublicIPAddress
from ...utils.rate_limit import rate_limit_azure

logger = logging.getLogger(__name__)


def _same_id(a: str | None, b: str | None) -> bool:
    # ARM resource IDs are case-insensitive
    return a is not None and b is not None and a.lower() == b.lower()


class AzurePublicIPAddressClient:
    """Public IP address operations against a single Azure resource group."""

    def __init__(self, network_client: NetworkManagementClient, resource_group: str) -> None:
        """Initialize the client.

        Args:
            network_client: Azure network management client
            resource_group: Resource group holding the public IPs and load balancers
        """
        self.client = network_client
        self.resource_group = resource_group

    def _call(self, operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Invoke an Azure SDK call with rate limiting and API metrics."""
        start_time = time.time()
        try:
            result = rate_limit_azure(func)(*args, **kwargs)
            metrics.api_call_total.labels(api_type="azure", operation=operation, result="success").inc()
            return result
        except ResourceNotFoundError:
            metrics.api_call_total.labels(api_type="azure", operation=operation, result="not_found").inc()
            raise
        except Exception:
            metrics.api_call_total.labels(api_type="azure", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="azure", operation=operation).observe(duration)

    def get_by_ip(self, ip_address: str) -> AzurePublicIPAddress | None:
        """Find the public IP address in the resource group that holds ``ip_address``."""
        public_ips = self._call(
            "list_public_ip_addresses",
            lambda: list(self.client.public_ip_addresses.list(self.resource_group)),
        )
        for public_ip in public_ips:
            if public_ip.ip_address == ip_address:
                return AzurePublicIPAddress.from_sdk(public_ip)
        return None

    def get_by_name(self, name: str) -> AzurePublicIPAddress | None:
        """Get a public IP address by name, or None if it does not exist."""
        try:
            public_ip = self._call(
                "get_public_ip_address",
                self.client.public_ip_addresses.get,
                self.resource_group,
                name,
            )
        except ResourceNotFoundError:
            return None
        return AzurePublicIPAddress.from_sdk(public_ip)

    def remove_from_load_balancer(self, public_ip_ids: list[str]) -> None:
        """Remove the frontend IP configurations referencing the given public IPs.

        Load balancing, inbound NAT and outbound rules as well as inbound NAT
        pools that use a removed frontend IP configuration are removed with it,
        since Azure rejects a load balancer whose rules reference a missing
        frontend. Load balancers that do not reference any of the public IPs
        are left untouched.
        """
        load_balancers = self._call(
            "list_load_balancers",
            lambda: list(self.client.load_balancers.list(self.resource_group)),
        )
        for lb in load_balancers:
            removed_frontend_ids = self._strip_public_ips(lb, public_ip_ids)
            if not removed_frontend_ids:
                continue

            logger.info(
                f"Removing {len(removed_frontend_ids)} frontend IP configuration(s) "
                f"from load balancer {lb.name}"
            )
            try:
                self._call(
                    "update_load_balancer",
                    lambda lb=lb: self.client.load_balancers.begin_create_or_update(
                        self.resource_group, lb.name, lb
                    ).result(),
                )
            except HttpResponseError as e:
                logger.error(f"Failed to update load balancer {lb.name}: {e}")
                raise

    @staticmethod
    def _strip_public_ips(lb: Any, public_ip_ids: list[str]) -> set[str]:
        """Drop frontends referencing ``public_ip_ids`` and the rules using them, in place.

        Returns:
            IDs of the removed frontend IP configurations
        """
        removed: set[str] = set()
        kept_frontends = []
        for frontend in lb.frontend_ip_configurations or []:
            public_ip = frontend.public_ip_address
            if public_ip is not None and any(_same_id(public_ip.id, pid) for pid in public_ip_ids):
                removed.add(frontend.id.lower())
            else:
                kept_frontends.append(frontend)
        if not removed:
            return removed

        def uses_removed(ref: Any) -> bool:
            return ref is not None and ref.id is not None and ref.id.lower() in removed

        lb.frontend_ip_configurations = kept_frontends
        lb.load_balancing_rules = [
            rule for rule in lb.load_balancing_rules or [] if not uses_removed(rule.frontend_ip_configuration)
        ]
        lb.inbound_nat_rules = [
            rule for rule in lb.inbound_nat_rules or [] if not uses_removed(rule.frontend_ip_configuration)
        ]
        lb.inbound_nat_pools = [
            pool for pool in lb.inbound_nat_pools or [] if not uses_removed(pool.frontend_ip_configuration)
        ]
        lb.outbound_rules = [
            rule
            for rule in lb.outbound_rules or []
            if not any(uses_removed(ref) for ref in rule.frontend_ip_configurations or [])
        ]
        return removed

    def delete(self, name: str) -> None:
        """Delete a public IP address and wait for the operation to finish."""
        self._call(
            "delete_public_ip_address",
            lambda: self.client.public_ip_addresses.begin_delete(self.resource_group, name).result(),
        )
