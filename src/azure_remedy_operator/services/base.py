"""Provider gateway interface for Azure public IP addresses."""

from __future__ import annotations

from typing import Protocol

from ..models import AzurePublicIPAddress


class PublicIPAddressGateway(Protocol):
    """Protocol defining the cloud provider operations on public IP addresses."""

    def get_by_ip(self, ip_address: str) -> AzurePublicIPAddress | None:
        """Get the public IP address object that currently holds ``ip_address``, if any."""
        ...

    def get_by_name(self, name: str) -> AzurePublicIPAddress | None:
        """Get the public IP address object with the given name, if any."""
        ...

    def remove_from_load_balancer(self, public_ip_ids: list[str]) -> None:
        """Detach the given public IP addresses from every load balancer that references them."""
        ...

    def delete(self, name: str) -> None:
        """Delete the public IP address object with the given name."""
        ...
