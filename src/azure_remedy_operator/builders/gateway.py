"""Builders for the Azure gateway and the Kubernetes resource store."""

from __future__ import annotations

import logging

from azure.identity import ManagedIdentityCredential
from azure.mgmt.network import NetworkManagementClient
from kubernetes import client, config

from ..config import AzureConfig, ConfigurationError
from ..services.azure.client import AzurePublicIPAddressClient
from ..services.store import PublicIPAddressStore

logger = logging.getLogger(__name__)


def create_gateway_from_config(azure_config: AzureConfig) -> AzurePublicIPAddressClient:
    """Create the Azure public IP address gateway.

    Args:
        azure_config: Azure subscription, resource group and identity settings

    Returns:
        Configured gateway

    Raises:
        ConfigurationError: If the Azure configuration is incomplete
    """
    errors = azure_config.validate()
    if errors:
        raise ConfigurationError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

    if azure_config.client_id:
        logger.info("Using user-assigned managed identity")
        credential = ManagedIdentityCredential(client_id=azure_config.client_id)
    else:
        logger.info("Using system-assigned managed identity")
        credential = ManagedIdentityCredential()

    network_client = NetworkManagementClient(credential, azure_config.subscription_id)
    return AzurePublicIPAddressClient(network_client, azure_config.resource_group)


def create_store() -> PublicIPAddressStore:
    """Create the PublicIPAddress store on the in-cluster (or local kubeconfig) API."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return PublicIPAddressStore(client.CustomObjectsApi())
