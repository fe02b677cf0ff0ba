"""Kubernetes-backed store for PublicIPAddress resources."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client

from .. import metrics
from ..constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_PUBLIC_IP_ADDRESSES
from ..models import PublicIPAddress
from ..utils.rate_limit import rate_limit_k8s


class PublicIPAddressStore:
    """Reads PublicIPAddress resources and writes their status sub-resource."""

    def __init__(self, api: client.CustomObjectsApi) -> None:
        self.api = api

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        start_time = time.time()
        try:
            result = rate_limit_k8s(func)(
                group=API_GROUP,
                version=API_VERSION,
                plural=PLURAL_PUBLIC_IP_ADDRESSES,
                **kwargs,
            )
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except Exception:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get(self, namespace: str, name: str) -> PublicIPAddress:
        """Fetch the current state of a PublicIPAddress.

        Raises:
            kubernetes.client.exceptions.ApiException: If the object cannot be read
        """
        body = self._call(
            "get_publicipaddress",
            self.api.get_namespaced_custom_object,
            namespace=namespace,
            name=name,
        )
        return PublicIPAddress.from_dict(body)

    def update_status(self, resource: PublicIPAddress) -> None:
        """Write the status of ``resource`` to its status sub-resource.

        Raises:
            kubernetes.client.exceptions.ApiException: If the write fails
        """
        self._call(
            "update_publicipaddress_status",
            self.api.patch_namespaced_custom_object_status,
            namespace=resource.namespace,
            name=resource.name,
            body={"status": resource.status.to_dict()},
            field_manager=FIELD_MANAGER,
        )
