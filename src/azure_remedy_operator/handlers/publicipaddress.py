"""Handler for the PublicIPAddress CRD.

A PublicIPAddress tracks one Azure public IP address that may have been
orphaned by a deleted load-balanced Service. While the resource lives, its
status mirrors the Azure object. Once deletion is requested and the grace
period has elapsed, the Azure public IP address is detached from its load
balancer and deleted.

Attempt counters are kept in ``status.failedOperations`` so that the retry
budget survives operator restarts.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

import kopf
from prometheus_client import Counter

from .. import metrics
from ..config import RemedyConfig, sync_period_from_env
from ..constants import API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS, OperationType
from ..models import AzurePublicIPAddress, PublicIPAddress, PublicIPAddressStatus
from ..services.base import PublicIPAddressGateway
from ..services.store import PublicIPAddressStore
from ..tracing import trace_span
from ..utils.errors import ProviderError, StatusUpdateError
from ..utils.events import emit_cleanup_exhausted, emit_public_ip_deleted, emit_public_ip_found
from ..utils.failed_operations import clear_failure, get_failure, record_failure
from .base import BaseHandler

MESSAGE_STILL_EXISTS = "public IP address still exists"

SYNC_PERIOD_SECONDS = sync_period_from_env()


class PublicIPAddressHandler(BaseHandler):
    """Handler for PublicIPAddress resources."""

    def __init__(
        self,
        gateway: PublicIPAddressGateway,
        store: PublicIPAddressStore,
        config: RemedyConfig,
        cleaned_ips_counter: Counter | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """Initialize the handler.

        Args:
            gateway: Azure public IP address operations
            store: Reads PublicIPAddress resources and writes their status
            config: Requeue interval, grace period and attempt budgets
            cleaned_ips_counter: Incremented once per cleaned up public IP
            now: Clock, defaults to the current UTC time
        """
        super().__init__(KIND_PUBLIC_IP_ADDRESS)
        self.gateway = gateway
        self.store = store
        self.config = config
        self.cleaned_ips_counter = cleaned_ips_counter or metrics.cleaned_public_ips_total
        self.now = now or (lambda: datetime.now(timezone.utc))

        self._locks_guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        # Objects whose change handlers have not completed successfully yet
        self._unfinished: set[tuple[str, str]] = set()

    @contextmanager
    def exclusive(self, resource: PublicIPAddress, blocking: bool = True) -> Iterator[bool]:
        """Hold the lock of ``resource`` for one reconciliation.

        Yields whether the lock was acquired, which is always True when
        ``blocking``.
        """
        with self._locks_guard:
            lock = self._locks.setdefault(resource.key, threading.Lock())
        acquired = lock.acquire(blocking=blocking)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()

    def start_cycle(self, resource: PublicIPAddress) -> None:
        self._unfinished.add(resource.key)

    def finish_cycle(self, resource: PublicIPAddress) -> None:
        self._unfinished.discard(resource.key)

    def has_unfinished_cycle(self, resource: PublicIPAddress) -> bool:
        return resource.key in self._unfinished

    def forget(self, resource: PublicIPAddress) -> None:
        """Drop the bookkeeping of a resource that is gone."""
        with self._locks_guard:
            self._locks.pop(resource.key, None)
        self._unfinished.discard(resource.key)

    def create_or_update(self, resource: PublicIPAddress) -> tuple[float, bool]:
        """Update the status of ``resource`` from the Azure public IP address.

        Returns:
            ``(requeue_after, remove_finalizer)``. ``requeue_after`` is the
            requeue interval while no Azure public IP address matches and 0
            once one was found. ``remove_finalizer`` is always False.

        Raises:
            kopf.TemporaryError: If the lookup failed and attempts remain
            StatusUpdateError: If the status could not be read or written
        """
        with trace_span(
            "create_or_update_publicipaddress",
            kind=self.kind,
            attributes={"publicipaddress.name": resource.name},
        ):
            try:
                azure_ip = self._get_azure_public_ip(resource)
            except ProviderError as e:
                self._handle_failure(resource, OperationType.GET_PUBLIC_IP_ADDRESS, e, self.config.max_get_attempts)
                return 0, False

            was_found = resource.status.exists
            self._update_status(resource, lambda status: self._project(status, azure_ip))

            if azure_ip is None:
                return self.config.requeue_interval, False

            if not was_found:
                self.log_info(
                    resource.meta,
                    f"Azure public IP address {azure_ip.name} found",
                    event="found",
                    reason="PublicIPAddressFound",
                    azure_id=azure_ip.id,
                )
                emit_public_ip_found(resource.to_dict(), azure_ip.name)
            return 0, False

    def delete(self, resource: PublicIPAddress) -> None:
        """Remove the Azure public IP address tracked by ``resource``.

        Nothing is removed before the deletion grace period has elapsed. The
        public IP address is detached from its load balancer first and then
        deleted. Once an operation has failed more often than its attempt
        budget allows, this returns without raising and leaves the failure
        in the status.

        Raises:
            kopf.TemporaryError: If the grace period has not elapsed yet, or an
                Azure call failed and attempts remain
            StatusUpdateError: If the status could not be read or written
        """
        with trace_span(
            "delete_publicipaddress",
            kind=self.kind,
            attributes={"publicipaddress.name": resource.name},
        ):
            try:
                azure_ip = self._get_azure_public_ip(resource)
            except ProviderError as e:
                self._handle_failure(resource, OperationType.GET_PUBLIC_IP_ADDRESS, e, self.config.max_get_attempts)
                return

            if azure_ip is not None and not self._grace_period_elapsed(resource):
                raise kopf.TemporaryError(MESSAGE_STILL_EXISTS, delay=self.config.requeue_interval)

            self._update_status(resource, lambda status: self._project(status, azure_ip))

            if azure_ip is None:
                self.log_info(
                    resource.meta,
                    "Azure public IP address does not exist, nothing to clean up",
                    event="deletion",
                    reason="NotFound",
                )
                return

            self.log_info(
                resource.meta,
                f"Removing Azure public IP address {azure_ip.name} from the load balancer",
                event="deletion",
                reason="RemoveFromLoadBalancer",
                azure_id=azure_ip.id,
            )
            try:
                self._remove_from_load_balancer(azure_ip)
            except ProviderError as e:
                self._handle_failure(
                    resource, OperationType.REMOVE_FROM_LOAD_BALANCER, e, self.config.max_clean_attempts
                )
                return

            self.log_info(
                resource.meta,
                f"Deleting Azure public IP address {azure_ip.name}",
                event="deletion",
                reason="DeletePublicIPAddress",
                azure_id=azure_ip.id,
            )
            try:
                self._delete_azure_public_ip(azure_ip)
            except ProviderError as e:
                self._handle_failure(
                    resource,
                    OperationType.DELETE_PUBLIC_IP_ADDRESS,
                    e,
                    self.config.max_clean_attempts,
                    cleared=(OperationType.REMOVE_FROM_LOAD_BALANCER,),
                )
                return

            self._update_status(resource, lambda status: PublicIPAddressStatus())
            self.cleaned_ips_counter.inc()
            self.log_info(
                resource.meta,
                f"Azure public IP address {azure_ip.name} deleted",
                event="deletion",
                reason="PublicIPAddressDeleted",
                azure_id=azure_ip.id,
            )
            emit_public_ip_deleted(resource.to_dict(), azure_ip.name)

    def _get_azure_public_ip(self, resource: PublicIPAddress) -> AzurePublicIPAddress | None:
        # Once found, follow the object by name: its address may change
        status = resource.status
        if status.exists and status.name:
            try:
                return self.gateway.get_by_name(status.name)
            except Exception as e:
                raise ProviderError(f"could not get Azure public IP address by name: {e}") from e
        try:
            return self.gateway.get_by_ip(resource.ip_address)
        except Exception as e:
            raise ProviderError(f"could not get Azure public IP address by IP: {e}") from e

    def _remove_from_load_balancer(self, azure_ip: AzurePublicIPAddress) -> None:
        try:
            self.gateway.remove_from_load_balancer([azure_ip.id])
        except Exception as e:
            raise ProviderError(f"could not remove Azure public IP address from the load balancer: {e}") from e

    def _delete_azure_public_ip(self, azure_ip: AzurePublicIPAddress) -> None:
        try:
            self.gateway.delete(azure_ip.name)
        except Exception as e:
            raise ProviderError(f"could not delete Azure public IP address: {e}") from e

    def _grace_period_elapsed(self, resource: PublicIPAddress) -> bool:
        if resource.deletion_timestamp is None:
            return True
        elapsed = self.now() - resource.deletion_timestamp
        return elapsed.total_seconds() >= self.config.deletion_grace_period

    @staticmethod
    def _project(
        status: PublicIPAddressStatus,
        azure_ip: AzurePublicIPAddress | None,
    ) -> PublicIPAddressStatus:
        """Project a successful lookup into ``status``."""
        return replace(
            status.with_azure_public_ip(azure_ip),
            failed_operations=clear_failure(status.failed_operations, OperationType.GET_PUBLIC_IP_ADDRESS),
        )

    def _handle_failure(
        self,
        resource: PublicIPAddress,
        op_type: OperationType,
        error: ProviderError,
        max_attempts: int,
        cleared: tuple[OperationType, ...] = (),
    ) -> None:
        """Record a failed operation and decide whether to requeue.

        Raises:
            kopf.TemporaryError: If the recorded attempts are within ``max_attempts``
        """
        message = str(error)
        timestamp = self.now()

        def mutate(status: PublicIPAddressStatus) -> PublicIPAddressStatus:
            history = status.failed_operations
            for cleared_type in cleared:
                history = clear_failure(history, cleared_type)
            return replace(status, failed_operations=record_failure(history, op_type, message, timestamp))

        status = self._update_status(resource, mutate)
        failed_op = get_failure(status.failed_operations, op_type)
        attempts = failed_op.attempts if failed_op is not None else 1

        if attempts > max_attempts:
            self.log_error(
                resource.meta,
                f"Giving up on {op_type.value} after {attempts} attempts",
                error=error,
                event="exhausted",
                reason="AttemptsExhausted",
                operation=op_type.value,
                attempts=attempts,
            )
            metrics.cleanup_exhausted_total.labels(operation=op_type.value).inc()
            emit_cleanup_exhausted(resource.to_dict(), f"{message} (giving up after {attempts} attempts)")
            return

        self.log_warning(
            resource.meta,
            message,
            event="failure",
            reason=op_type.value,
            attempts=attempts,
            max_attempts=max_attempts,
        )
        raise kopf.TemporaryError(message, delay=self.config.requeue_interval) from error

    def _update_status(
        self,
        resource: PublicIPAddress,
        mutate: Callable[[PublicIPAddressStatus], PublicIPAddressStatus],
    ) -> PublicIPAddressStatus:
        """Apply ``mutate`` to the freshly read status and write it if it changed.

        ``resource.status`` is updated to the resulting status.
        """
        try:
            current = self.store.get(resource.namespace, resource.name)
        except Exception as e:
            raise StatusUpdateError(f"could not get publicipaddress: {e}") from e

        status = mutate(current.status)
        if status != current.status:
            current.status = status
            try:
                self.store.update_status(current)
            except Exception as e:
                raise StatusUpdateError(f"could not update publicipaddress status: {e}") from e

        resource.status = status
        return status


def _get_handler(memo: kopf.Memo) -> PublicIPAddressHandler:
    return memo.public_ip_address_handler


@kopf.on.create(API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS)
@kopf.on.update(API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS)
@kopf.on.resume(API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS)
def handle_public_ip_address(
    body: kopf.Body,
    meta: kopf.Meta,
    patch: kopf.Patch,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Handle PublicIPAddress resource reconciliation.

    The cycle stays unfinished until a pass completes without a requeue, so
    that the periodic resync leaves the object to kopf's retries meanwhile.
    """
    handler = _get_handler(memo)
    handler.ensure_finalizer(meta, patch)
    resource = PublicIPAddress.from_dict(body)

    def reconcile() -> None:
        with handler.exclusive(resource):
            handler.start_cycle(resource)
            requeue_after, remove_finalizer = handler.create_or_update(resource)
            if remove_finalizer:
                handler.remove_finalizer(meta, patch)
            if requeue_after:
                raise kopf.TemporaryError("Azure public IP address not found yet", delay=requeue_after)
            handler.finish_cycle(resource)

    handler.reconcile_with_metrics(body, reconcile)


@kopf.timer(
    API_GROUP_VERSION,
    KIND_PUBLIC_IP_ADDRESS,
    interval=SYNC_PERIOD_SECONDS,
    idle=SYNC_PERIOD_SECONDS,
)
def resync_public_ip_address(
    body: kopf.Body,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Periodically re-check a PublicIPAddress against Azure.

    Skipped while another reconciliation of the object runs, while its change
    handlers have not finished, and once deletion was requested. A requeue
    or a failure within budget waits for the next tick.
    """
    handler = _get_handler(memo)
    resource = PublicIPAddress.from_dict(body)
    if resource.deletion_timestamp is not None:
        return

    with handler.exclusive(resource, blocking=False) as acquired:
        if not acquired or handler.has_unfinished_cycle(resource):
            return
        try:
            handler.reconcile_with_metrics(body, lambda: handler.create_or_update(resource))
        except kopf.TemporaryError as e:
            handler.log_info(resource.meta, f"Resync deferred to the next tick: {e}", event="resync", reason="Deferred")


@kopf.on.delete(API_GROUP_VERSION, KIND_PUBLIC_IP_ADDRESS)
def handle_public_ip_address_delete(
    body: kopf.Body,
    meta: kopf.Meta,
    patch: kopf.Patch,
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Handle PublicIPAddress resource deletion."""
    handler = _get_handler(memo)
    handler.log_info(meta, "PublicIPAddress is being deleted", event="deletion", reason="Deletion")
    resource = PublicIPAddress.from_dict(body)

    def reconcile() -> None:
        with handler.exclusive(resource):
            handler.delete(resource)

    handler.reconcile_with_metrics(body, reconcile)
    handler.remove_finalizer(meta, patch)
    handler.forget(resource)
