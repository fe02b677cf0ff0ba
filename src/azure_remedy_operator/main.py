"""Main entry point for the Azure Remedy Operator."""

from __future__ import annotations

import logging
import os
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .builders.gateway import create_gateway_from_config, create_store
from .config import RemedyConfig
from .handlers.publicipaddress import PublicIPAddressHandler
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and wire the PublicIPAddress handler."""
    structured_logging.setup_structured_logging()

    # Use annotations for kopf's own bookkeeping so that it never competes
    # with the status sub-resource written by the handlers
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    config = RemedyConfig.from_env()
    initialize_tracing()

    memo.public_ip_address_handler = PublicIPAddressHandler(
        gateway=create_gateway_from_config(config.azure),
        store=create_store(),
        config=config,
    )
    logger.info(
        f"Configured orphaned public IP remedy: requeue_interval={config.requeue_interval}s "
        f"deletion_grace_period={config.deletion_grace_period}s "
        f"max_get_attempts={config.max_get_attempts} max_clean_attempts={config.max_clean_attempts} "
        f"sync_period={config.sync_period}s"
    )

    # Start metrics HTTP server with health check endpoints
    health.start_metrics_server(int(os.getenv("METRICS_PORT", "8080")))
    health.set_ready()


@kopf.on.cleanup()
def cleanup(**_: Any) -> None:
    """Mark the operator as not ready while it shuts down."""
    health.set_ready(False)


def main() -> None:
    """Run the operator; watches WATCH_NAMESPACE if set, the whole cluster otherwise."""
    namespace = os.getenv("WATCH_NAMESPACE")
    if namespace:
        kopf.run(standalone=True, namespaces=[namespace])
    else:
        kopf.run(standalone=True, clusterwide=True)


if __name__ == "__main__":
    main()
