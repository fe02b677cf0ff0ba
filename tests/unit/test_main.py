"""Tests for operator startup wiring."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf

from azure_remedy_operator import main
from azure_remedy_operator.config import RemedyConfig
from azure_remedy_operator.handlers.publicipaddress import PublicIPAddressHandler


class TestConfigure:
    """Test cases for the startup handler."""

    @patch("azure_remedy_operator.main.health")
    @patch("azure_remedy_operator.main.initialize_tracing")
    @patch("azure_remedy_operator.main.create_store")
    @patch("azure_remedy_operator.main.create_gateway_from_config")
    @patch("azure_remedy_operator.main.RemedyConfig.from_env")
    @patch("azure_remedy_operator.main.structured_logging.setup_structured_logging")
    def test_configure_wires_handler(
        self, mock_logging, mock_from_env, mock_gateway, mock_store, mock_tracing, mock_health, monkeypatch
    ):
        """Test that the handler is placed in the memo and readiness is signalled."""
        monkeypatch.setenv("METRICS_PORT", "9090")
        config = RemedyConfig(requeue_interval=5.0)
        mock_from_env.return_value = config
        settings = kopf.OperatorSettings()
        memo = kopf.Memo()

        main.configure(settings=settings, memo=memo)

        handler = memo.public_ip_address_handler
        assert isinstance(handler, PublicIPAddressHandler)
        assert handler.config is config
        assert handler.gateway is mock_gateway.return_value
        assert handler.store is mock_store.return_value
        mock_gateway.assert_called_once_with(config.azure)
        mock_tracing.assert_called_once_with()
        mock_health.start_metrics_server.assert_called_once_with(9090)
        mock_health.set_ready.assert_called_once_with()
        assert isinstance(settings.persistence.progress_storage, kopf.AnnotationsProgressStorage)

    @patch("azure_remedy_operator.main.health")
    def test_cleanup_marks_not_ready(self, mock_health):
        main.cleanup()

        mock_health.set_ready.assert_called_once_with(False)


class TestMain:
    """Test cases for main."""

    @patch("azure_remedy_operator.main.kopf.run")
    def test_clusterwide(self, mock_run, monkeypatch):
        monkeypatch.delenv("WATCH_NAMESPACE", raising=False)

        main.main()

        mock_run.assert_called_once_with(standalone=True, clusterwide=True)

    @patch("azure_remedy_operator.main.kopf.run")
    def test_single_namespace(self, mock_run, monkeypatch):
        monkeypatch.setenv("WATCH_NAMESPACE", "garden")

        main.main()

        mock_run.assert_called_once_with(standalone=True, namespaces=["garden"])
