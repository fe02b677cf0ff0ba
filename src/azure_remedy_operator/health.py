"""Health check endpoints served next to the Prometheus metrics."""

from __future__ import annotations

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Response

_ready = threading.Event()


def set_ready(ready: bool = True) -> None:
    """Mark the operator as ready (or not) to serve reconciliations."""
    if ready:
        _ready.set()
    else:
        _ready.clear()


def is_ready() -> bool:
    """Return whether the operator finished its startup wiring."""
    return _ready.is_set()


def _json_response(body: str, status: int) -> Response:
    return Response(body, mimetype="application/json", status=status)


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    ``/healthz`` always answers 200 while the process is alive, ``/readyz``
    answers 503 until :func:`set_ready` has been called. Every other path is
    delegated to the prometheus_client WSGI app.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> Any:
        path = environ.get("PATH_INFO", "")

        if path == "/healthz":
            response = _json_response('{"status":"ok"}', 200)
            return response(environ, start_response)
        if path == "/readyz":
            if is_ready():
                response = _json_response('{"status":"ready"}', 200)
            else:
                response = _json_response('{"status":"not ready"}', 503)
            return response(environ, start_response)
        return metrics_app(environ, start_response)

    return combined_app


def start_metrics_server(port: int) -> threading.Thread:
    """Serve metrics and health endpoints on ``port`` in a daemon thread."""
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread
