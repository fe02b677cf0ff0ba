"""Builders wiring configuration into clients."""
