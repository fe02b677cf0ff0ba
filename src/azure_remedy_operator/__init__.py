"""Kubernetes operator that cleans up orphaned Azure public IP addresses."""

__version__ = "0.1.0"
