"""Provider gateway and resource store used by the handlers."""
