from __future__ import annotations


class SetupError(RuntimeError):
    """Raised when a startup resource (bus connection, icon assets) is unavailable."""


class TransportError(RuntimeError):
    """Raised when a single query to the service manager fails."""
