from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .errors import SetupError, TransportError
from .units import UnitRecord

LOGGER = logging.getLogger(__name__)

SYSTEMD_BUS_NAME = "org.freedesktop.systemd1"
SYSTEMD_OBJECT_PATH = "/org/freedesktop/systemd1"
SYSTEMD_MANAGER_INTERFACE = "org.freedesktop.systemd1.Manager"
FAILED_STATE_FILTER = ["failed"]
DEFAULT_TIMEOUT_SECONDS = 1.0


@dataclass
class SystemdClient:
    """Thin wrapper over the systemd manager proxy.

    ``manager`` is any object exposing ``ListUnitsFiltered(states, timeout=seconds)``
    the way a pydbus interface proxy does.
    """

    manager: Any
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def query_failed_units(self) -> list[UnitRecord]:
        try:
            reply = self.manager.ListUnitsFiltered(
                list(FAILED_STATE_FILTER), timeout=self.timeout_seconds
            )
        except Exception as exc:
            raise TransportError(f"ListUnitsFiltered failed: {exc}") from exc

        if reply is None or isinstance(reply, (str, bytes, dict)):
            raise TransportError(f"Unexpected ListUnitsFiltered reply: {reply!r}")
        try:
            return [UnitRecord.from_dbus(row) for row in reply]
        except (TypeError, ValueError) as exc:
            raise TransportError(f"Malformed ListUnitsFiltered reply: {exc}") from exc


def connect_system_bus(timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> SystemdClient:
    try:
        from pydbus import SystemBus

        bus = SystemBus()
        proxy = bus.get(SYSTEMD_BUS_NAME, SYSTEMD_OBJECT_PATH)
        manager = proxy[SYSTEMD_MANAGER_INTERFACE]
    except Exception as exc:
        raise SetupError(f"Failed to connect to system bus: {exc}") from exc
    LOGGER.info(
        "Connected to %s on the system bus",
        SYSTEMD_BUS_NAME,
        extra={"category": "startup"},
    )
    return SystemdClient(manager=manager, timeout_seconds=timeout_seconds)
