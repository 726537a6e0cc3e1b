from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Iterable

from .units import UnitRecord


class IndicatorSignal(str, Enum):
    STALE = "stale"
    OK = "ok"
    ERR = "err"


@dataclass(frozen=True)
class StatusSnapshot:
    stale: bool
    failed_units: tuple[UnitRecord, ...]
    last_success_at: str
    last_attempt_at: str
    last_error: str
    consecutive_failures: int


class StatusStore:
    """Indicator state shared by the poll thread and the tray thread.

    ``failed_units`` is only replaced wholesale by a successful poll; a failed
    poll marks the state stale and keeps the previous units.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._stale = True
        self._failed_units: tuple[UnitRecord, ...] = ()
        self._last_success_at = ""
        self._last_attempt_at = ""
        self._last_error = ""
        self._consecutive_failures = 0

    def apply_snapshot(self, units: Iterable[UnitRecord]) -> None:
        failed_units = tuple(units)
        now = _now_iso()
        with self._lock:
            self._failed_units = failed_units
            self._stale = False
            self._last_success_at = now
            self._last_attempt_at = now
            self._last_error = ""
            self._consecutive_failures = 0

    def mark_stale(self, error: str = "") -> None:
        now = _now_iso()
        with self._lock:
            self._stale = True
            self._last_attempt_at = now
            self._last_error = error
            self._consecutive_failures += 1

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return StatusSnapshot(
                stale=self._stale,
                failed_units=self._failed_units,
                last_success_at=self._last_success_at,
                last_attempt_at=self._last_attempt_at,
                last_error=self._last_error,
                consecutive_failures=self._consecutive_failures,
            )


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def classify(snapshot: StatusSnapshot) -> IndicatorSignal:
    if snapshot.stale:
        return IndicatorSignal.STALE
    if not snapshot.failed_units:
        return IndicatorSignal.OK
    return IndicatorSignal.ERR


def menu_entries(snapshot: StatusSnapshot) -> list[str]:
    return [unit.label for unit in snapshot.failed_units]


def current_icon_name(status: StatusStore) -> str:
    return classify(status.snapshot()).value


def current_menu_entries(status: StatusStore) -> list[str]:
    return menu_entries(status.snapshot())


def _format_timestamp(value: str) -> str:
    if not value:
        return ""
    try:
        timestamp = datetime.fromisoformat(value)
        return timestamp.strftime("%d-%m-%Y - %H:%M")
    except ValueError:
        return value


def format_tooltip(snapshot: StatusSnapshot) -> str:
    signal = classify(snapshot)
    if signal is IndicatorSignal.STALE:
        last_success = _format_timestamp(snapshot.last_success_at)
        if last_success:
            return f"systemd: status unknown (last update {last_success})"
        return "systemd: status unknown"
    count = len(snapshot.failed_units)
    if count == 0:
        return "systemd: no failed units"
    noun = "unit" if count == 1 else "units"
    return f"systemd: {count} failed {noun}"
