from __future__ import annotations

import logging
import time
from threading import Event, Thread
from typing import Protocol

from .status import IndicatorSignal, StatusStore, classify
from .units import UnitRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 60


class FailedUnitsSource(Protocol):
    def query_failed_units(self) -> list[UnitRecord]: ...


class Reconciler:
    """Polls the service manager and folds each result into the status store."""

    def __init__(
        self,
        client: FailedUnitsSource,
        status: StatusStore,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.client = client
        self.status = status
        self.poll_interval_seconds = poll_interval_seconds
        self._last_signal = classify(status.snapshot())

    def tick(self) -> IndicatorSignal:
        started = time.perf_counter()
        try:
            units = self.client.query_failed_units()
        except Exception as exc:
            LOGGER.warning(
                "Failed to list units: %s",
                exc,
                extra={"category": "poll"},
            )
            self.status.mark_stale(str(exc))
        else:
            self.status.apply_snapshot(units)
        finally:
            LOGGER.debug(
                "Poll duration %.2fms",
                (time.perf_counter() - started) * 1000,
                extra={"category": "perf"},
            )

        snapshot = self.status.snapshot()
        signal = classify(snapshot)
        if signal is not self._last_signal:
            LOGGER.info(
                "Indicator %s -> %s (%d failed units)",
                self._last_signal.value,
                signal.value,
                len(snapshot.failed_units),
                extra={"category": "state"},
            )
            self._last_signal = signal
        return signal

    def run_loop(self, stop_event: Event) -> None:
        LOGGER.info(
            "Poll loop started (interval %ss)",
            self.poll_interval_seconds,
            extra={"category": "startup"},
        )
        while not stop_event.is_set():
            self.tick()
            if stop_event.wait(self.poll_interval_seconds):
                break
        LOGGER.info("Poll loop stopped", extra={"category": "shutdown"})


def start_reconciler_thread(reconciler: Reconciler, stop_event: Event) -> Thread:
    thread = Thread(
        target=reconciler.run_loop,
        args=(stop_event,),
        name="systemd-status-poll",
        daemon=True,
    )
    thread.start()
    return thread
