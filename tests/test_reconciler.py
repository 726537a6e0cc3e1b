from __future__ import annotations

import logging

from systemd_status.errors import TransportError
from systemd_status.reconciler import Reconciler, start_reconciler_thread
from systemd_status.status import IndicatorSignal, StatusStore, current_icon_name, current_menu_entries

from conftest import make_unit


class ScriptedClient:
    """Returns (or raises) the queued results in order."""

    def __init__(self, *results) -> None:
        self._results = list(results)
        self.calls = 0

    def query_failed_units(self):
        self.calls += 1
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return list(result)


class DummyEvent:
    """Stop event that records waits and stops after ``max_waits``."""

    def __init__(self, max_waits: int = 1) -> None:
        self._set = False
        self.wait_calls: list[float | None] = []
        self._max_waits = max_waits

    def set(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set

    def wait(self, timeout: float | None = None) -> bool:
        self.wait_calls.append(timeout)
        if len(self.wait_calls) >= self._max_waits:
            self._set = True
        return self._set


def test_first_tick_empty_result_is_ok() -> None:
    status = StatusStore()
    reconciler = Reconciler(ScriptedClient([]), status)

    assert reconciler.tick() is IndicatorSignal.OK
    assert current_icon_name(status) == "ok"


def test_first_tick_with_failed_unit_is_err() -> None:
    status = StatusStore()
    reconciler = Reconciler(ScriptedClient([make_unit("foo.service")]), status)

    assert reconciler.tick() is IndicatorSignal.ERR
    assert current_menu_entries(status) == ["foo.service"]


def test_transport_error_marks_stale_and_keeps_units(caplog) -> None:
    status = StatusStore()
    client = ScriptedClient(
        [make_unit("foo.service")],
        TransportError("ListUnitsFiltered failed: timed out"),
    )
    reconciler = Reconciler(client, status)
    reconciler.tick()

    with caplog.at_level(logging.WARNING):
        signal = reconciler.tick()

    assert signal is IndicatorSignal.STALE
    assert current_icon_name(status) == "stale"
    assert current_menu_entries(status) == ["foo.service"]
    assert "Failed to list units" in caplog.text


def test_unexpected_error_is_also_swallowed() -> None:
    status = StatusStore()
    reconciler = Reconciler(ScriptedClient(KeyError("boom")), status)

    assert reconciler.tick() is IndicatorSignal.STALE
    assert status.snapshot().last_error


def test_recovery_after_failure() -> None:
    status = StatusStore()
    reconciler = Reconciler(
        ScriptedClient([make_unit("foo.service")], TransportError("down"), []),
        status,
    )

    signals = [reconciler.tick() for _ in range(3)]

    assert signals == [IndicatorSignal.ERR, IndicatorSignal.STALE, IndicatorSignal.OK]
    assert current_menu_entries(status) == []


def test_identical_polls_are_idempotent() -> None:
    units = [make_unit("a.service"), make_unit("b.service")]
    status = StatusStore()
    reconciler = Reconciler(ScriptedClient(units, units), status)

    reconciler.tick()
    first = (current_icon_name(status), current_menu_entries(status))
    reconciler.tick()
    second = (current_icon_name(status), current_menu_entries(status))

    assert first == second == ("err", ["a.service", "b.service"])


def test_menu_entries_follow_input_order() -> None:
    names = [f"unit-{idx}.service" for idx in (3, 1, 2, 0)]
    status = StatusStore()
    reconciler = Reconciler(ScriptedClient([make_unit(name) for name in names]), status)

    reconciler.tick()

    assert current_menu_entries(status) == names


def test_signal_change_is_logged(caplog) -> None:
    reconciler = Reconciler(ScriptedClient([]), StatusStore())

    with caplog.at_level(logging.INFO, logger="systemd_status.reconciler"):
        reconciler.tick()

    assert "Indicator stale -> ok" in caplog.text


def test_run_loop_ticks_before_first_wait() -> None:
    status = StatusStore()
    client = ScriptedClient([], [make_unit("foo.service")])
    reconciler = Reconciler(client, status, poll_interval_seconds=60)
    stop_event = DummyEvent(max_waits=2)

    reconciler.run_loop(stop_event)

    assert client.calls == 2
    assert stop_event.wait_calls == [60, 60]
    assert current_icon_name(status) == "err"


def test_run_loop_survives_repeated_failures() -> None:
    status = StatusStore()
    client = ScriptedClient(TransportError("a"), TransportError("b"), TransportError("c"))
    reconciler = Reconciler(client, status, poll_interval_seconds=5)

    reconciler.run_loop(DummyEvent(max_waits=3))

    assert client.calls == 3
    assert status.snapshot().consecutive_failures == 3


def test_start_reconciler_thread_runs_daemon() -> None:
    from threading import Event

    status = StatusStore()
    client = ScriptedClient([])
    stop_event = Event()
    reconciler = Reconciler(client, status, poll_interval_seconds=60)

    thread = start_reconciler_thread(reconciler, stop_event)
    try:
        for _ in range(200):
            if client.calls:
                break
            stop_event.wait(0.01)
    finally:
        stop_event.set()
        thread.join(timeout=2)

    assert thread.daemon is True
    assert not thread.is_alive()
    assert current_icon_name(status) == "ok"
