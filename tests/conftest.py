from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

import pytest

from systemd_status.units import UnitRecord


@pytest.fixture(autouse=True)
def _isolate_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep logs and state under the test's temp directory."""
    home = tmp_path / "home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    excepthook = sys.excepthook
    thread_excepthook = threading.excepthook
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    sys.excepthook = excepthook
    threading.excepthook = thread_excepthook
    logging.captureWarnings(False)


def make_row(name: str, *, active_state: str = "failed") -> tuple:
    return (
        name,
        f"{name} description",
        "loaded",
        active_state,
        "failed",
        "",
        f"/org/freedesktop/systemd1/unit/{name.replace('.', '_2e')}",
        0,
        "",
        "/",
    )


def make_unit(name: str) -> UnitRecord:
    return UnitRecord.from_dbus(make_row(name))
