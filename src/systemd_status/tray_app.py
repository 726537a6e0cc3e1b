from __future__ import annotations

import logging
from threading import Event, Thread

import pystray

from .config import APP_ID, AppConfig
from .icons import IconAssets
from .reconciler import Reconciler, start_reconciler_thread
from .status import StatusStore, classify, format_tooltip, menu_entries
from .systemd_client import connect_system_bus

LOGGER = logging.getLogger(__name__)

EMPTY_MENU_LABEL = "No failed units"


def _noop(_icon: pystray.Icon, _item: pystray.MenuItem) -> None:
    return None


class TrayPresenter:
    """Maps the status store onto the tray icon image, title and menu."""

    def __init__(self, status: StatusStore, assets: IconAssets) -> None:
        self.status = status
        self.assets = assets
        self._shown: tuple[str, tuple[str, ...], str] | None = None

    def current_view(self) -> tuple[str, tuple[str, ...], str]:
        snapshot = self.status.snapshot()
        return (
            classify(snapshot).value,
            tuple(menu_entries(snapshot)),
            format_tooltip(snapshot),
        )

    def menu_items(self) -> list[pystray.MenuItem]:
        _, entries, _ = self.current_view()
        if entries:
            items = [pystray.MenuItem(entry, _noop, enabled=False) for entry in entries]
        else:
            items = [pystray.MenuItem(EMPTY_MENU_LABEL, _noop, enabled=False)]
        items.append(pystray.Menu.SEPARATOR)
        items.append(pystray.MenuItem("Quit", _on_quit))
        return items

    def build_menu(self) -> pystray.Menu:
        return pystray.Menu(self.menu_items)

    def refresh(self, icon: pystray.Icon) -> bool:
        view = self.current_view()
        if view == self._shown:
            return False
        icon_name, entries, title = view
        icon.icon = self.assets.load(icon_name)
        icon.title = title
        icon.update_menu()
        self._shown = view
        LOGGER.debug(
            "Tray updated: %s (%d entries)",
            icon_name,
            len(entries),
            extra={"category": "tray"},
        )
        return True

    def run_refresh_loop(self, icon: pystray.Icon, stop_event: Event, interval: float) -> None:
        while not stop_event.wait(interval):
            try:
                self.refresh(icon)
            except Exception as exc:
                LOGGER.exception(
                    "Tray refresh failed: %s",
                    exc,
                    extra={"category": "tray"},
                )


def _on_quit(icon: pystray.Icon, _item: pystray.MenuItem) -> None:
    LOGGER.info("Quit requested via tray menu", extra={"category": "control"})
    icon.stop()


def _start_refresh_thread(
    presenter: TrayPresenter, icon: pystray.Icon, stop_event: Event, interval: float
) -> Thread:
    thread = Thread(
        target=presenter.run_refresh_loop,
        args=(icon, stop_event, interval),
        name="systemd-status-tray",
        daemon=True,
    )
    thread.start()
    return thread


def run_tray(config: AppConfig) -> None:
    client = connect_system_bus(config.query_timeout_seconds)
    assets = IconAssets.provision()
    try:
        status = StatusStore()
        stop_event = Event()
        presenter = TrayPresenter(status, assets)
        icon_name, _, title = presenter.current_view()
        icon = pystray.Icon(
            APP_ID,
            assets.load(icon_name),
            title,
            menu=presenter.build_menu(),
        )
        reconciler = Reconciler(
            client,
            status,
            poll_interval_seconds=config.poll_interval_seconds,
        )
        poll_thread = start_reconciler_thread(reconciler, stop_event)

        def setup(tray_icon: pystray.Icon) -> None:
            tray_icon.visible = True
            presenter.refresh(tray_icon)
            _start_refresh_thread(
                presenter, tray_icon, stop_event, config.status_refresh_seconds
            )

        try:
            icon.run(setup=setup)
        finally:
            stop_event.set()
            poll_thread.join(timeout=config.query_timeout_seconds + 1)
    finally:
        assets.cleanup()
