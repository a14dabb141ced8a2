"""BrowserDispatcher tray app: hosts the local API and a system tray menu."""

import logging
import threading
import time
from typing import Optional

from PIL import Image, ImageDraw
import pystray

from api import create_server, serve_in_thread
from autostart import get_autostart_manager
from constants import APP_NAME, LOGGER_NAME, TRAY_REFRESH_SEC, Status
from errors import DispatcherError
from interfaces import IChooser

logger = logging.getLogger(f"{LOGGER_NAME}.desktop")


def _build_tray_icon() -> Image.Image:
    size = 128
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    draw.ellipse((8, 8, 120, 120), fill=(28, 99, 168, 255))
    draw.ellipse((20, 20, 108, 108), fill=(240, 244, 248, 255))
    # compass needle
    draw.polygon([(64, 26), (76, 64), (64, 102), (52, 64)], fill=(40, 40, 44, 255))
    draw.polygon([(64, 26), (76, 64), (52, 64)], fill=(214, 69, 65, 255))
    draw.ellipse((58, 58, 70, 70), fill=(240, 244, 248, 255))
    return img


class TrayChooser(IChooser):
    """Announces unmatched links; the tray menu offers the applications to open them with."""

    def __init__(self):
        self.icon: Optional[pystray.Icon] = None

    def choose(self, target: str, reason: Optional[str] = None) -> None:
        if self.icon is None:
            return
        try:
            self.icon.update_menu()
            self.icon.notify(f"Choose an application for {target}", APP_NAME)
        except Exception as exc:
            logger.warning("Tray notification failed: %s", exc)


class TrayApp:
    def __init__(self, dispatcher, chooser: TrayChooser):
        self.dispatcher = dispatcher
        self.chooser = chooser
        self.autostart = get_autostart_manager()
        self.icon: Optional[pystray.Icon] = None
        self._stop = threading.Event()

    @property
    def store(self):
        return self.dispatcher.store

    def status_title(self) -> str:
        if self.store.preference_status(Status.IS_APP_ENABLED.value):
            return f"{APP_NAME} - Enabled"
        return f"{APP_NAME} - Disabled"

    def _refresh(self) -> None:
        if self.icon:
            self.icon.title = self.status_title()
            self.icon.update_menu()

    def _toggle_pref(self, name: str):
        def action(_icon, _item):
            pref = self.store.toggle_preference(name)
            logger.info("Tray action: %s %s", "enable" if pref.status else "disable", name)
            self._refresh()
        return action

    def _pref_checked(self, name: str):
        return lambda _item: self.store.preference_status(name)

    def _set_default(self, app_id: str):
        def action(_icon, _item):
            self.store.set_default_application(app_id)
            self._refresh()
        return action

    def _is_default(self, app_id: str):
        def checked(_item):
            default = self.store.get_default_application()
            return default is not None and default.id == app_id
        return checked

    def _open_pending(self, app_id: str):
        def action(_icon, _item):
            target = self.dispatcher.context.pending_target
            if not target:
                return
            try:
                self.dispatcher.open_with(target, app_id)
            except DispatcherError as exc:
                logger.error("Tray action: failed to open %s: %s", target, exc)
            self._refresh()
        return action

    def _default_items(self):
        for application in self.store.list_applications():
            yield pystray.MenuItem(
                application.display_name,
                self._set_default(application.id),
                checked=self._is_default(application.id),
                radio=True,
            )

    def _pending_items(self):
        for application in self.store.list_applications():
            if application.is_active:
                yield pystray.MenuItem(application.display_name, self._open_pending(application.id))

    def _toggle_autostart(self, _icon, _item):
        action = "uninstall" if self.autostart.is_installed() else "install"
        logger.info("Tray action: %s autostart", action)
        self.autostart.manage_autostart(action)
        self._refresh()

    def _quit(self, _icon, _item):
        logger.info("Tray action: quit app")
        self._stop.set()
        if self.icon:
            self.icon.stop()

    def build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem(
                "Enabled",
                self._toggle_pref(Status.IS_APP_ENABLED.value),
                checked=self._pref_checked(Status.IS_APP_ENABLED.value),
            ),
            pystray.MenuItem(
                "Use default browser",
                self._toggle_pref(Status.IS_USE_DEFAULT.value),
                checked=self._pref_checked(Status.IS_USE_DEFAULT.value),
            ),
            pystray.MenuItem("Default browser", pystray.Menu(self._default_items)),
            pystray.MenuItem(
                "Open pending link with",
                pystray.Menu(self._pending_items),
                enabled=lambda _item: self.dispatcher.context.pending_target is not None,
            ),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "Open at login",
                self._toggle_autostart,
                checked=lambda _item: self.autostart.is_installed(),
            ),
            pystray.MenuItem("Quit", self._quit),
        )

    def run(self) -> None:
        self.icon = pystray.Icon(APP_NAME, _build_tray_icon(), self.status_title(), self.build_menu())
        self.chooser.icon = self.icon

        def refresh_status():
            while not self._stop.is_set():
                try:
                    self.icon.title = self.status_title()
                    self.dispatcher.context.launcher.running()
                except Exception as exc:
                    logger.debug("Tray refresh failed: %s", exc)
                time.sleep(TRAY_REFRESH_SEC)

        threading.Thread(target=refresh_status, daemon=True).start()
        self.icon.run()


def run_desktop(config, dispatcher, chooser: Optional[TrayChooser] = None) -> None:
    server = create_server(dispatcher, config.host, config.port)
    serve_in_thread(server)
    logger.info("API server running at %s", config.ui_url)
    try:
        if config.tray and chooser is not None:
            TrayApp(dispatcher, chooser).run()
        else:
            threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down")
        server.shutdown()
        server.server_close()
