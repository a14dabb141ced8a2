"""Command line entry point for BrowserDispatcher."""

import argparse
import logging
import os
import sys
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from apps import autoload_applications
from autostart import get_autostart_manager
from config import ConfigLoader
from constants import APP_NAME, FORWARD_TIMEOUT, LOGGER_NAME, __version__
from dispatcher import AppContext, Dispatcher
from errors import DispatcherError
from json_utils import JSONDecodeError, json_dump_bytes, json_dumps, json_loads
from launcher import Launcher
from logger import setup_logging
from operands import operands_table
from store import JsonDocumentStore

logger = logging.getLogger(f"{LOGGER_NAME}.app")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME.lower(), description="Open links with the right browser")
    parser.add_argument("target", nargs="?", help="URL or file to open")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", help="Directory holding config, databases and logs")
    parser.add_argument("--host", help="Local API host")
    parser.add_argument("--port", type=int, help="Local API port")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Log level")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not log to stderr")
    parser.add_argument("--no-tray", action="store_true", help="Serve the API without a tray icon")
    parser.add_argument(
        "--include-inactive-conditions", action="store_true", help="Evaluate conditions marked inactive"
    )
    parser.add_argument(
        "--strict-literals", action="store_true", help="Match starts/ends-with literals as plain text"
    )
    cmd_group = parser.add_mutually_exclusive_group()
    cmd_group.add_argument("--test", metavar="URL", help="Print the rule that would handle URL")
    cmd_group.add_argument("--operands", action="store_true", help="Print operands and their operators")
    cmd_group.add_argument("--scan-apps", action="store_true", help="Import installed browsers")
    cmd_group.add_argument("--reset-all", action="store_true", help="Remove all stored data")
    cmd_group.add_argument("--install", action="store_true", help="Open at login")
    cmd_group.add_argument("--uninstall", action="store_true", help="Do not open at login")
    return parser


def build_context(config, chooser=None) -> AppContext:
    store = JsonDocumentStore(config.data_dir)
    store.init_preferences()
    return AppContext(store, Launcher(), config.evaluation_options(), chooser)


def forward_to_instance(config, target: str) -> Optional[dict]:
    """Hand ``target`` to an already running instance; None when there is none.

    An instance that answers with an error status has still been reached, so
    the answer is returned with an ``error`` key instead of None.
    """
    req = Request(
        f"{config.ui_url}/api/open-url",
        data=json_dump_bytes({"url": target}),
        headers={"Content-Type": "application/json"},
    )
    try:
        with urlopen(req, timeout=FORWARD_TIMEOUT) as resp:
            body = resp.read()
    except HTTPError as exc:
        exc.close()
        logger.error("Instance at %s refused %s: HTTP %s", config.ui_url, target, exc.code)
        return {"action": None, "error": f"HTTP {exc.code}"}
    except (URLError, OSError) as exc:
        logger.debug("No running instance at %s: %s", config.ui_url, exc)
        return None
    try:
        return json_loads(body)
    except JSONDecodeError as exc:
        logger.error("Unreadable answer from %s: %s", config.ui_url, exc)
        return {"action": None, "error": str(exc)}


def run(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = ConfigLoader.load_from_args(args)
    setup_logging(config.log_file, config.log_level, config.quiet)

    if args.install or args.uninstall:
        action = "install" if args.install else "uninstall"
        return 0 if get_autostart_manager().manage_autostart(action) else 1

    if args.operands:
        print(json_dumps(operands_table()))
        return 0

    if args.reset_all:
        JsonDocumentStore(config.data_dir).reset_all()
        return 0

    context = build_context(config)

    if args.scan_apps:
        for application in autoload_applications(context.store, config.apps_root):
            print(application.name)
        return 0

    if args.test:
        try:
            rule = Dispatcher(context).test_url(args.test)
        except DispatcherError as exc:
            print(f"[ERROR]: {exc}", file=sys.stderr)
            return 1
        print(json_dumps({"url": args.test, "rule": rule.to_dict() if rule else None}))
        return 0

    if args.target:
        target = args.target
        if os.path.exists(target):
            target = os.path.abspath(target)
        result = forward_to_instance(config, target)
        if result is None:
            result = Dispatcher(context).dispatch(target).to_dict()
        if result.get("error"):
            return 1
        logger.info("Dispatched %s: %s", target, result.get("action"))
        return 0

    # imported here so one-shot commands work without a desktop session
    from desktop_app import TrayChooser, run_desktop

    chooser = TrayChooser() if config.tray else None
    context.chooser = chooser
    autoload_applications(context.store, config.apps_root)
    logger.info("%s %s started", APP_NAME, __version__)
    run_desktop(config, Dispatcher(context), chooser)
    return 0


def main() -> None:
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
