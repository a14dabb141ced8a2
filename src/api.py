"""Local HTTP JSON API used by the UI and by forwarding CLI invocations."""

import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import List
from urllib.parse import parse_qs, unquote, urlparse

from constants import APP_NAME, LOGGER_NAME, __version__
from errors import (
    InvalidPattern,
    LaunchError,
    RecordNotFound,
    UnknownOperand,
    UnknownOperator,
    ValidationError,
)
from json_utils import JSONDecodeError, json_dump_bytes, json_loads
from models import Application, Rule
from operands import operands_table
from operators import operator_ids

logger = logging.getLogger(f"{LOGGER_NAME}.api")

_EVALUATION_ERRORS = (InvalidPattern, UnknownOperand, UnknownOperator)


def is_local_request(handler) -> bool:
    try:
        addr = handler.client_address[0]
        return addr in {"127.0.0.1", "::1"}
    except (AttributeError, IndexError, TypeError):
        return False


class UIHandler(BaseHTTPRequestHandler):
    server_version = f"{APP_NAME}/{__version__}"

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    @property
    def dispatcher(self):
        return self.server.dispatcher

    @property
    def store(self):
        return self.server.dispatcher.store

    def _send_json(self, payload, status: int = 200):
        body = json_dump_bytes(payload)
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_text(self, text: str, status: int = 200):
        data = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _read_json(self) -> dict:
        length = int(self.headers.get("Content-Length", "0") or 0)
        if length <= 0:
            return {}
        data = self.rfile.read(length)
        try:
            payload = json_loads(data)
        except JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def do_GET(self):
        self._dispatch_api(self._handle_api_get)

    def do_POST(self):
        self._dispatch_api(self._handle_api_post)

    def do_DELETE(self):
        self._dispatch_api(self._handle_api_delete)

    def _dispatch_api(self, handler):
        parsed = urlparse(self.path)
        parts = [unquote(p) for p in parsed.path.split("/") if p]
        if not parts or parts[0] != "api":
            self._send_text("Not found", status=404)
            return
        try:
            if not handler(parts[1:], parse_qs(parsed.query)):
                self._send_text("Not found", status=404)
        except ValidationError as exc:
            self._send_json({"error": str(exc)}, status=400)
        except RecordNotFound as exc:
            self._send_json({"error": str(exc)}, status=404)
        except _EVALUATION_ERRORS as exc:
            self._send_json({"error": str(exc)}, status=422)
        except LaunchError as exc:
            logger.error("[api] %s", exc)
            self._send_json({"error": str(exc)}, status=502)

    def _handle_api_get(self, parts: List[str], query: dict) -> bool:
        if parts in ([], ["status"]):
            self._send_json({
                "name": APP_NAME,
                "version": __version__,
                "pending": self.dispatcher.context.pending_target,
            })
            return True
        if parts == ["operands"]:
            self._send_json(operands_table())
            return True
        if parts == ["operators"]:
            self._send_json(operator_ids())
            return True
        if parts == ["applications"]:
            self._send_json([a.to_dict() for a in self.store.list_applications()])
            return True
        if parts == ["default-application"]:
            application = self.store.get_default_application()
            self._send_json(application.to_dict() if application else None)
            return True
        if len(parts) == 2 and parts[0] == "applications":
            self._send_json(self.store.get_application(parts[1]).to_dict())
            return True
        if parts == ["rules"]:
            active_only = query.get("active", ["0"])[0] in ("1", "true")
            self._send_json([r.to_dict() for r in self.store.list_rules(active_only=active_only)])
            return True
        if len(parts) == 2 and parts[0] == "rules":
            self._send_json(self.store.get_rule(parts[1]).to_dict())
            return True
        if parts == ["prefs"]:
            self._send_json([p.to_dict() for p in self.store.list_preferences()])
            return True
        if len(parts) == 2 and parts[0] == "prefs":
            self._send_json(self.store.get_preference(parts[1]).to_dict())
            return True
        if parts == ["pending"]:
            self._send_json({"target": self.dispatcher.context.pending_target})
            return True
        return False

    def _handle_api_post(self, parts: List[str], query: dict) -> bool:
        payload = self._read_json()

        if parts == ["applications"]:
            application = self.store.create_application(Application.from_dict(payload))
            self._send_json(application.to_dict())
            return True
        if len(parts) == 2 and parts[0] == "applications":
            self._send_json(self.store.update_application(parts[1], payload).to_dict())
            return True
        if len(parts) == 3 and parts[0] == "applications" and parts[2] == "default":
            self._send_json(self.store.set_default_application(parts[1]).to_dict())
            return True

        if parts == ["rules"]:
            self._send_json(self.store.create_rule(Rule.from_dict(payload)).to_dict())
            return True
        if len(parts) == 2 and parts[0] == "rules":
            self._send_json(self.store.update_rule(parts[1], payload).to_dict())
            return True

        if len(parts) == 2 and parts[0] == "prefs":
            status = payload.get("status")
            if not isinstance(status, bool):
                raise ValidationError("'status' must be a boolean")
            pref = self.store.set_preference(parts[1], status)
            logger.info("%s %s", "Enabled" if pref.status else "Disabled", pref.name)
            self._send_json(pref.to_dict())
            return True
        if len(parts) == 3 and parts[0] == "prefs" and parts[2] == "toggle":
            self._send_json(self.store.toggle_preference(parts[1]).to_dict())
            return True

        if parts == ["test-url"]:
            url = payload.get("url")
            if not isinstance(url, str):
                raise ValidationError("'url' is required")
            rules = payload.get("rules")
            if rules is not None and not isinstance(rules, list):
                raise ValidationError("'rules' must be a list")
            rule = self.dispatcher.test_url(url, rules)
            self._send_json({"url": url, "rule": rule.to_dict() if rule else None})
            return True

        if parts in (["open-url"], ["open-file"], ["reset"]) and not is_local_request(self):
            self._send_text("Forbidden", status=403)
            return True
        if parts == ["open-url"]:
            url = payload.get("url")
            if not isinstance(url, str) or not url:
                raise ValidationError("'url' is required")
            application_id = payload.get("application_id")
            if application_id:
                result = self.dispatcher.open_with(url, application_id)
            else:
                result = self.dispatcher.dispatch(url)
            self._send_json(result.to_dict())
            return True
        if parts == ["open-file"]:
            path = payload.get("path")
            if not isinstance(path, str) or not path:
                raise ValidationError("'path' is required")
            self._send_json(self.dispatcher.open_file(path).to_dict())
            return True
        if parts == ["reset"]:
            self.store.reset_all()
            self.store.init_preferences()
            self._send_json({"ok": True})
            return True
        return False

    def _handle_api_delete(self, parts: List[str], query: dict) -> bool:
        if len(parts) == 2 and parts[0] == "applications":
            removed = self.store.delete_application(parts[1])
            self._send_json({"ok": True, "rules_removed": removed})
            return True
        if parts == ["rules"]:
            self._send_json({"ok": True, "removed": self.store.clear_rules()})
            return True
        if len(parts) == 2 and parts[0] == "rules":
            self.store.delete_rule(parts[1])
            self._send_json({"ok": True})
            return True
        return False


class DispatcherHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, dispatcher):
        super().__init__(address, UIHandler)
        self.dispatcher = dispatcher


def create_server(dispatcher, host: str, port: int) -> DispatcherHTTPServer:
    return DispatcherHTTPServer((host, port), dispatcher)


def serve_in_thread(server: ThreadingHTTPServer) -> threading.Thread:
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread
