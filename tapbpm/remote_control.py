import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

from .tap_timer import TapState

logger = logging.getLogger(__name__)

HTTP_PORT = 45834


class ControlState:
    """Last known timer state, readable from the HTTP threads."""

    def __init__(self, name: str = "Tap BPM", http_port: int = HTTP_PORT):
        self._lock = threading.Lock()
        self._name = str(name)
        self._bpm = None
        self._active = False
        self._taps = 0
        self._http_port = int(http_port)

    def update(self, state: TapState):
        with self._lock:
            self._bpm = state.bpm
            self._active = bool(state.active)
            self._taps = len(state.taps)

    def set_http_port(self, port: int):
        with self._lock:
            self._http_port = int(port)

    def snapshot(self):
        with self._lock:
            return {
                "name": self._name,
                "bpm": self._bpm,
                "active": self._active,
                "taps": self._taps,
                "http_port": self._http_port,
            }


class _ControlHandler(BaseHTTPRequestHandler):
    server_version = "TapBpmControl/1.0"

    def log_message(self, fmt, *args):
        logger.debug("%s - %s", self.address_string(), fmt % args)

    def _send_json(self, code: int, payload):
        data = json.dumps(payload).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _drain_body(self):
        length = int(self.headers.get("Content-Length", "0") or 0)
        if length > 0:
            self.rfile.read(length)

    def do_GET(self):
        path = urlparse(self.path).path
        if path == "/status":
            return self._send_json(200, self.server.control_state.snapshot())
        self._send_json(404, {"error": "Not found"})

    def do_POST(self):
        self._drain_body()
        path = urlparse(self.path).path
        if path == "/tap":
            callback = self.server.on_tap
        elif path == "/reset":
            callback = self.server.on_reset
        else:
            return self._send_json(404, {"error": "Not found"})
        if callback:
            callback()
        return self._send_json(200, self.server.control_state.snapshot())


class _ControlHttpServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, server_address, control_state, on_tap=None, on_reset=None):
        super().__init__(server_address, _ControlHandler)
        self.control_state = control_state
        self.on_tap = on_tap
        self.on_reset = on_reset


class ControlServer:
    """HTTP remote: POST /tap, POST /reset, GET /status."""

    def __init__(self, control_state: ControlState, on_tap=None, on_reset=None):
        self._control_state = control_state
        self._on_tap = on_tap
        self._on_reset = on_reset
        self._http_server = None
        self._http_thread = None

    @property
    def port(self):
        if self._http_server is None:
            return None
        return self._http_server.server_address[1]

    def start(self, host="127.0.0.1", http_port=HTTP_PORT):
        if self._http_thread and self._http_thread.is_alive():
            return
        self._http_server = _ControlHttpServer(
            (host, http_port),
            self._control_state,
            on_tap=self._on_tap,
            on_reset=self._on_reset,
        )
        self._control_state.set_http_port(self.port)
        self._http_thread = threading.Thread(target=self._http_server.serve_forever, daemon=True)
        self._http_thread.start()
        logger.info("Remote control listening on %s:%d", host, self.port)

    def stop(self):
        if self._http_server:
            self._http_server.shutdown()
            self._http_server.server_close()
            logger.info("Remote control stopped")
        if self._http_thread and self._http_thread.is_alive():
            self._http_thread.join(timeout=1.0)
        self._http_server = None
        self._http_thread = None
