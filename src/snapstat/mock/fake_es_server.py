"""
Fake Elasticsearch server for testing without a cluster.

    python -m snapstat.mock.fake_es_server
    snapstat --es.uri http://localhost:9200

Serves the three endpoints the exporter reads, backed by a MockCluster.
Individual paths can be made to fail with `server.faults[path] = 500` or
`server.faults[path] = MALFORMED`.
"""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Dict, Optional, Union
from urllib.parse import unquote, urlsplit

from snapstat.mock.generator import MockCluster

MALFORMED = "malformed"


class FakeESServer(HTTPServer):

    def __init__(self, address, cluster: MockCluster):
        super().__init__(address, _ESHandler)
        self.cluster = cluster
        self.faults: Dict[str, Union[int, str]] = {}
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def start(self) -> "FakeESServer":
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()
        return self

    def stop(self):
        self.shutdown()
        self.server_close()


class _ESHandler(BaseHTTPRequestHandler):
    server: FakeESServer

    def do_GET(self):
        path = unquote(urlsplit(self.path).path).rstrip("/")
        fault = self.server.faults.get(path)

        if fault == MALFORMED:
            self._send(200, b'{"snapshots": [')
            return
        if isinstance(fault, int):
            self._send_json(fault, {"error": "injected fault", "status": fault})
            return

        cluster = self.server.cluster
        parts = [p for p in path.split("/") if p]

        if parts == ["_snapshot"]:
            self._send_json(200, cluster.repositories())
        elif len(parts) == 3 and parts[0] == "_snapshot" and parts[2] == "_all":
            try:
                body = cluster.snapshots(parts[1])
            except KeyError:
                self._send_json(404, {"error": f"repository [{parts[1]}] missing", "status": 404})
                return
            self._send_json(200, body)
        elif parts == ["_all", "_settings"]:
            self._send_json(200, cluster.indices_settings())
        else:
            self._send_json(404, {"error": "no handler found", "status": 404})

    def _send_json(self, status: int, payload):
        self._send(status, json.dumps(payload).encode())

    def _send(self, status: int, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=UTF-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def start_fake_server(
    cluster: Optional[MockCluster] = None,
    host: str = "127.0.0.1",
    port: int = 0,
) -> FakeESServer:
    """Start a fake server on a background thread. Port 0 picks a free port."""
    server = FakeESServer((host, port), cluster or MockCluster())
    return server.start()


def run_fake_server(host: str = "127.0.0.1", port: int = 9200):
    server = FakeESServer((host, port), MockCluster())
    print(f"Fake Elasticsearch server running at {server.url}")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
