"""End-to-end tests decoding responses from a local HTTP server."""
from __future__ import annotations

import gzip
import http.client
import json
import threading
import zlib
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from lazybody import ACCEPT_ENCODING, DecodeSetupError, Failed, Response

PAYLOAD = json.dumps({"items": list(range(100)), "name": "lazybody"}).encode()


class EncodingHandler(BaseHTTPRequestHandler):
    """HTTP handler that serves the same payload under different codings."""

    def log_message(self, format, *args):
        pass  # Suppress logging

    def do_GET(self):
        if self.path == "/gzip":
            self._send(gzip.compress(PAYLOAD), "gzip")
        elif self.path == "/deflate":
            self._send(zlib.compress(PAYLOAD), "deflate")
        elif self.path == "/plain":
            self._send(PAYLOAD, None)
        elif self.path == "/broken":
            self._send(b"definitely not gzip", "gzip")
        elif self.path == "/empty":
            self._send(b"", "gzip", status=204)
        else:
            self._send(b"not found", None, status=404)

    def _send(self, body, encoding, status=200):
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        if encoding:
            self.send_header("Content-Encoding", encoding)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


@pytest.fixture(scope="module")
def http_server():
    """Start a local HTTP server for testing."""
    server = HTTPServer(("127.0.0.1", 0), EncodingHandler)
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield server.server_address
    server.shutdown()


@pytest.fixture
def fetch(http_server):
    """Issue a GET and wrap the http.client response."""
    connections = []

    def do_fetch(path):
        conn = http.client.HTTPConnection(*http_server, timeout=5)
        connections.append(conn)
        conn.request("GET", path, headers={"Accept-Encoding": ACCEPT_ENCODING})
        return Response.from_raw(conn.getresponse())

    yield do_fetch
    for conn in connections:
        conn.close()


class TestHTTPServer:
    """Tests against real http.client responses."""

    @pytest.mark.parametrize("path", ["/gzip", "/deflate", "/plain"])
    def test_decodes_payload(self, fetch, path):
        """Test every served coding decodes to the same payload."""
        resp = fetch(path)
        assert resp.ok
        assert resp.content == PAYLOAD
        assert resp.json()["name"] == "lazybody"

    def test_headers_exposed(self, fetch):
        """Test transport headers are available case-insensitively."""
        resp = fetch("/gzip")
        assert resp.headers["content-encoding"] == "gzip"
        assert resp.headers["Content-Type"] == "application/json"

    def test_save_to_file(self, fetch, tmp_path):
        """Test the saved file holds the decoded payload."""
        resp = fetch("/gzip")
        path = tmp_path / "payload.json"
        resp.save_to_file(path)
        assert path.read_bytes() == resp.content == PAYLOAD

    def test_broken_gzip(self, fetch):
        """Test a body that is not gzip fails to decode."""
        resp = fetch("/broken")
        with pytest.raises(DecodeSetupError):
            resp.content

    def test_empty_body(self, fetch):
        """Test a bodiless response decodes to empty bytes."""
        resp = fetch("/empty")
        assert resp.content == b""

    def test_not_ok_still_readable(self, fetch):
        """Test error statuses keep their body accessible."""
        resp = fetch("/missing")
        assert not resp.ok
        assert resp.text == "not found"

    def test_close_without_reading(self, fetch):
        """Test closing an unread response drains and releases it."""
        with fetch("/gzip") as resp:
            assert resp.status_code == 200
        assert isinstance(resp.state, Failed)
