"""Shared fixtures: a recording transport and a local fake control-plane."""
from __future__ import annotations

import json
import threading
import urllib.parse
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable

import pytest

from aumos_data_residency.client.transport import HttpResponse, HttpTransport

# ---------------------------------------------------------------------------
# Recording transport
# ---------------------------------------------------------------------------


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: dict[str, str]
    data: bytes | None

    @property
    def json(self) -> object:
        return json.loads(self.data) if self.data else None


class RecordingTransport(HttpTransport):
    """Transport that answers from a handler function and records every call."""

    def __init__(self, handler: Callable[[RecordedCall], HttpResponse | Exception]) -> None:
        super().__init__(allow_insecure_urls=True)
        self._handler = handler
        self.calls: list[RecordedCall] = []

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
    ) -> HttpResponse:
        call = RecordedCall(method=method, url=url, headers=dict(headers or {}), data=data)
        self.calls.append(call)
        result = self._handler(call)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, fragment: str) -> list[RecordedCall]:
        return [c for c in self.calls if fragment in c.url]


def json_response(status: int, payload: object) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps(payload).encode("utf-8"))


@pytest.fixture()
def recording_transport() -> Callable[..., RecordingTransport]:
    return RecordingTransport


@pytest.fixture()
def json_reply() -> Callable[[int, object], HttpResponse]:
    return json_response


# ---------------------------------------------------------------------------
# Fake control-plane
# ---------------------------------------------------------------------------


@dataclass
class ControlPlaneState:
    api_key: str = "abc123"
    page_size: int = 2
    reject_resource_calls: int = 0
    identify_status: int | None = None
    issued_tokens: list[str] = field(default_factory=list)
    identify_calls: int = 0
    resource_calls: list[tuple[str, str]] = field(default_factory=list)
    restrictions: dict[tuple[str, str], dict[str, object]] = field(default_factory=dict)


class _ControlPlaneHandler(BaseHTTPRequestHandler):
    state: ControlPlaneState

    def do_GET(self) -> None:  # noqa: N802
        self._route("GET")

    def do_POST(self) -> None:  # noqa: N802
        self._route("POST")

    def do_PUT(self) -> None:  # noqa: N802
        self._route("PUT")

    def do_DELETE(self) -> None:  # noqa: N802
        self._route("DELETE")

    def _route(self, method: str) -> None:
        split = urllib.parse.urlsplit(self.path)
        parts = [p for p in split.path.split("/") if p]
        query = dict(urllib.parse.parse_qsl(split.query))
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""

        if method == "POST" and parts == ["v1", "token"]:
            self._identify()
            return

        self.state.resource_calls.append((method, self.path))
        auth = self.headers.get("Authorization", "")
        token = auth.removeprefix("Bearer ")
        if self.state.reject_resource_calls > 0:
            self.state.reject_resource_calls -= 1
            self._send(401, {"status": 401, "title": "Unauthorized"})
            return
        if token not in self.state.issued_tokens:
            self._send(401, {"status": 401, "title": "Unauthorized"})
            return

        if parts[:2] != ["v1", "restrict"]:
            self._send(404, {"status": 404, "title": "Not Found"})
        elif len(parts) == 4:
            self._single(method, parts[2], parts[3], body)
        elif len(parts) == 3 and method == "GET":
            self._page(parts[2], query)
        elif len(parts) == 2 and method == "GET":
            self._page(None, query)
        else:
            self._send(405, {"status": 405, "title": "Method Not Allowed"})

    def _identify(self) -> None:
        self.state.identify_calls += 1
        if self.state.identify_status is not None:
            self._send(self.state.identify_status, {"status": self.state.identify_status})
            return
        if self.headers.get("Authorization") != f"Bearer {self.state.api_key}":
            self._send(401, {"status": 401, "title": "Unauthorized"})
            return
        token = f"tok-{len(self.state.issued_tokens) + 1}"
        self.state.issued_tokens.append(token)
        self._send(201, {"token": token, "tenant": "tnt-abcdef", "subdomain": "pequod"})

    def _single(self, method: str, api: str, directory: str, body: bytes) -> None:
        key = (api, directory)
        if method == "PUT":
            self.state.restrictions[key] = json.loads(body)
            self._send(201, None)
        elif key not in self.state.restrictions:
            self._send(404, {"status": 404, "title": "Not Found", "detail": "no such restriction"})
        elif method == "GET":
            self._send(200, self._restriction(key))
        elif method == "DELETE":
            del self.state.restrictions[key]
            self._send(200, None)
        else:
            self._send(405, {"status": 405, "title": "Method Not Allowed"})

    def _page(self, api: str | None, query: dict[str, str]) -> None:
        keys = sorted(k for k in self.state.restrictions if api is None or k[0] == api)
        start = (query.get("from_api", api or ""), query.get("from", ""))
        if api is not None:
            keys = [k for k in keys if k[1] >= start[1]]
        else:
            keys = [k for k in keys if k >= start]
        page, rest = keys[: self.state.page_size], keys[self.state.page_size :]
        payload: dict[str, object] = {
            "restrictions": [self._restriction(k) for k in page],
            "next_key": rest[0][1] if rest else None,
        }
        if api is None:
            payload["next_api"] = rest[0][0] if rest else None
        self._send(200, payload)

    def _restriction(self, key: tuple[str, str]) -> dict[str, object]:
        return {
            "api": key[0],
            "directory": key[1],
            "details": self.state.restrictions[key],
            "state": "enforced",
        }

    def _send(self, status: int, payload: object) -> None:
        body = b"" if payload is None else json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, fmt: str, *args: object) -> None:  # type: ignore[override]
        pass


class FakeControlPlane:
    """Identity and restriction endpoints served from one local HTTPServer."""

    def __init__(self) -> None:
        self.state = ControlPlaneState()
        state = self.state

        class _Handler(_ControlPlaneHandler):
            pass

        _Handler.state = state  # type: ignore[attr-defined]
        self._server = HTTPServer(("127.0.0.1", 0), _Handler)
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            daemon=True,
            name="fake-control-plane",
        )

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}/"


@pytest.fixture()
def control_plane():
    server = FakeControlPlane()
    server.start()
    yield server
    server.stop()


@pytest.fixture()
def config_file(tmp_path, control_plane):
    path = tmp_path / "residency.yaml"
    path.write_text(
        "account:\n"
        f"  api_key: {control_plane.state.api_key}\n"
        "api:\n"
        f"  identity_url: {control_plane.url}\n"
        f"  restrict_url: {control_plane.url}\n"
        "danger_zone:\n"
        "  allow_insecure_urls: true\n",
        encoding="utf-8",
    )
    return path
