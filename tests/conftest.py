"""Shared test fixtures for icnload.

Provides an isolated config environment, a quiet global output manager,
and :class:`FakeNavigator`, an :class:`httpx.MockTransport` handler that
plays the three admin API endpoints and records every request it sees.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from icnload.models import Credentials
from icnload.output import OutputManager, reset_output, set_output
from icnload.protocol import LOAD_PLUGIN_PATH, LOGON_PATH, SAVE_CONFIGURATION_PATH


BASE_URL = "http://icn.example.com/navigator/"

LOGON_OK = {"security_token": "567465876"}
RELOAD_OK = {
    "name": "plugin-name",
    "id": "plugin-id",
    "version": "plugin-version",
    "configClass": "plugin-config-class",
}
SAVE_OK = {"messages": [{"text": "This means success"}]}


# ---------------------------------------------------------------------------
# Output / config isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _quiet_output() -> None:
    """Install a quiet, colourless OutputManager and reset it afterwards.

    The manager caches sys.stdout/sys.stderr at creation time; resetting
    keeps a manager bound to a CliRunner stream from leaking into the
    next test.
    """
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear ICNLOAD_* variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("icnload.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "ICNLOAD_PROFILE",
        "ICNLOAD_URL",
        "ICNLOAD_USERNAME",
        "ICNLOAD_PASSWORD",
        "ICNLOAD_FILE",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Fake Content Navigator server
# ---------------------------------------------------------------------------


class FakeNavigator:
    """Route requests by endpoint path to canned responses.

    Bodies are sent with the ``{}&&`` guard prefix by default, the way a
    Navigator server with JSON prefixing enabled answers. The logon
    response also sets a ``JSESSIONID`` cookie.
    """

    LOGON_OK = LOGON_OK
    RELOAD_OK = RELOAD_OK
    SAVE_OK = SAVE_OK

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, dict[str, Any]] = {}
        self.respond(LOGON_PATH, LOGON_OK, headers={"set-cookie": "JSESSIONID=abc123; Path=/"})
        self.respond(LOAD_PLUGIN_PATH, RELOAD_OK)
        self.respond(SAVE_CONFIGURATION_PATH, SAVE_OK)

    def respond(
        self,
        path: str,
        data: Any = None,
        status: int = 200,
        text: Optional[str] = None,
        guard: bool = True,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        """Set the response for *path*; *text* wins over JSON *data*."""
        if text is None:
            text = json.dumps(data)
            if guard:
                text = "{}&&" + text
        self._routes[path] = {"status": status, "text": text, "headers": headers or {}}

    def raise_on(self, path: str, exc: Exception) -> None:
        self._routes[path] = {"raise": exc}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for path, route in self._routes.items():
            if request.url.path.endswith("/" + path):
                if "raise" in route:
                    raise route["raise"]
                return httpx.Response(
                    route["status"],
                    text=route["text"],
                    headers=route["headers"],
                )
        return httpx.Response(404, text="not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + path)]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        """Decode a form-encoded request body."""
        return dict(parse_qsl(request.content.decode("utf-8"), keep_blank_values=True))


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        server_url=BASE_URL,
        username="someadmin",
        password="somepwd",
        plugin_file="/some/path",
    )
