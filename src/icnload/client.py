"""Cookie-bearing HTTP client for the Content Navigator admin API.

:class:`AdminClient` wraps one :class:`httpx.Client` for the lifetime of a
single workflow run. The logon call sets session cookies in the client's
jar; later calls on the same instance send them back, together with the
``security_token`` header. A new run must use a new ``AdminClient``.

The client does not retry. Transport failures become
:class:`~icnload.exceptions.TransportError`; callers that need a 200 use
:meth:`AdminClient.require_ok`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from icnload.exceptions import ProtocolError, TransportError
from icnload.models import RequestConfig
from icnload.output import get_output
from icnload.protocol import SECURITY_TOKEN


class AdminClient:
    """Synchronous client for form-encoded POSTs against one Navigator server.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed with the run.

    Args:
        base_url: Navigator base URL, ending with ``/``. Endpoint paths
            are appended to it.
        request: Timeout and TLS settings.
        transport: Optional :class:`httpx.BaseTransport`, used by tests to
            plug in an :class:`httpx.MockTransport`.

    Example::

        with AdminClient("https://icn.example.com/navigator/") as client:
            response = client.post_form("jaxrs/logon", {"userid": "admin"})
    """

    def __init__(
        self,
        base_url: str,
        request: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._request = request or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> AdminClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._request.timeout,
            verify=self._request.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def cookies(self) -> httpx.Cookies:
        """The session cookie jar shared by every call of this client."""
        assert self._client is not None, "Client not initialised -- use as context manager"
        return self._client.cookies

    def url_for(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def post_form(
        self,
        path: str,
        data: dict[str, str],
        token: Optional[str] = None,
    ) -> httpx.Response:
        """POST *data* form-encoded to *path*.

        Args:
            path: Endpoint path relative to the base URL.
            data: Form fields.
            token: Security token from logon, sent as the
                ``security_token`` header when given.

        Returns:
            The :class:`httpx.Response`, whatever its status.

        Raises:
            TransportError: On any network, timeout or TLS failure.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers: dict[str, str] = {"Accept": "application/json"}
        if token is not None:
            headers[SECURITY_TOKEN] = token

        output = get_output()
        output.debug(f"POST {self.url_for(path)}")
        try:
            response = self._client.post(path, data=data, headers=headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {path} failed: {exc}") from exc
        output.debug(f"{path} returned {status_line(response)}")
        return response

    @staticmethod
    def require_ok(response: httpx.Response, path: str) -> None:
        """Raise :class:`~icnload.exceptions.ProtocolError` unless *response* is 200."""
        if response.status_code != 200:
            line = status_line(response)
            raise ProtocolError(
                f"{path} returned {line}",
                status_code=response.status_code,
                status_line=line,
            )


def status_line(response: httpx.Response) -> str:
    """Return ``HTTP <code> <reason>`` for *response*."""
    return f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip()
