"""HTTP transport with JSON decoding and session-cookie management."""

from __future__ import annotations

import json as _json
import logging
from collections.abc import Mapping
from http.cookies import CookieError, SimpleCookie
from typing import Any, Protocol

import aiohttp

from inventrack._redact import describe_upload, redact_for_log
from inventrack.config import InventrackConfig
from inventrack.exceptions import InventrackConfigError, InventrackError, InventrackTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the gateway modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        form: aiohttp.FormData | None = None,
        credentials: bool = True,
    ) -> Any:
        ...


def _decode_body(text: str) -> Any:
    """Decode a response body: JSON when possible, raw text otherwise."""
    if not text.strip():
        return None
    try:
        return _json.loads(text)
    except _json.JSONDecodeError:
        return text


class HttpTransport:
    """aiohttp transport that keeps session cookies and sends them on demand.

    Cookies set by any response (login included) are remembered.  They are
    attached only to requests made with ``credentials=True``, which is every
    request except the bare login and signup calls.

    An injected ``ClientSession`` must be created with
    ``aiohttp.DummyCookieJar``; any other jar is rejected.
    """

    def __init__(
        self,
        config: InventrackConfig,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        # A real jar would send cookies on login/signup and keep them past logout.
        if http_session is not None and not isinstance(http_session.cookie_jar, aiohttp.DummyCookieJar):
            raise InventrackConfigError("An injected ClientSession must use aiohttp.DummyCookieJar")
        self._config = config
        self._http = http_session
        self._owns_session = http_session is None
        self._cookies: dict[str, str] = {}
        self._cookie_header: str = ""

    @property
    def is_open(self) -> bool:
        return self._http is not None and not self._http.closed

    async def open(self) -> None:
        if self.is_open:
            return
        # Cookies are managed by hand so they can be withheld per request.
        self._http = aiohttp.ClientSession(cookie_jar=aiohttp.DummyCookieJar())
        self._owns_session = True

    async def close(self) -> None:
        if self._owns_session and self._http is not None:
            await self._http.close()
            self._http = None

    def clear_cookies(self) -> None:
        self._cookies.clear()
        self._cookie_header = ""
        if self._http is not None:
            self._http.cookie_jar.clear()

    def _update_cookies(self, headers: Any) -> None:
        """Extract Set-Cookie headers and store them."""
        raw_cookies = headers.getall("Set-Cookie", [])
        changed = False
        for raw in raw_cookies:
            cookie: SimpleCookie = SimpleCookie()
            try:
                cookie.load(raw)
            except CookieError:
                _logger.debug("Ignoring unparsable Set-Cookie header")
                continue
            for key, morsel in cookie.items():
                value = morsel.value
                if self._cookies.get(key) != value:
                    self._cookies[key] = value
                    changed = True

        if changed:
            self._cookie_header = "; ".join(f"{k}={v}" for k, v in self._cookies.items())

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            raise InventrackError("Transport not open. Use 'async with InventrackClient(...) as client:'")
        return self._http

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        form: aiohttp.FormData | None = None,
        credentials: bool = True,
    ) -> Any:
        """Send one request and return the decoded response body.

        Raises
        ------
        InventrackTransportError
            No response was received (``status_code`` is ``None``) or the
            server answered with a non-2xx status.
        """
        http = self._require_session()
        url = f"{self._config.base_url}{path}"

        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
        }
        if credentials and self._cookie_header:
            headers["cookie"] = self._cookie_header

        kwargs: dict[str, Any] = {"headers": headers}
        if form is not None:
            kwargs["data"] = form
        elif json is not None:
            kwargs["json"] = json
        if self._config.request_timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("%s %s", method, url)
        if self._config.api_trace_enabled and json is not None:
            _logger.debug("Request body %s: %s", path, redact_for_log(json))

        try:
            async with http.request(method, url, **kwargs) as resp:
                self._update_cookies(resp.headers)
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise InventrackTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc
        except TimeoutError as exc:
            raise InventrackTransportError(
                f"Request to {path} timed out",
                endpoint=path,
            ) from exc

        body = _decode_body(text)
        if self._config.api_trace_enabled:
            _logger.debug("Response %s %s: %s", status, path, redact_for_log(body))

        if not 200 <= status < 300:
            raise InventrackTransportError(
                f"HTTP {status} from {path}: {text[:200]}",
                status_code=status,
                endpoint=path,
                body=body,
            )
        return body


def form_with_file(
    field: str,
    data: bytes,
    *,
    filename: str,
    content_type: str,
    extra: Mapping[str, str] | None = None,
) -> aiohttp.FormData:
    """Build a multipart form holding a single file field."""
    form = aiohttp.FormData()
    for key, value in (extra or {}).items():
        form.add_field(key, value)
    form.add_field(field, data, filename=filename, content_type=content_type)
    _logger.debug("Multipart upload: %s", describe_upload(field, data, filename=filename, content_type=content_type))
    return form
