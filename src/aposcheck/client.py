"""ApostropheCMS REST API client.

Handles API key / bearer authentication, JSON requests and multipart
uploads via urllib.  Resource-specific calls live on the endpoint
objects in :mod:`aposcheck.endpoints`.
"""

from __future__ import annotations

import http.cookiejar
import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
import uuid
from dataclasses import dataclass, field
from typing import Any

from aposcheck.config import ApostropheConfig
from aposcheck.endpoints import (
    AttachmentEndpoint,
    AuthEndpoint,
    DocumentEndpoint,
    GlobalEndpoint,
    ImageEndpoint,
    PageEndpoint,
    UserEndpoint,
)
from aposcheck.errors import ApiError

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Status, headers and decoded body of one API call."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def location(self) -> str:
        return self.headers.get("location", "")


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    """Surface 3xx responses instead of following them.

    Image rendition endpoints answer with a redirect to the stored file;
    the checks need to see that redirect, not the file behind it.
    """

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def _encode_params(params: dict[str, Any] | None) -> str:
    if not params:
        return ""
    cleaned: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(value)
    return f"?{urllib.parse.urlencode(cleaned)}" if cleaned else ""


def _decode_body(raw: bytes, content_type: str) -> Any:
    if not raw:
        return None
    if "json" in content_type:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return raw.decode("utf-8", errors="replace")
    if content_type.startswith("text/"):
        return raw.decode("utf-8", errors="replace")
    return raw


def _error_message(data: Any, fallback: str) -> str:
    if isinstance(data, dict):
        for key in ("message", "error", "name"):
            if data.get(key):
                return str(data[key])
    if isinstance(data, str) and data.strip():
        return data.strip()[:200]
    return fallback


class ApostropheClient:
    """Client for the ApostropheCMS ``/api/v1`` REST API.

    By default requests carry the configured API key.  ``bearer_token``
    switches to bearer authentication, and ``use_api_key=False`` with no
    token gives an anonymous client (used for login).  Each client keeps
    its own cookie jar so session logins persist across its calls.
    """

    def __init__(
        self,
        config: ApostropheConfig,
        *,
        bearer_token: str | None = None,
        use_api_key: bool = True,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.bearer_token = bearer_token
        self.use_api_key = use_api_key and not bearer_token
        self.cookies = http.cookiejar.CookieJar()
        self._opener = urllib.request.build_opener(
            _NoRedirect, urllib.request.HTTPCookieProcessor(self.cookies)
        )

    # ------------------------------------------------------------------
    # Derived clients
    # ------------------------------------------------------------------

    def with_bearer(self, token: str) -> ApostropheClient:
        """Return a client that authenticates with *token* instead of the API key."""
        return ApostropheClient(self.config, bearer_token=token)

    def anonymous(self) -> ApostropheClient:
        """Return a client that sends no credentials."""
        return ApostropheClient(self.config, use_api_key=False)

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    @property
    def images(self) -> ImageEndpoint:
        return ImageEndpoint(self)

    @property
    def files(self) -> DocumentEndpoint:
        return DocumentEndpoint(self, "@apostrophecms/file")

    @property
    def image_tags(self) -> DocumentEndpoint:
        return DocumentEndpoint(self, "@apostrophecms/image-tag")

    @property
    def file_tags(self) -> DocumentEndpoint:
        return DocumentEndpoint(self, "@apostrophecms/file-tag")

    @property
    def users(self) -> UserEndpoint:
        return UserEndpoint(self)

    @property
    def global_content(self) -> GlobalEndpoint:
        return GlobalEndpoint(self)

    @property
    def pages(self) -> PageEndpoint:
        return PageEndpoint(self)

    @property
    def attachments(self) -> AttachmentEndpoint:
        return AttachmentEndpoint(self)

    @property
    def auth(self) -> AuthEndpoint:
        return AuthEndpoint(self)

    def i18n_locales(self) -> ApiResponse:
        """List the locales configured on the site."""
        return self.request("GET", "/@apostrophecms/i18n/locales")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        elif self.use_api_key and self.config.api_key:
            headers["Authorization"] = f"ApiKey {self.config.api_key}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Make a JSON request to the API.

        Raises:
            ApiError: On HTTP status >= 400 or a transport failure.
        """
        url = f"{self.base_url}{path}{_encode_params(params)}"
        headers = self._headers()
        body = None
        if data is not None:
            body = json.dumps(data).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=body, method=method, headers=headers)
        return self._send(req)

    def request_multipart(
        self,
        path: str,
        filename: str,
        content: bytes | None,
        content_type: str,
        field: str = "file",
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Upload a file via multipart form POST.

        Args:
            path: API endpoint path (e.g. "/@apostrophecms/attachment/upload").
            filename: File name reported to the server.
            content: File bytes.  ``None`` sends a form with no file part,
                which the server should reject.
            content_type: MIME type of the file part.
            field: Form field name for the file.
            params: Query string parameters.

        Returns:
            Parsed response from the API.
        """
        url = f"{self.base_url}{path}{_encode_params(params)}"
        boundary = f"----AposcheckBoundary{uuid.uuid4().hex}"

        body_parts: list[bytes] = [f"--{boundary}\r\n".encode()]
        if content is not None:
            disposition = (
                f'Content-Disposition: form-data; name="{field}";'
                f' filename="{filename}"\r\n'
            )
            body_parts += [
                disposition.encode(),
                f"Content-Type: {content_type}\r\n\r\n".encode(),
                content,
                f"\r\n--{boundary}--\r\n".encode(),
            ]
        else:
            body_parts += [
                b'Content-Disposition: form-data; name="empty"\r\n\r\n',
                f"\r\n--{boundary}--\r\n".encode(),
            ]

        headers = self._headers()
        headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
        req = urllib.request.Request(
            url, data=b"".join(body_parts), method="POST", headers=headers
        )
        return self._send(req)

    def _send(self, req: urllib.request.Request) -> ApiResponse:
        logger.debug("%s %s", req.get_method(), req.full_url)
        try:
            with self._opener.open(req, timeout=self.config.timeout) as resp:
                headers = {k.lower(): v for k, v in resp.headers.items()}
                data = _decode_body(resp.read(), headers.get("content-type", ""))
                return ApiResponse(status=resp.status, headers=headers, data=data)
        except urllib.error.HTTPError as exc:
            headers = {k.lower(): v for k, v in (exc.headers or {}).items()}
            if 300 <= exc.code < 400:
                return ApiResponse(status=exc.code, headers=headers)
            data = _decode_body(exc.read() or b"", headers.get("content-type", ""))
            raise ApiError(exc.code, _error_message(data, exc.reason or "HTTP error"), data) from exc
        except (urllib.error.URLError, socket.timeout, ConnectionError) as exc:
            reason = getattr(exc, "reason", exc)
            raise ApiError(0, f"request to {req.full_url} failed: {reason}") from exc
