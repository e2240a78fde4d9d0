from __future__ import annotations

import html as pyhtml
import mimetypes
from typing import Any, Optional

from starlette.requests import Request
from starlette.responses import Response

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


def esc(s: object) -> str:
    return pyhtml.escape(str(s if s is not None else ""))


def icon(url: str) -> str:
    return f"<link rel='icon' href='{esc(url)}'/>"


def stylesheet(url: str) -> str:
    return f"<link rel='stylesheet' href='{esc(url)}'/>"


def script(url: str) -> str:
    return f"<script src='{esc(url)}'></script>"


def content_type(filename: str) -> str:
    """MIME type for a file name, or "" when the extension is unknown."""
    mime_type, _ = mimetypes.guess_type(filename)
    if not mime_type:
        return ""
    if mime_type.startswith("text/") or mime_type in ("application/javascript", "application/json"):
        return f"{mime_type}; charset=utf-8"
    return mime_type


def url_path(request: Request, prefix: str, index: int) -> str:
    """Return the index-th path segment after the route prefix ("" if missing)."""
    path = request.url.path
    prefix = (prefix or "").rstrip("/")
    if prefix and path.startswith(prefix):
        path = path[len(prefix):]
    parts = [p for p in path.split("/") if p]
    if index < 0 or index >= len(parts):
        return ""
    return parts[index]


class ResponseWriter:
    """Buffered response sink handed to page handlers.

    Handlers write a status, headers, cookies and body bytes; the route wrapper
    turns the result into a Starlette response once the handler returns.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.headers: dict[str, str] = {}
        self._cookies: list[dict[str, Any]] = []
        self._deleted_cookies: list[dict[str, Any]] = []
        self._chunks: list[bytes] = []

    def write_header(self, status_code: int) -> None:
        self.status_code = int(status_code)

    def set_header(self, name: str, value: str) -> None:
        self.headers[name.lower()] = value

    def write(self, data: str | bytes) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.append(data)

    def set_cookie(self, key: str, value: str, **kwargs: Any) -> None:
        # Last write wins: one Set-Cookie per name.
        self._cookies = [c for c in self._cookies if c["key"] != key]
        self._cookies.append({"key": key, "value": value, **kwargs})

    def delete_cookie(self, key: str, **kwargs: Any) -> None:
        self._deleted_cookies.append({"key": key, **kwargs})

    def redirect(self, url: str, status_code: int = 302) -> None:
        self.set_header("location", url)
        self.write_header(status_code)

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def to_response(self) -> Response:
        headers = dict(self.headers)
        media_type: Optional[str] = headers.pop("content-type", None)
        if media_type is None and self._chunks:
            media_type = HTML_CONTENT_TYPE
        resp = Response(
            content=self.body,
            status_code=self.status_code,
            headers=headers,
            media_type=media_type,
        )
        for c in self._cookies:
            resp.set_cookie(**c)
        for c in self._deleted_cookies:
            resp.delete_cookie(**c)
        return resp
