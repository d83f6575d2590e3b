"""Client requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from multidict import CIMultiDict

from .errors import HttpError, UriError
from .response import HTTP_11, Response, _as_message

_DEFAULT_PORTS = {"http": 80, "https": 443}

__all__ = ["RequestHead", "Request", "get_host_and_port"]


@dataclass
class RequestHead:
    """The head of an outgoing request: headers, method and target URL."""

    headers: CIMultiDict
    method: str
    url: str


def get_host_and_port(url: str) -> tuple[str, int]:
    """Return the host and port a URL points at."""
    parts = urlsplit(url)
    if not parts.hostname:
        raise UriError(ValueError("empty host"))
    try:
        port = parts.port
    except ValueError as exc:
        raise UriError(exc) from exc
    if port is None:
        port = _DEFAULT_PORTS.get(parts.scheme.lower())
        if port is None:
            raise UriError(ValueError("invalid port"))
    return parts.hostname, port


class Request:
    """A request to a server: fresh until ``start`` writes its head, then streaming.

    ``message`` is an HTTP message object or a raw stream to speak HTTP/1.1 on.
    """

    def __init__(self, method: str, url: str, message: Any) -> None:
        host, port = get_host_and_port(url)
        self.method = method.upper()
        self.url = url
        self.version = HTTP_11
        self.headers: CIMultiDict = CIMultiDict()
        self.headers["Host"] = host if port in (80, 443) else f"{host}:{port}"
        self._message = _as_message(message)
        self._started = False

    def _require_started(self) -> None:
        if not self._started:
            raise HttpError(ValueError("request has not been started"))

    def start(self) -> Request:
        """Write the request head; the request then accepts body writes."""
        if self._started:
            raise HttpError(ValueError("request already started"))
        head = self._message.set_outgoing(RequestHead(self.headers, self.method, self.url))
        self.headers, self.method, self.url = head.headers, head.method, head.url
        self._started = True
        return self

    def write(self, data: bytes) -> int:
        """Write part of the body."""
        self._require_started()
        return self._message.write(data)

    def flush(self) -> None:
        self._require_started()
        self._message.flush()

    def send(self) -> Response:
        """Finish the request and read the response."""
        self._require_started()
        return Response(self.url, self._message)

    def set_read_timeout(self, timeout: float | None) -> None:
        self._message.set_read_timeout(timeout)

    def set_write_timeout(self, timeout: float | None) -> None:
        self._message.set_write_timeout(timeout)