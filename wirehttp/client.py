"""High-level HTTP client with redirect handling."""

from __future__ import annotations

import enum
import io
import logging
import socket
import ssl
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import urljoin, urlsplit

from multidict import CIMultiDict

from .errors import HttpError, error_from
from .pool import Pool
from .request import Request, get_host_and_port
from .response import Response

log = logging.getLogger(__name__)

_COPY_SIZE = 8192

__all__ = ["RedirectPolicy", "Body", "Client", "RequestBuilder"]


class _PolicyKind(enum.Enum):
    FOLLOW_NONE = "follow_none"
    FOLLOW_ALL = "follow_all"
    FOLLOW_IF = "follow_if"


@dataclass(frozen=True)
class RedirectPolicy:
    """How a client treats redirect responses."""

    kind: _PolicyKind = _PolicyKind.FOLLOW_ALL
    predicate: Callable[[str], bool] | None = None

    @classmethod
    def follow_none(cls) -> RedirectPolicy:
        """Never follow redirects."""
        return cls(_PolicyKind.FOLLOW_NONE)

    @classmethod
    def follow_all(cls) -> RedirectPolicy:
        """Follow every redirect."""
        return cls(_PolicyKind.FOLLOW_ALL)

    @classmethod
    def follow_if(cls, predicate: Callable[[str], bool]) -> RedirectPolicy:
        """Follow a redirect when ``predicate(url)`` is true."""
        return cls(_PolicyKind.FOLLOW_IF, predicate)

    def should_follow(self, url: str) -> bool:
        """Whether a redirect to ``url`` is to be followed."""
        if self.kind is _PolicyKind.FOLLOW_ALL:
            return True
        if self.kind is _PolicyKind.FOLLOW_IF and self.predicate is not None:
            return bool(self.predicate(url))
        return False


class Body:
    """A request body; ``size`` is None when the length is unknown (chunked)."""

    def __init__(self, source: Any, size: int | None = None) -> None:
        self.source = source
        self.size = size

    @classmethod
    def from_value(cls, value: Any) -> Body:
        """Build a body from bytes, text, a readable object or another body."""
        if isinstance(value, Body):
            return value
        if isinstance(value, str):
            value = value.encode("utf-8")
        if isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
            return cls(io.BytesIO(data), len(data))
        if hasattr(value, "read"):
            return cls(value, None)
        raise TypeError(f"cannot use {type(value).__name__} as a request body")

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of the body."""
        return self.source.read(size) or b""


class _TcpStream:
    """A plain or TLS socket offering the stream interface messages use."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock

    def read(self, size: int = -1) -> bytes:
        if size is not None and size >= 0:
            return self.sock.recv(size)
        parts = []
        while chunk := self.sock.recv(65536):
            parts.append(chunk)
        return b"".join(parts)

    def write(self, data: bytes) -> int:
        self.sock.sendall(data)
        return len(data)

    def flush(self) -> None:
        pass

    def peer_addr(self) -> Any:
        return self.sock.getpeername()

    def set_read_timeout(self, timeout: float | None) -> None:
        self.sock.settimeout(timeout)

    def set_write_timeout(self, timeout: float | None) -> None:
        self.sock.settimeout(timeout)

    def close(self, how: int = socket.SHUT_RDWR) -> None:
        try:
            self.sock.shutdown(how)
        finally:
            self.sock.close()


class _TcpConnector:
    """Opens TCP connections, wrapping them in TLS for ``https``."""

    def connect(self, host: str, port: int, scheme: str) -> _TcpStream:
        sock = socket.create_connection((host, port))
        if scheme == "https":
            context = ssl.create_default_context()
            sock = context.wrap_socket(sock, server_hostname=host)
        return _TcpStream(sock)


class _Http11Protocol:
    """Creates HTTP/1.1 exchanges over streams from a connector."""

    def __init__(self, connector: Any) -> None:
        self.connector = connector

    def new_message(self, host: str, port: int, scheme: str) -> Any:
        return self.connector.connect(host, port, scheme)


class Client:
    """Makes requests, following redirects according to its policy.

    ``protocol`` is an object with ``new_message(host, port, scheme)`` or a
    connector with ``connect(host, port, scheme)``; by default connections
    are opened over TCP and pooled.
    """

    def __init__(
        self,
        protocol: Any = None,
        redirect_policy: RedirectPolicy | None = None,
    ) -> None:
        if protocol is None:
            protocol = _Http11Protocol(Pool(_TcpConnector()))
        elif not hasattr(protocol, "new_message"):
            protocol = _Http11Protocol(protocol)
        self.protocol = protocol
        self.redirect_policy = redirect_policy if redirect_policy is not None else RedirectPolicy()
        self.read_timeout: float | None = None
        self.write_timeout: float | None = None

    def get(self, url: str) -> RequestBuilder:
        return self.request("GET", url)

    def head(self, url: str) -> RequestBuilder:
        return self.request("HEAD", url)

    def post(self, url: str) -> RequestBuilder:
        return self.request("POST", url)

    def put(self, url: str) -> RequestBuilder:
        return self.request("PUT", url)

    def delete(self, url: str) -> RequestBuilder:
        return self.request("DELETE", url)

    def request(self, method: str, url: str) -> RequestBuilder:
        """Start building a request with any method."""
        return RequestBuilder(self, method, url)


def _is_redirection(status: int) -> bool:
    return 300 <= int(status) < 400


class RequestBuilder:
    """Options for one request, sent with ``send``."""

    def __init__(self, client: Client, method: str, url: str) -> None:
        self.client = client
        self.method = method.upper()
        self.url = url
        self._headers: CIMultiDict | None = None
        self._body: Body | None = None

    def body(self, body: Any) -> RequestBuilder:
        """Set the body to send."""
        self._body = Body.from_value(body)
        return self

    def headers(self, headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> RequestBuilder:
        """Replace the extra headers sent with the request."""
        self._headers = CIMultiDict(headers)
        return self

    def header(self, name: str, value: Any) -> RequestBuilder:
        """Set one header, replacing any earlier value of it."""
        if self._headers is None:
            self._headers = CIMultiDict()
        self._headers[name] = str(value)
        return self

    def _apply_headers(self, req: Request) -> None:
        if not self._headers:
            return
        for name in self._headers.keys():
            req.headers.popall(name, None)
        for name, value in self._headers.items():
            req.headers.add(name, value)

    def send(self) -> Response:
        """Send the request and return the final response."""
        client = self.client
        url = self.url
        can_have_body = self.method not in ("GET", "HEAD")
        body = self._body if can_have_body else None

        while True:
            host, port = get_host_and_port(url)
            scheme = urlsplit(url).scheme.lower()
            try:
                message = client.protocol.new_message(host, port, scheme)
            except OSError as exc:
                raise error_from(exc) from exc
            req = Request(self.method, url, message)
            self._apply_headers(req)
            if client.write_timeout is not None:
                req.set_write_timeout(client.write_timeout)
            if client.read_timeout is not None:
                req.set_read_timeout(client.read_timeout)

            if can_have_body:
                if body is None:
                    req.headers["Content-Length"] = "0"
                elif body.size is not None:
                    req.headers["Content-Length"] = str(body.size)

            req.start()
            if body is not None:
                current, body = body, None
                while chunk := current.read(_COPY_SIZE):
                    req.write(chunk)
            res = req.send()
            if not _is_redirection(res.status):
                return res
            log.debug("redirect code %s for %s", res.status, url)

            location = res.headers.get("Location")
            if location is None:
                log.debug("no Location header")
                return res
            target = urljoin(url, location)
            try:
                parts = urlsplit(target)
                parts.port
            except ValueError as exc:
                log.debug("Location header had invalid URI: %s", exc)
                return res
            if not parts.scheme or not parts.hostname:
                log.debug("Location header had invalid URI: %s", target)
                return res
            if not client.redirect_policy.should_follow(target):
                return res
            url = target
            res.close()


# Re-exported so callers can catch client failures from one place.
ClientError = HttpError