"""Client responses and the HTTP/1.1 message exchange beneath them."""

from __future__ import annotations

import http
import logging
import re
import socket
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlsplit

from multidict import CIMultiDict

from .buffer import MAX_BUFFER_SIZE, BufReader
from .errors import (
    HeaderError,
    HttpError,
    IoError,
    StatusError,
    TooLargeError,
    VersionError,
    error_from,
)

log = logging.getLogger(__name__)

HTTP_10 = "HTTP/1.0"
HTTP_11 = "HTTP/1.1"
_MAX_HEADERS = 100
_CHUNK_SIZE_LINE = re.compile(rb"([0-9A-Fa-f]+)[ \t]*(;.*)?")


@dataclass
class RequestHead:
    """The parts of a request written before its body."""

    headers: CIMultiDict
    method: str
    url: str


@dataclass
class ResponseHead:
    """The status line and headers of a response."""

    headers: CIMultiDict
    raw_status: tuple[int, str]
    version: str


def _tokens(value: str) -> list[str]:
    return [part.strip().lower() for part in value.split(",") if part.strip()]


def should_keep_alive(version: str, headers: Mapping[str, str]) -> bool:
    """Whether the connection may be reused after this message."""
    connection = headers.get("Connection")
    if version == HTTP_10:
        return connection is not None and "keep-alive" in _tokens(connection)
    if version == HTTP_11 and connection is not None:
        return "close" not in _tokens(connection)
    return True


def _io_error(message: str) -> IoError:
    return IoError(ConnectionError(message))


class _Http11Message:
    """One HTTP/1.1 request/response exchange over a stream."""

    def __init__(self, stream: Any) -> None:
        self.stream = stream
        self._reader = BufReader(stream)
        self._out_mode: str | None = None
        self._out_left = 0
        self._in_mode = "empty"
        self._in_left = 0
        self._chunk_left = 0
        self._chunks_done = False

    # outgoing ---------------------------------------------------------

    def set_outgoing(self, head: RequestHead) -> RequestHead:
        parts = urlsplit(head.url)
        target = parts.path or "/"
        if parts.query:
            target += "?" + parts.query
        headers = head.headers
        encodings = _tokens(",".join(headers.getall("Transfer-Encoding", [])))
        if encodings and encodings[-1] == "chunked":
            self._out_mode = "chunked"
        elif "Content-Length" in headers:
            try:
                self._out_left = int(headers["Content-Length"])
            except ValueError as exc:
                raise HeaderError(exc) from exc
            self._out_mode = "sized"
        elif head.method in ("GET", "HEAD"):
            self._out_mode = "empty"
        else:
            headers.add("Transfer-Encoding", "chunked")
            self._out_mode = "chunked"
        lines = [f"{head.method} {target} {HTTP_11}"]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        self._send(("\r\n".join(lines) + "\r\n\r\n").encode("latin-1"))
        return head

    def _send(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as exc:
            raise error_from(exc) from exc

    def write(self, data: bytes) -> int:
        if self._out_mode is None:
            raise HttpError(ValueError("no outgoing message"))
        if not data:
            return 0
        if self._out_mode == "chunked":
            self._send(b"%x\r\n" % len(data) + bytes(data) + b"\r\n")
        elif self._out_mode == "sized":
            if len(data) > self._out_left:
                raise _io_error("body longer than Content-Length")
            self._out_left -= len(data)
            self._send(bytes(data))
        else:
            raise _io_error("message has no body")
        return len(data)

    def flush(self) -> None:
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def _finish_outgoing(self) -> None:
        if self._out_mode == "chunked":
            self._send(b"0\r\n\r\n")
        self._out_mode = None
        self.flush()

    # incoming ---------------------------------------------------------

    def get_incoming(self) -> ResponseHead:
        self._finish_outgoing()
        reader = self._reader
        while b"\r\n\r\n" not in reader.get_buf():
            try:
                count = reader.read_into_buf()
            except OSError as exc:
                raise error_from(exc) from exc
            if count == 0:
                if reader.cap >= reader.capacity >= MAX_BUFFER_SIZE:
                    raise TooLargeError()
                raise _io_error("connection closed before message head")
        buffered = reader.get_buf()
        end = buffered.find(b"\r\n\r\n")
        reader.consume(end + 4)
        lines = buffered[:end].decode("latin-1").split("\r\n")
        version, code, reason = self._parse_status(lines[0])
        headers = self._parse_headers(lines[1:])
        self._select_body(code, headers)
        return ResponseHead(headers, (code, reason), version)

    @staticmethod
    def _parse_status(line: str) -> tuple[str, int, str]:
        version, _, rest = line.partition(" ")
        if version not in (HTTP_10, HTTP_11):
            raise VersionError()
        code_text, _, reason = rest.partition(" ")
        if len(code_text) != 3 or not code_text.isdigit():
            raise StatusError()
        return version, int(code_text), reason

    @staticmethod
    def _parse_headers(lines: list[str]) -> CIMultiDict:
        if len(lines) > _MAX_HEADERS:
            raise TooLargeError()
        headers: CIMultiDict = CIMultiDict()
        for line in lines:
            name, sep, value = line.partition(":")
            if not sep or not name or name != name.strip() or " " in name:
                raise HeaderError()
            headers.add(name, value.strip())
        return headers

    def _select_body(self, code: int, headers: CIMultiDict) -> None:
        encodings = _tokens(",".join(headers.getall("Transfer-Encoding", [])))
        if 100 <= code < 200 or code in (204, 304):
            self._in_mode = "empty"
        elif encodings and encodings[-1] == "chunked":
            self._in_mode = "chunked"
        elif "Content-Length" in headers:
            try:
                self._in_left = int(headers["Content-Length"])
            except ValueError as exc:
                raise HeaderError(exc) from exc
            self._in_mode = "sized" if self._in_left else "empty"
        else:
            self._in_mode = "eof"

    def has_body(self) -> bool:
        return self._in_mode != "empty"

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            parts = []
            while chunk := self._read_some(MAX_BUFFER_SIZE):
                parts.append(chunk)
            return b"".join(parts)
        return self._read_some(size)

    def _read_some(self, size: int) -> bytes:
        if size == 0:
            return b""
        try:
            if self._in_mode == "sized":
                if self._in_left == 0:
                    return b""
                data = self._reader.read(min(size, self._in_left))
                if not data:
                    raise _io_error("early end of body")
                self._in_left -= len(data)
                return data
            if self._in_mode == "eof":
                return self._reader.read(size)
            if self._in_mode == "chunked":
                return self._read_chunked(size)
            return b""
        except OSError as exc:
            raise error_from(exc) from exc

    def _read_line(self) -> bytes:
        line = bytearray()
        while not line.endswith(b"\n"):
            byte = self._reader.read(1)
            if not byte:
                raise _io_error("early end of chunked body")
            line += byte
        return bytes(line).rstrip(b"\r\n")

    def _read_chunked(self, size: int) -> bytes:
        if self._chunks_done:
            return b""
        if self._chunk_left == 0:
            match = _CHUNK_SIZE_LINE.fullmatch(self._read_line())
            if match is None:
                raise IoError(ValueError("Invalid chunk size line"))
            self._chunk_left = int(match.group(1), 16)
            if self._chunk_left == 0:
                while self._read_line():
                    pass
                self._chunks_done = True
                return b""
        data = self._reader.read(min(size, self._chunk_left))
        if not data:
            raise _io_error("early end of chunk")
        self._chunk_left -= len(data)
        if self._chunk_left == 0 and self._read_line():
            raise IoError(ValueError("Invalid chunk terminator"))
        return data

    # connection -------------------------------------------------------

    def set_read_timeout(self, timeout: float | None) -> None:
        self.stream.set_read_timeout(timeout)

    def set_write_timeout(self, timeout: float | None) -> None:
        self.stream.set_write_timeout(timeout)

    def close_connection(self) -> None:
        close = getattr(self.stream, "close", None)
        if close is not None:
            close(socket.SHUT_RDWR)


def _as_message(message: Any) -> Any:
    return message if hasattr(message, "get_incoming") else _Http11Message(message)


class Response:
    """A response read from a server; ``message`` may also be a raw stream."""

    def __init__(self, url: str, message: Any) -> None:
        self._message = _as_message(message)
        head = self._message.get_incoming()
        code, _ = head.raw_status
        try:
            self.status: int = http.HTTPStatus(code)
        except ValueError:
            self.status = code
        self.version = head.version
        self.headers = head.headers
        self.url = url
        self.status_raw = head.raw_status
        self.is_drained = not self._message.has_body()
        self._closed = False
        log.debug("version=%s status=%s", self.version, self.status)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of the body; all of it if ``size`` is negative."""
        data = self._message.read(size)
        if not data and size != 0:
            self.is_drained = True
        elif size is None or size < 0:
            self.is_drained = True
        return data

    def close(self) -> None:
        """Finish with the response, closing the connection unless it can be reused."""
        if self._closed:
            return
        self._closed = True
        if not (self.is_drained and should_keep_alive(self.version, self.headers)):
            try:
                self._message.close_connection()
            except OSError as exc:
                log.error("error closing connection: %s", exc)

    def __enter__(self) -> Response:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()