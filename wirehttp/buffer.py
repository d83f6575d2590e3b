"""A growable read buffer over a byte stream."""

from __future__ import annotations

from typing import Protocol

INIT_BUFFER_SIZE = 4096
MAX_BUFFER_SIZE = 8192 + 4096 * 100


class _Readable(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class BufReader:
    """Buffered reader whose buffer grows, up to a limit, when it fills up.

    ``pos`` is the offset of the first unread byte and ``cap`` the end of
    the buffered data; both return to zero once everything is consumed.
    """

    def __init__(self, inner: _Readable, capacity: int = INIT_BUFFER_SIZE) -> None:
        self.inner = inner
        self._buf = bytearray(capacity)
        self.pos = 0
        self.cap = 0

    @property
    def capacity(self) -> int:
        """Current size of the internal buffer."""
        return len(self._buf)

    def get_buf(self) -> bytes:
        """Return the buffered bytes that have not been consumed yet."""
        if self.pos < self.cap:
            return bytes(self._buf[self.pos:self.cap])
        return b""

    def read_into_buf(self) -> int:
        """Append more data from the inner reader; return how many bytes came in."""
        self._maybe_reserve()
        room = len(self._buf) - self.cap
        if room <= 0:
            return 0
        data = self.inner.read(room) or b""
        count = len(data)
        memoryview(self._buf)[self.cap:self.cap + count] = data
        self.cap += count
        return count

    def _maybe_reserve(self) -> None:
        capacity = len(self._buf)
        if self.cap == capacity and capacity < MAX_BUFFER_SIZE:
            grown = min(capacity * 4, MAX_BUFFER_SIZE)
            self._buf.extend(bytes(grown - capacity))

    def read(self, size: int | None = -1) -> bytes:
        """Read up to ``size`` bytes; a negative or missing size reads to the end."""
        if size is None or size < 0:
            parts = []
            while chunk := self.fill_buf():
                parts.append(chunk)
                self.consume(len(chunk))
            return b"".join(parts)
        if self.pos == self.cap and size >= len(self._buf):
            return self.inner.read(size) or b""
        data = self.fill_buf()[:size]
        self.consume(len(data))
        return data

    def fill_buf(self) -> bytes:
        """Return buffered bytes, reading from the inner reader if none are left."""
        if self.pos == self.cap:
            data = self.inner.read(len(self._buf)) or b""
            count = len(data)
            memoryview(self._buf)[:count] = data
            self.cap = count
            self.pos = 0
        return bytes(self._buf[self.pos:self.cap])

    def consume(self, amount: int) -> None:
        """Mark ``amount`` buffered bytes as read."""
        self.pos = min(self.pos + amount, self.cap)
        if self.pos == self.cap:
            self.pos = 0
            self.cap = 0

    def into_inner(self) -> _Readable:
        """Return the wrapped reader."""
        return self.inner