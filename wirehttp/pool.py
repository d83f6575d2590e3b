"""Connection pooling for client streams."""

from __future__ import annotations

import enum
import socket
import threading
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import error_from


class _Connector(Protocol):
    def connect(self, host: str, port: int, scheme: str) -> Any: ...


@dataclass
class PoolConfig:
    """Pool options."""

    max_idle: int = 5
    """Maximum idle connections kept per host."""


class Scheme(enum.Enum):
    """Well-known URL schemes; other schemes are kept as plain strings."""

    HTTP = "http"
    HTTPS = "https"

    @classmethod
    def parse(cls, value: str) -> Scheme | str:
        """Return the matching member, or ``value`` itself for other schemes."""
        try:
            return cls(value)
        except ValueError:
            return value


Key = tuple[str, int, "Scheme | str"]


def pool_key(host: str, port: int, scheme: str) -> Key:
    """Key under which idle connections to an origin are kept."""
    return (host, port, Scheme.parse(scheme))


class Pool:
    """A connector that reuses idle streams to the same origin."""

    def __init__(self, connector: _Connector, config: PoolConfig | None = None) -> None:
        self.connector = connector
        self.config = config if config is not None else PoolConfig()
        self._lock = threading.Lock()
        self._conns: dict[Key, list[Any]] = {}

    def connect(self, host: str, port: int, scheme: str) -> PooledStream:
        """Return an idle stream for the origin, or open a new one."""
        key = pool_key(host, port, scheme)
        conn = None
        with self._lock:
            idle = self._conns.get(key)
            if idle:
                conn = idle.pop()
                if not idle:
                    del self._conns[key]
        if conn is None:
            try:
                conn = self.connector.connect(host, port, scheme)
            except OSError as exc:
                raise error_from(exc) from exc
        return PooledStream(key, conn, self)

    def clear_idle(self) -> None:
        """Forget all idle connections."""
        with self._lock:
            self._conns.clear()

    def idle_count(self, host: str, port: int, scheme: str) -> int:
        """Number of idle connections kept for an origin."""
        with self._lock:
            return len(self._conns.get(pool_key(host, port, scheme), ()))

    def __len__(self) -> int:
        """Number of origins with an entry in the pool."""
        with self._lock:
            return len(self._conns)

    def _reuse(self, key: Key, conn: Any) -> None:
        with self._lock:
            idle = self._conns.setdefault(key, [])
            if len(idle) < self.config.max_idle:
                idle.append(conn)


class PooledStream:
    """A stream that goes back to its pool when released, unless closed."""

    def __init__(self, key: Key, conn: Any, pool: Pool) -> None:
        self._inner: tuple[Key, Any] | None = (key, conn)
        self._pool = pool
        self.is_closed = False

    @property
    def _stream(self) -> Any:
        if self._inner is None:
            raise ValueError("stream has been released")
        return self._inner[1]

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def write(self, data: bytes) -> int:
        return self._stream.write(data)

    def flush(self) -> None:
        self._stream.flush()

    def peer_addr(self) -> Any:
        return self._stream.peer_addr()

    def set_read_timeout(self, timeout: float | None) -> None:
        self._stream.set_read_timeout(timeout)

    def set_write_timeout(self, timeout: float | None) -> None:
        self._stream.set_write_timeout(timeout)

    def close(self, how: int = socket.SHUT_RDWR) -> None:
        """Shut the connection down; it will not be returned to the pool."""
        self.is_closed = True
        self._stream.close(how)

    def release(self) -> None:
        """Give the connection back to the pool if it is still open."""
        inner, self._inner = self._inner, None
        if inner is not None and not self.is_closed:
            self._pool._reuse(*inner)

    def __enter__(self) -> PooledStream:
        return self

    def __exit__(self, *args: object) -> None:
        self.release()

    def __del__(self) -> None:
        try:
            self.release()
        except Exception:
            pass