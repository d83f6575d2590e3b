"""Errors raised while parsing or exchanging HTTP messages."""

from __future__ import annotations

import enum
import ssl


class ParseErrorKind(enum.Enum):
    """Failures reported by the low-level message head parser."""

    HEADER_NAME = "header_name"
    HEADER_VALUE = "header_value"
    NEW_LINE = "new_line"
    STATUS = "status"
    TOKEN = "token"
    TOO_MANY_HEADERS = "too_many_headers"
    VERSION = "version"


class HttpError(Exception):
    """Base of every error this package raises."""

    default_description = "HTTP error"

    def __init__(self, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(self.description())
        if cause is not None:
            self.__cause__ = cause

    def description(self) -> str:
        """Short human-readable text for this error."""
        if self.cause is not None:
            text = str(self.cause)
            if text:
                return text
        return self.default_description


class MethodError(HttpError):
    """An invalid method, such as ``GE,T``."""

    default_description = "Invalid Method specified"


class UriError(HttpError):
    """An invalid request URI."""

    default_description = "Invalid URI"


class VersionError(HttpError):
    """An invalid HTTP version, such as ``HTP/1.1``."""

    default_description = "Invalid HTTP version specified"


class HeaderError(HttpError):
    """An invalid header."""

    default_description = "Invalid Header provided"


class TooLargeError(HttpError):
    """A message head too large to be reasonable."""

    default_description = "Message head is too large"


class StatusError(HttpError):
    """An invalid status, such as ``1337 ELITE``."""

    default_description = "Invalid Status provided"


class IoError(HttpError):
    """An I/O failure on the underlying stream."""

    default_description = "I/O error"


class SslError(HttpError):
    """A failure in the TLS layer."""

    default_description = "SSL error"


class Http2Error(HttpError):
    """An HTTP/2-specific failure."""

    default_description = "HTTP/2 error"


class Utf8Error(HttpError):
    """A field could not be decoded as UTF-8."""

    default_description = "Invalid UTF-8"


_PARSE_ERRORS: dict[ParseErrorKind, type[HttpError]] = {
    ParseErrorKind.HEADER_NAME: HeaderError,
    ParseErrorKind.HEADER_VALUE: HeaderError,
    ParseErrorKind.NEW_LINE: HeaderError,
    ParseErrorKind.STATUS: StatusError,
    ParseErrorKind.TOKEN: HeaderError,
    ParseErrorKind.TOO_MANY_HEADERS: TooLargeError,
    ParseErrorKind.VERSION: VersionError,
}


def from_parse_error(kind: ParseErrorKind) -> HttpError:
    """Map a parser failure onto the matching error."""
    return _PARSE_ERRORS[kind]()


def error_from(err: object) -> HttpError:
    """Wrap a lower-level exception (or parser failure) in an ``HttpError``."""
    if isinstance(err, HttpError):
        return err
    if isinstance(err, ParseErrorKind):
        return from_parse_error(err)
    if isinstance(err, ssl.SSLError):
        return SslError(err)
    if isinstance(err, OSError):
        return IoError(err)
    if isinstance(err, UnicodeError):
        return Utf8Error(err)
    if isinstance(err, ValueError):
        return UriError(err)
    raise TypeError(f"cannot convert {type(err).__name__} to an HTTP error")