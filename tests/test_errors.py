import ssl

import pytest

from wirehttp.errors import (
    HeaderError,
    Http2Error,
    HttpError,
    IoError,
    MethodError,
    ParseErrorKind,
    SslError,
    StatusError,
    TooLargeError,
    UriError,
    Utf8Error,
    VersionError,
    error_from,
    from_parse_error,
)


def test_cause():
    orig = OSError("other")
    e = IoError(orig)
    assert e.cause is orig
    assert e.__cause__ is orig
    assert e.description() == str(orig)


@pytest.mark.parametrize(
    "kind, expected",
    [
        (ParseErrorKind.HEADER_NAME, HeaderError),
        (ParseErrorKind.HEADER_VALUE, HeaderError),
        (ParseErrorKind.NEW_LINE, HeaderError),
        (ParseErrorKind.STATUS, StatusError),
        (ParseErrorKind.TOKEN, HeaderError),
        (ParseErrorKind.TOO_MANY_HEADERS, TooLargeError),
        (ParseErrorKind.VERSION, VersionError),
    ],
)
def test_from_parse_error(kind, expected):
    err = from_parse_error(kind)
    assert type(err) is expected
    assert len(err.description()) > 5
    assert type(error_from(kind)) is expected


@pytest.mark.parametrize(
    "orig, expected",
    [
        (OSError("other"), IoError),
        (ValueError("empty host"), UriError),
        (ssl.SSLError("session closed"), SslError),
    ],
)
def test_from_and_cause(orig, expected):
    err = error_from(orig)
    assert type(err) is expected
    assert err.cause is orig
    assert err.description() == str(orig)


def test_from_unicode_error():
    try:
        b"\xff".decode("utf-8")
    except UnicodeDecodeError as exc:
        err = error_from(exc)
    assert type(err) is Utf8Error
    assert err.cause is not None and "utf-8" in err.description()


def test_http2_error_wraps_cause():
    cause = RuntimeError("unknown stream id")
    err = Http2Error(cause)
    assert err.description() == "unknown stream id"
    assert str(err) == "unknown stream id"


def test_fixed_descriptions():
    assert str(MethodError()) == "Invalid Method specified"
    assert str(VersionError()) == "Invalid HTTP version specified"
    assert str(HeaderError()) == "Invalid Header provided"
    assert str(TooLargeError()) == "Message head is too large"
    assert str(StatusError()) == "Invalid Status provided"


def test_error_from_passes_http_errors_through():
    err = HeaderError()
    assert error_from(err) is err


def test_error_from_rejects_unknown():
    with pytest.raises(TypeError):
        error_from(42)


def test_errors_are_raisable_as_base():
    err = error_from(OSError("boom"))
    assert isinstance(err, HttpError)
    assert type(err) is IoError
    assert err.description() == "boom"
    with pytest.raises(HttpError) as info:
        raise err
    assert info.value is err