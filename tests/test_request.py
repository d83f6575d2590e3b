import io

import pytest

from wirehttp.errors import HttpError, UriError
from wirehttp.request import Request, get_host_and_port


class MockStream:
    def __init__(self, data=b""):
        self.input = io.BytesIO(data)
        self.written = bytearray()
        self.closed_with = None

    def read(self, size=-1):
        return self.input.read(size)

    def write(self, data):
        self.written += data
        return len(data)

    def flush(self):
        pass

    def close(self, how):
        self.closed_with = how


def run_request(req, stream):
    req.start()
    return stream.written.decode()


def assert_no_body(text):
    assert "Content-Length:" not in text
    assert "Transfer-Encoding:" not in text


def test_get_empty_body():
    stream = MockStream()
    text = run_request(Request("GET", "http://example.dom", stream), stream)
    assert_no_body(text)
    assert text.startswith("GET / HTTP/1.1\r\n")


def test_head_empty_body():
    stream = MockStream()
    assert_no_body(run_request(Request("HEAD", "http://example.dom", stream), stream))


def test_url_query():
    stream = MockStream()
    text = run_request(Request("GET", "http://example.dom?q=value", stream), stream)
    assert "?q=value" in text


def test_post_content_length():
    stream = MockStream()
    req = Request("POST", "http://example.dom", stream)
    req.headers["Content-Length"] = str(len("q=value"))
    assert "Content-Length:" in run_request(req, stream)


def test_post_chunked():
    stream = MockStream()
    text = run_request(Request("POST", "http://example.dom", stream), stream)
    assert "Content-Length:" not in text
    assert "Transfer-Encoding: chunked" in text


def test_post_chunked_with_encoding():
    stream = MockStream()
    req = Request("POST", "http://example.dom", stream)
    req.headers["Transfer-Encoding"] = "chunked"
    text = run_request(req, stream)
    assert "Content-Length:" not in text
    assert text.count("Transfer-Encoding:") == 1


def test_host_header_includes_nondefault_port():
    req = Request("GET", "http://example.dom:8080/x", MockStream())
    assert req.headers["Host"] == "example.dom:8080"


def test_get_host_and_port():
    assert get_host_and_port("http://example.dom") == ("example.dom", 80)
    assert get_host_and_port("https://example.dom") == ("example.dom", 443)
    assert get_host_and_port("http://example.dom:81/") == ("example.dom", 81)


@pytest.mark.parametrize("url", ["file:///tmp/x", "ftp://example.dom", "http://example.dom:bad"])
def test_get_host_and_port_errors(url):
    with pytest.raises(UriError):
        get_host_and_port(url)


def test_write_before_start_fails():
    req = Request("POST", "http://example.dom", MockStream())
    with pytest.raises(HttpError):
        req.write(b"x")


def test_send_chunked_body_and_read_response():
    stream = MockStream(b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nok")
    req = Request("POST", "http://example.dom/echo", stream).start()
    assert req.write(b"abc") == 3
    res = req.send()
    assert res.status == 200
    assert res.read() == b"ok"
    assert stream.written.endswith(b"3\r\nabc\r\n0\r\n\r\n")


def test_sized_body_overflow():
    stream = MockStream()
    req = Request("POST", "http://example.dom", stream)
    req.headers["Content-Length"] = "1"
    req.start()
    with pytest.raises(HttpError):
        req.write(b"toolong")