# wirehttp

A small, blocking HTTP/1.1 client library. It provides:

- `wirehttp.client.Client`, a high-level client with `get`, `head`, `post`,
  `put`, `delete` and `request` helpers and a configurable `RedirectPolicy`;
- `wirehttp.request.Request` and `wirehttp.response.Response`, the
  lower-level request and response objects the client is built on;
- `wirehttp.pool.Pool`, a per-origin connection pool that keeps idle
  connections for reuse;
- `wirehttp.buffer.BufReader`, a growable read buffer used when reading
  message heads;
- `wirehttp.errors`, the `HttpError` hierarchy raised for malformed
  versions, headers, statuses and URIs, oversized message heads and I/O
  failures.

## Installation

```
pip install wirehttp
```

## Making requests

```python
from wirehttp.client import Client, RedirectPolicy

client = Client()

with client.get("http://example.com/").send() as res:
    print(res.status)       # an http.HTTPStatus, or a plain int for unknown codes
    print(res.headers)      # a case-insensitive multidict
    print(res.read().decode())
```

By default `Client` opens TCP connections (wrapped in TLS for `https`)
through a `Pool`. A different connector (any object with
`connect(host, port, scheme)` returning a stream) or a protocol (an object
with `new_message(host, port, scheme)`) can be passed as `protocol`.
`client.read_timeout` and `client.write_timeout` are applied to each request
when set.

Sending a body with a POST:

```python
with client.post("http://example.com/form").body("foo=bar").send() as res:
    print(res.status)
```

A body may be `bytes` or `str` (sent with `Content-Length`), or a readable
file-like object (sent chunked unless wrapped in `Body(source, size)` with a
known size). A POST, PUT or DELETE without a body is sent with
`Content-Length: 0`. GET and HEAD requests never carry a body.

Adding headers:

```python
res = client.get("http://example.com/").header("Connection", "close").send()
```

`header(name, value)` replaces any earlier value of that header;
`headers(mapping)` replaces all extra headers at once.

Responses are read with `read(size)`; bodies delimited by `Content-Length`,
by chunked transfer encoding, or by the end of the connection are all
handled. `Response.close()` (or leaving the `with` block) closes the
connection unless the body was fully read and the server allows keep-alive
(see `wirehttp.response.should_keep_alive`).

## Lower-level requests

```python
from wirehttp.request import Request

req = Request("GET", "http://example.com/?q=value", stream)
req.start()              # writes the request line and headers
res = req.send()         # finishes the body and reads the response
```

`Request` sets the `Host` header from the URL. After `start()`, `write()`
sends body data, chunked unless a `Content-Length` header was set.

## Redirects

By default every redirect whose `Location` header resolves (relative to the
current URL) to a URL with a scheme and host is followed. The policy can be
changed:

```python
client = Client(redirect_policy=RedirectPolicy.follow_none())

client = Client(
    redirect_policy=RedirectPolicy.follow_if(lambda url: "internal" not in url)
)
```

When a redirect is not followed, or its `Location` is missing or unusable,
the redirect response itself is returned.

## Connection pooling

`Pool` wraps a connector and keeps up to `PoolConfig.max_idle` idle
connections per `(host, port, scheme)`. A `PooledStream` goes back to the
pool when released, when its `with` block ends, or when it is garbage
collected, unless it was closed.

```python
from wirehttp.pool import Pool, PoolConfig

pool = Pool(connector, PoolConfig(max_idle=5))
with pool.connect("example.com", 80, "http") as stream:
    stream.write(b"...")
print(pool.idle_count("example.com", 80, "http"))
pool.clear_idle()
```

## Errors

All failures derive from `wirehttp.errors.HttpError`. Each error has a
`description()`, and errors wrapping another exception expose it as
`cause`. `error_from(exc)` converts an `OSError` (`IoError`), an
`ssl.SSLError` (`SslError`), a `UnicodeError` (`Utf8Error`), a `ValueError`
(`UriError`) or a `ParseErrorKind` into the matching `HttpError`; other
values raise `TypeError`.

## What it does not do

This package is a client only: it has no HTTP server, no command-line tool,
and no HTTP/2 support. It does not manage cookies or decompress bodies.

## Tests

The test suite uses pytest, installed with the `test` extra.