"""A small blocking HTTP/1.1 client with connection pooling and redirect policies."""

__version__ = "0.1.0"
__all__ = ["buffer", "errors", "pool", "request", "response", "client"]