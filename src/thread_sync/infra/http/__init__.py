"""HTTP implementation of the messaging API transport."""

from thread_sync.infra.http.client import HttpMessageTransport

__all__ = [
    "HttpMessageTransport",
]
