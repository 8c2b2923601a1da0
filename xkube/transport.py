"""HTTP request value and a transport that injects bearer tokens."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from .tokens import TokenSource

RoundTripper = Callable[["HttpRequest"], Any]


class TokenError(RuntimeError):
    """Raised when a token cannot be obtained."""


@dataclass
class HttpRequest:
    """An outgoing HTTP request."""

    method: str
    url: str
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes | None = None

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = [value]


def clone_request(request: HttpRequest) -> HttpRequest:
    """Shallow copy of the request with its own header lists."""
    return dataclasses.replace(
        request, headers={k: list(v) for k, v in request.headers.items()}
    )


def default_send(request: HttpRequest) -> requests.Response:
    """Send a request over the network with requests."""
    headers = {k: ", ".join(v) for k, v in request.headers.items()}
    return requests.request(request.method, request.url, headers=headers, data=request.body)


class TokenTransport:
    """Adds an Authorization header from a token source, then delegates."""

    def __init__(self, provider: TokenSource, base: RoundTripper | None = None,
                 error_message: str = "cannot get token") -> None:
        self.provider = provider
        self.base = base
        self.error_message = error_message

    def round_trip(self, request: HttpRequest) -> Any:
        try:
            tkn = self.provider.token()
        except Exception as exc:
            raise TokenError(f"{self.error_message}: {exc}") from exc
        req2 = clone_request(request)
        req2.set_header("Authorization", f"Bearer {tkn.access_token}")
        return (self.base or default_send)(req2)

    __call__ = round_trip