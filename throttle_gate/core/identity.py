"""Client identifier resolvers.

A resolver maps an incoming request to the string the throttle counts
against. An empty string means the client could not be identified.
"""

from __future__ import annotations

from typing import Callable

from starlette.requests import Request

IdentifierResolver = Callable[[Request], str | None]


def client_ip_identifier(request: Request) -> str:
    """Use the network address of the connected peer."""

    return request.client.host if request.client else ""


def forwarded_ip_identifier(request: Request) -> str:
    """Use the original client address reported by a reverse proxy.

    Only safe when every request passes through a proxy that overwrites these
    headers, otherwise clients can pick their own identifier.
    """

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip

    return client_ip_identifier(request)


def api_key_or_ip_identifier(request: Request) -> str:
    """Namespace by API key when the caller sends one, by client address otherwise."""

    api_key = request.headers.get("X-API-Key")
    if api_key:
        return f"api_key:{api_key}"

    client_host = client_ip_identifier(request)
    return f"ip:{client_host}" if client_host else ""


RESOLVERS: dict[str, IdentifierResolver] = {
    "ip": client_ip_identifier,
    "forwarded": forwarded_ip_identifier,
    "api_key": api_key_or_ip_identifier,
}


def get_identifier_resolver(name: str) -> IdentifierResolver:
    """Look up a resolver by its configuration name.

    Raises:
        KeyError: If no resolver is registered under that name.
    """

    return RESOLVERS[name]
