"""Utilities for handling FastAPI requests."""

from fastapi import Request

from .config import settings


def get_client_ip(request: Request) -> str:
    """Extract client IP address.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address as string. Returns "unknown" if unable to determine.

    Notes:
        - Forwarding headers are only read when ``settings.trust_proxy_headers``
          is on, otherwise any client could pick its own IP
        - X-Forwarded-For first (load balancers/proxies), then X-Real-IP (nginx)
        - Falls back to request.client.host (direct connection)
    """
    if settings.trust_proxy_headers:
        forwarded_for: str | None = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First entry is the original client
            client_ip = forwarded_for.split(",")[0].strip()
            if client_ip:
                return client_ip

        real_ip: str | None = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

    if request.client and request.client.host:
        return str(request.client.host)

    return "unknown"


def is_api_request(request: Request) -> bool:
    """Check if request is to an API endpoint."""
    return str(request.url.path).startswith("/api/")


def is_password_reproof_request(request: Request) -> bool:
    """Check if request is a moderation write that re-proves a password."""
    return (
        request.method in ("POST", "PUT", "PATCH", "DELETE")
        and "/moderation/" in str(request.url.path)
    )
