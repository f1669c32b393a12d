from __future__ import annotations

from fastapi import HTTPException, Request

from ..ratelimit.limiter import Identifier
from .tokens import TokenRegistry

# Checked in order; the first present header wins.
_IP_HEADERS = ("x-nf-client-ip", "x-forwarded-for", "x-real-ip")


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


def get_current_user(request: Request, tokens: TokenRegistry) -> dict | None:
    """Return the user behind the bearer token, or ``None``."""
    token = bearer_token(request)
    if token is None:
        return None
    return tokens.lookup(token)


def client_ip(request: Request) -> str:
    for name in _IP_HEADERS:
        value = request.headers.get(name)
        if value:
            return value.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def resolve_identifier(request: Request, tokens: TokenRegistry) -> Identifier:
    """Rate-limit identity: the authenticated user if any, else the client IP."""
    user = get_current_user(request, tokens)
    if user:
        return Identifier(value=str(user["user_id"]), type="user")
    return Identifier(value=client_ip(request), type="ip")


def require_admin(request: Request, tokens: TokenRegistry) -> dict:
    """Raise 401 if no valid token, 403 if not admin."""
    user = get_current_user(request, tokens)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
