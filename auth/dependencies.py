"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_current_user() hands the raw Authorization header to the gateway and
returns the token's owner. Every failure surfaces as auth.exceptions.
Unauthorized, which api/main.py renders as 401 {"error": "Unauthorized"}.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.gateway import AuthGateway
from auth.models import User


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def get_current_user(request: Request) -> User:
    """Require a current, valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    return get_gateway(request).access_protected_resource(request.headers.get("Authorization"))
