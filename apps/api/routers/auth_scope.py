"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import settings
from services.errors import Unauthorized
from services.session_token import resolve_principal_id


auth_scheme = HTTPBearer(auto_error=False)

_UNRESOLVED = object()


@dataclass
class AuthContext:
    user_id: str


def session_token_from_request(request: Request) -> Optional[str]:
    """Bearer header first, then the identity provider's session cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return cookie or None


def resolve_request_principal(request: Request) -> Optional[str]:
    """Principal id cached on the request by the access gate, resolved lazily otherwise."""
    cached = getattr(request.state, "principal_id", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached
    principal_id = resolve_principal_id(session_token_from_request(request))
    request.state.principal_id = principal_id
    return principal_id


async def get_auth_context(
    request: Request,
    _credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> AuthContext:
    """Resolve the authenticated user or fail with Unauthorized."""
    principal_id = resolve_request_principal(request)
    if not principal_id:
        raise Unauthorized("Unauthorized")
    return AuthContext(user_id=principal_id)
