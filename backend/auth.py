"""
Authentication gate: resolves the caller's owner id for every /api route.
"""
from fastapi import Depends, Header, Request

from errors import AuthenticationError
from identity import IdentityProvider


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def require_token(authorization: str | None = Header(default=None)) -> str:
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Authentication required")
    return token


def get_owner(
    request: Request,
    authorization: str | None = Header(default=None),
    identity: IdentityProvider = Depends(get_identity),
) -> str | None:
    """
    Owner id for the current request.

    Single-tenant deployments return None and every query sees all rows.
    Multi-tenant deployments require a valid bearer token.
    """
    if not request.app.state.settings.multi_tenant:
        return None
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Authentication required")
    return identity.resolve(token)
