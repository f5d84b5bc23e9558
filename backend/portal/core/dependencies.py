"""FastAPI dependency chain: bearer token → PortalSession → role gates."""

import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from portal.core.exceptions import BackendError
from portal.core.security import decode_access_token
from portal.services.backend_client import BackendClient
from portal.services.inflight import InFlightGuard
from portal.services.locations import LocationDirectory
from portal.services.request_workflow import RequestWorkflow
from portal.services.session import PortalSession, SessionRegistry

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_guard(request: Request) -> InFlightGuard:
    return request.app.state.inflight


def get_locations(request: Request) -> LocationDirectory:
    return request.app.state.locations


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")
    return credentials.credentials


async def lookup_role(backend: BackendClient, token: str, email: str) -> str:
    try:
        data = await backend.get_user_role(token, email)
    except BackendError as exc:
        if exc.status in (401, 403):
            raise HTTPException(
                status_code=exc.status, detail="Session rejected by backend"
            ) from exc
        if exc.status != 404:
            raise
        data = {}
    return (data.get("role") or "donor").strip().lower()


async def get_session(
    token: str = Depends(get_bearer_token),
    registry: SessionRegistry = Depends(get_registry),
    backend: BackendClient = Depends(get_backend),
) -> PortalSession:
    """Resolve the caller's session.

    Tokens the registry has not seen (e.g. after a restart) are rebuilt from
    the token's claims and a role lookup. A session whose token has expired
    is closed and the request rejected.
    """
    session = registry.get(token)
    if session is not None:
        if not session.expired():
            return session
        registry.close(token)
        raise HTTPException(status_code=401, detail="Session expired")

    try:
        claims = decode_access_token(token)
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}") from e

    email = claims.get("email")
    if not email:
        raise HTTPException(status_code=401, detail="Token missing email claim")

    role = await lookup_role(backend, token, email)
    logger.debug("Rebuilt session for %s from token claims", email)
    return registry.open(
        PortalSession(
            token=token,
            email=email,
            name=claims.get("name"),
            role=role,
            expires_at=claims.get("exp"),
        )
    )


async def require_privileged(
    session: PortalSession = Depends(get_session),
) -> PortalSession:
    if not session.is_privileged:
        raise HTTPException(status_code=403, detail="Requires admin or volunteer role")
    return session


async def require_admin(
    session: PortalSession = Depends(get_session),
) -> PortalSession:
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Requires admin role")
    return session


def get_workflow(
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
    guard: InFlightGuard = Depends(get_guard),
    locations: LocationDirectory = Depends(get_locations),
) -> RequestWorkflow:
    return RequestWorkflow(backend, guard, session, locations)
