"""Session endpoints.

POST   /auth/session  exchange a signed-in identity for a backend token
GET    /auth/me       the caller's session
DELETE /auth/session  logout: tear down the session and its cached views
"""

from fastapi import APIRouter, Depends, Response
from jose import JWTError
from pydantic import BaseModel, EmailStr, Field

from portal.core.dependencies import (
    get_backend,
    get_bearer_token,
    get_registry,
    get_session,
    lookup_role,
)
from portal.core.exceptions import BackendError
from portal.core.security import token_expiry
from portal.services.backend_client import BackendClient
from portal.services.session import PortalSession, SessionRegistry

router = APIRouter()


class SessionOpenRequest(BaseModel):
    email: EmailStr
    name: str | None = Field(None, max_length=255)


class SessionResponse(BaseModel):
    email: str
    name: str | None
    role: str
    is_admin: bool
    is_volunteer: bool


class SessionOpenResponse(SessionResponse):
    access_token: str


def _describe(session: PortalSession) -> dict:
    return {
        "email": session.email,
        "name": session.name,
        "role": session.role,
        "is_admin": session.is_admin,
        "is_volunteer": session.is_volunteer,
    }


@router.post("/session", response_model=SessionOpenResponse, status_code=201)
async def open_session(
    body: SessionOpenRequest,
    backend: BackendClient = Depends(get_backend),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionOpenResponse:
    """Called once the identity provider reports a signed-in user.

    The backend issues a token for whatever email is posted, so this route
    proves nothing about the caller. Expose it only to the trusted front-end
    that has already completed the identity provider's sign-in.
    """
    token = await backend.issue_token(body.email)
    try:
        expires_at = token_expiry(token)
    except JWTError as exc:
        raise BackendError(502, "Backend issued an unreadable token") from exc
    role = await lookup_role(backend, token, body.email)
    session = registry.open(
        PortalSession(
            token=token,
            email=body.email,
            name=body.name,
            role=role,
            expires_at=expires_at,
        )
    )
    return SessionOpenResponse(access_token=token, **_describe(session))


@router.get("/me", response_model=SessionResponse)
async def me(session: PortalSession = Depends(get_session)) -> SessionResponse:
    return SessionResponse(**_describe(session))


@router.delete("/session", status_code=204)
async def close_session(
    token: str = Depends(get_bearer_token),
    registry: SessionRegistry = Depends(get_registry),
) -> Response:
    registry.close(token)
    return Response(status_code=204)
