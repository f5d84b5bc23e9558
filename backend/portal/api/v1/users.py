"""User registration, profile and admin user management.

POST  /users               save the registration profile (role donor, status active)
GET   /users/me            caller's profile
PATCH /users/me            update caller's profile
GET   /users               admin: list with status filter + name/email search
PATCH /users/{id}/role     admin: promote to admin or volunteer
PATCH /users/{id}/status   admin: block / unblock
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from portal.core.dependencies import get_backend, get_locations, get_session, require_admin
from portal.core.exceptions import ProblemDetailError
from portal.schemas.common import MutationResult, Page
from portal.schemas.user import (
    ProfileUpdate,
    RegisterRequest,
    RoleChangeRequest,
    User,
    UserStatusChangeRequest,
)
from portal.services.backend_client import BackendClient
from portal.services.listing import filter_items, page_of
from portal.services.locations import InvalidLocation, LocationDirectory
from portal.services.session import PortalSession

logger = logging.getLogger(__name__)

router = APIRouter()

USERS_PAGE_SIZE = 10


@router.post("", status_code=201)
async def register(
    body: RegisterRequest,
    backend: BackendClient = Depends(get_backend),
    locations: LocationDirectory = Depends(get_locations),
) -> dict:
    try:
        division, district, upazila = locations.resolve(
            body.division_id, body.district_id, body.upazila_id
        )
    except InvalidLocation as exc:
        raise ProblemDetailError(status=422, title="Invalid Location", detail=str(exc)) from exc

    payload = {
        "name": body.name,
        "email": body.email,
        "avatar": body.avatar,
        "bloodGroup": body.blood_group,
        "division": division.name,
        "district": district.name,
        "upazila": upazila.name,
        "role": "donor",
        "status": "active",
    }
    data = await backend.create_user(None, payload) or {}
    if not data.get("insertedId"):
        # Backend answers without insertedId when the email is already registered
        return {"inserted_id": None, "message": "Profile already exists"}
    logger.info("Registered donor %s", body.email)
    return {"inserted_id": str(data["insertedId"]), "message": "Registration Successful!"}


@router.get("/me", response_model=User)
async def my_profile(
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> User:
    data = await backend.get_user(session.token, session.email)
    if not data:
        raise HTTPException(status_code=404, detail="Profile not found")
    return User.model_validate(data)


@router.patch("/me", response_model=MutationResult)
async def update_my_profile(
    body: ProfileUpdate,
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> MutationResult:
    changes = body.model_dump(by_alias=True, exclude_none=True)
    if not changes:
        return MutationResult(modified=False)
    profile = await backend.get_user(session.token, session.email)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    user = User.model_validate(profile)
    data = await backend.update_user(session.token, user.id, changes)
    if not (data or {}).get("modifiedCount"):
        return MutationResult(modified=False)
    if body.name:
        session.name = body.name
    return MutationResult(modified=True, message="Profile updated")


@router.get("", response_model=Page[User])
async def list_users(
    status: str = Query("all", pattern="^(all|active|blocked)$"),
    search: str = Query("", max_length=100),
    page: int = Query(1, ge=1),
    session: PortalSession = Depends(require_admin),
    backend: BackendClient = Depends(get_backend),
) -> Page[User]:
    users = [User.model_validate(u) for u in await backend.list_users(session.token)]
    filtered = filter_items(users, status=status, search=search, search_fields=("name", "email"))
    return Page[User](**page_of(filtered, page, USERS_PAGE_SIZE))


@router.patch("/{user_id}/role", response_model=MutationResult)
async def change_role(
    user_id: str,
    body: RoleChangeRequest,
    session: PortalSession = Depends(require_admin),
    backend: BackendClient = Depends(get_backend),
) -> MutationResult:
    if body.role == "admin":
        data = await backend.make_admin(session.token, user_id)
    else:
        data = await backend.make_volunteer(session.token, user_id)
    if not (data or {}).get("modifiedCount"):
        return MutationResult(modified=False)
    logger.info("User %s promoted to %s by %s", user_id, body.role, session.email)
    return MutationResult(modified=True, message=f"User is now {body.role}")


@router.patch("/{user_id}/status", response_model=MutationResult)
async def change_status(
    user_id: str,
    body: UserStatusChangeRequest,
    session: PortalSession = Depends(require_admin),
    backend: BackendClient = Depends(get_backend),
) -> MutationResult:
    data = await backend.set_user_status(session.token, user_id, body.status)
    if not (data or {}).get("modifiedCount"):
        return MutationResult(modified=False)
    logger.info("User %s set to %s by %s", user_id, body.status, session.email)
    return MutationResult(modified=True, message=f"User is now {body.status}")
