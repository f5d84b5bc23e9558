"""Donation request mutations: status workflow, claim, create/edit, delete.

Every mutation waits for the backend, then patches the session's cached
list views in place. A zero modified/deleted count is a no-op.
"""

import logging

from fastapi import HTTPException

from portal.core.exceptions import BackendError, BackendUnavailable, ProblemDetailError
from portal.schemas.common import MutationResult
from portal.schemas.donation_request import (
    DonationRequest,
    DonationRequestCreate,
    DonationRequestForm,
)
from portal.services.backend_client import BackendClient
from portal.services.inflight import InFlightGuard, hold
from portal.services.locations import InvalidLocation, LocationDirectory
from portal.services.session import PortalSession

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"done", "canceled"})

# What the requester may do to their own request. Admins and volunteers
# are not restricted.
REQUESTER_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["canceled"],
    "inprogress": ["done", "canceled"],
    "done": [],
    "canceled": [],
}

RELATED_LIMIT = 3


def _validate_transition(current: str, requested: str) -> None:
    """Raise 422 if the requester may not make this transition."""
    allowed = REQUESTER_TRANSITIONS.get(current, [])
    if requested not in allowed:
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Cannot move request from '{current}' to '{requested}'",
                "allowed": allowed,
            },
        )


def _count(data: dict | None, key: str) -> int:
    return int((data or {}).get(key) or 0)


def _guard_key(request_id: str) -> str:
    return f"donation-request:{request_id}"


class RequestWorkflow:
    def __init__(
        self,
        backend: BackendClient,
        guard: InFlightGuard,
        session: PortalSession,
        locations: LocationDirectory | None = None,
    ):
        self._backend = backend
        self._guard = guard
        self._session = session
        self._locations = locations

    async def _current(self, request_id: str) -> DonationRequest:
        data = await self._backend.get_request(request_id, token=self._session.token)
        if not data:
            raise HTTPException(status_code=404, detail="Donation request not found")
        return DonationRequest.model_validate(data)

    def _require_owner(self, record: DonationRequest) -> None:
        if record.requester_email != self._session.email:
            raise HTTPException(
                status_code=403, detail="Only the requester can change this request"
            )

    def _check_location(self, form: DonationRequestForm) -> None:
        if self._locations is None:
            return
        try:
            self._locations.check_names(form.recipient_district, form.recipient_upazila)
        except InvalidLocation as exc:
            raise ProblemDetailError(
                status=422, title="Invalid Location", detail=str(exc)
            ) from exc

    async def update_status(self, request_id: str, status: str) -> MutationResult:
        session = self._session
        async with hold(self._guard, _guard_key(request_id)):
            if session.is_privileged:
                current = session.find_request(request_id) or await self._current(
                    request_id
                )
                reopening = (
                    current.status in TERMINAL_STATUSES and status != current.status
                )
                if reopening:
                    # TODO: drop once the backend rejects reopening finished requests
                    logger.warning(
                        "%s reopened request %s: %s -> %s",
                        session.email,
                        request_id,
                        current.status,
                        status,
                    )
            else:
                current = await self._current(request_id)
                self._require_owner(current)
                _validate_transition(current.status, status)

            data = await self._backend.update_request(
                session.token, request_id, {"status": status}
            )
            if _count(data, "modifiedCount") == 0:
                return MutationResult(modified=False)

        session.patch_request(request_id, {"status": status})
        logger.info("Request %s set to %s by %s", request_id, status, session.email)
        return MutationResult(modified=True, message=f"Status: {status}")

    async def claim(self, request_id: str) -> MutationResult:
        """A donor volunteers for a pending request."""
        session = self._session
        async with hold(self._guard, _guard_key(request_id)):
            current = await self._current(request_id)
            if current.status != "pending":
                raise ProblemDetailError(
                    status=409,
                    title="Request Not Available",
                    detail=f"Request is already {current.status}",
                )
            changes = {
                "status": "inprogress",
                "donorName": session.display_name,
                "donorEmail": session.email,
            }
            data = await self._backend.update_request(session.token, request_id, changes)
            if _count(data, "modifiedCount") == 0:
                return MutationResult(modified=False)

        session.patch_request(
            request_id,
            {
                "status": "inprogress",
                "donor_name": session.display_name,
                "donor_email": session.email,
            },
        )
        return MutationResult(
            modified=True,
            message="Thank you for your generosity! The donation is now in progress.",
        )

    async def delete(self, request_id: str, *, confirm: bool) -> MutationResult:
        if not confirm:
            raise ProblemDetailError(
                status=428,
                title="Confirmation Required",
                detail="Deleting a request cannot be undone; resend with confirm=true",
            )
        session = self._session
        async with hold(self._guard, _guard_key(request_id)):
            if not session.is_admin:
                self._require_owner(
                    session.find_request(request_id) or await self._current(request_id)
                )
            data = await self._backend.delete_request(session.token, request_id)
            if _count(data, "deletedCount") == 0:
                return MutationResult(modified=False)

        session.remove_request(request_id)
        logger.info("Request %s deleted by %s", request_id, session.email)
        return MutationResult(modified=True, message="Request has been deleted.")

    async def create(self, form: DonationRequestCreate) -> str:
        """Submit a new pending request. Returns the backend's inserted id."""
        self._check_location(form)
        session = self._session
        payload = form.model_dump(by_alias=True, mode="json", exclude_none=True)
        payload.update(
            requesterName=session.display_name,
            requesterEmail=session.email,
            status="pending",
        )
        try:
            data = await self._backend.create_request(session.token, payload)
        except BackendError as exc:
            if exc.status == 403:
                raise ProblemDetailError(
                    status=403,
                    title="Access Denied",
                    detail="You are blocked and cannot create donation requests.",
                ) from exc
            raise
        inserted_id = (data or {}).get("insertedId")
        if not inserted_id:
            raise BackendError(502, "Backend did not confirm the new request")

        session.invalidate("mine")
        session.invalidate("all")
        logger.info("Request %s created by %s", inserted_id, session.email)
        return str(inserted_id)

    async def edit(self, request_id: str, form: DonationRequestForm) -> MutationResult:
        self._check_location(form)
        session = self._session
        async with hold(self._guard, _guard_key(request_id)):
            if not session.is_admin:
                current = await self._current(request_id)
                self._require_owner(current)
                if current.status != "pending":
                    raise ProblemDetailError(
                        status=409,
                        title="Request Locked",
                        detail="Only pending requests can be edited",
                    )
            data = await self._backend.update_request(
                session.token,
                request_id,
                form.model_dump(by_alias=True, mode="json"),
            )
            if _count(data, "modifiedCount") == 0:
                return MutationResult(modified=False)

        session.patch_request(request_id, form.model_dump(mode="json"))
        return MutationResult(modified=True, message="Request Updated!")


async def request_detail(
    backend: BackendClient, request_id: str
) -> tuple[DonationRequest, list[DonationRequest]]:
    """Fetch one request plus a few other pending requests for the same blood group."""
    data = await backend.get_request(request_id)
    if not data:
        raise HTTPException(status_code=404, detail="Donation request not found")
    record = DonationRequest.model_validate(data)

    related: list[DonationRequest] = []
    if record.blood_group:
        try:
            pending = await backend.list_requests(status="pending")
        except (BackendError, BackendUnavailable) as exc:
            logger.warning("Related requests for %s unavailable: %s", request_id, exc)
            pending = []
        for raw in pending:
            other = DonationRequest.model_validate(raw)
            if other.id != record.id and other.blood_group == record.blood_group:
                related.append(other)
            if len(related) == RELATED_LIMIT:
                break
    return record, related
