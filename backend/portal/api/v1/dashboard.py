"""Dashboard landing summary, shaped by the caller's role."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.core.dependencies import get_backend, get_session
from portal.schemas.donation_request import DonationRequest
from portal.services.backend_client import BackendClient
from portal.services.request_list import (
    ALL_REQUESTS,
    MY_REQUESTS,
    fetch_collection,
    status_counts,
)
from portal.services.session import PortalSession

router = APIRouter()

RECENT_LIMIT = 3


class DashboardSummary(BaseModel):
    role: str
    display_name: str
    recent_requests: list[DonationRequest] = []
    status_counts: dict[str, int] = {}
    total_users: int | None = None
    total_requests: int | None = None
    total_funding: float | None = None
    stale: bool = False


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> DashboardSummary:
    summary = DashboardSummary(role=session.role, display_name=session.display_name)

    if not session.is_privileged:
        view = session.view(MY_REQUESTS)
        await view.load(lambda: backend.list_requests(session.token, email=session.email))
        # Backend order is kept; the three shown are whatever it lists first
        summary.recent_requests = view.items[:RECENT_LIMIT]
        summary.status_counts = status_counts(view.items)
        summary.stale = view.stale
        return summary

    view = session.view(ALL_REQUESTS)
    await view.load(lambda: backend.list_all_requests(session.token))
    users = await backend.list_users(session.token)
    funds = await backend.list_funding(session.token)
    summary.status_counts = status_counts(view.items)
    summary.total_requests = len(view.items)
    summary.total_users = len(users)
    summary.total_funding = sum(float(f.get("amount") or 0) for f in funds)
    summary.stale = view.stale
    return summary
