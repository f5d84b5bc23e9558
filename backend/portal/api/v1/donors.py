"""Public donor search."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from portal.core.dependencies import get_backend, get_locations
from portal.core.exceptions import ProblemDetailError
from portal.schemas.donation_request import BLOOD_GROUPS, BloodGroup
from portal.schemas.user import User
from portal.services.backend_client import BackendClient
from portal.services.listing import count_by, filter_items
from portal.services.locations import InvalidLocation, LocationDirectory

router = APIRouter()


class DonorSearchResponse(BaseModel):
    donors: list[User]
    total: int
    blood_group_counts: dict[str, int]


@router.get("/search", response_model=DonorSearchResponse)
async def search_donors(
    blood_group: BloodGroup | None = Query(None),
    division: str | None = Query(None, description="Division id"),
    district: str | None = Query(None, description="District id"),
    upazila: str | None = Query(None, description="Upazila id"),
    name: str = Query("", max_length=100),
    backend: BackendClient = Depends(get_backend),
    locations: LocationDirectory = Depends(get_locations),
) -> DonorSearchResponse:
    """Forward the location/blood-group filters, then narrow by name locally.

    Location ids from the cascading dropdowns are sent as names, which is
    what donor profiles store.
    """
    try:
        div, dist, upa = locations.select(division, district, upazila)
    except InvalidLocation as exc:
        raise ProblemDetailError(status=422, title="Invalid Location", detail=str(exc)) from exc

    raw = await backend.search_donors(
        blood_group=blood_group,
        division=div.name if div else None,
        district=dist.name if dist else None,
        upazila=upa.name if upa else None,
    )
    donors = filter_items(
        [User.model_validate(d) for d in raw], search=name, search_fields=("name",)
    )
    return DonorSearchResponse(
        donors=donors,
        total=len(donors),
        blood_group_counts=count_by(donors, "blood_group", BLOOD_GROUPS),
    )
