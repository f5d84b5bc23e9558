"""Blood group compatibility chart."""

from fastapi import APIRouter, Query
from pydantic import BaseModel

from portal.schemas.donation_request import BLOOD_GROUPS, BloodGroup
from portal.services.compatibility import chart_entry, is_compatible

router = APIRouter()


class CompatibilityEntry(BaseModel):
    group: str
    can_donate_to: list[str]
    can_receive_from: list[str]


class CompatibilityCheck(BaseModel):
    donor: str
    recipient: str
    compatible: bool


@router.get("", response_model=list[CompatibilityEntry])
async def compatibility_chart() -> list[CompatibilityEntry]:
    return [CompatibilityEntry(group=g, **chart_entry(g)) for g in BLOOD_GROUPS]


@router.get("/lookup", response_model=CompatibilityEntry)
async def lookup_group(group: BloodGroup = Query(...)) -> CompatibilityEntry:
    return CompatibilityEntry(group=group, **chart_entry(group))


@router.get("/check", response_model=CompatibilityCheck)
async def check_pair(
    donor: BloodGroup = Query(...),
    recipient: BloodGroup = Query(...),
) -> CompatibilityCheck:
    return CompatibilityCheck(
        donor=donor, recipient=recipient, compatible=is_compatible(donor, recipient)
    )
