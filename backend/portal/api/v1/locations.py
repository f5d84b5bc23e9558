"""Cascading division → district → upazila dropdown data."""

from fastapi import APIRouter, Depends, HTTPException

from portal.core.dependencies import get_locations
from portal.schemas.location import District, Division, Upazila
from portal.services.locations import LocationDirectory

router = APIRouter()


@router.get("/divisions", response_model=list[Division])
async def list_divisions(
    locations: LocationDirectory = Depends(get_locations),
) -> list[Division]:
    return locations.divisions


@router.get("/divisions/{division_id}/districts", response_model=list[District])
async def list_districts(
    division_id: str,
    locations: LocationDirectory = Depends(get_locations),
) -> list[District]:
    if locations.division(division_id) is None:
        raise HTTPException(status_code=404, detail="Division not found")
    return locations.districts_of(division_id)


@router.get("/districts/{district_id}/upazilas", response_model=list[Upazila])
async def list_upazilas(
    district_id: str,
    locations: LocationDirectory = Depends(get_locations),
) -> list[Upazila]:
    return locations.upazilas_of(district_id)
