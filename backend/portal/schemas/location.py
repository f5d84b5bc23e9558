"""Division/district/upazila lookup schemas."""

from pydantic import BaseModel


class Division(BaseModel):
    id: str
    name: str
    bn_name: str | None = None


class District(BaseModel):
    id: str
    division_id: str
    name: str
    bn_name: str | None = None


class Upazila(BaseModel):
    id: str
    district_id: str
    name: str
    bn_name: str | None = None
