"""User profile and role/status management schemas."""

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from portal.schemas.common import BackendModel
from portal.schemas.donation_request import BloodGroup

UserStatus = Literal["active", "blocked"]


class User(BackendModel):
    id: str = Field(alias="_id")
    name: str | None = None
    email: str | None = None
    avatar: str | None = None
    blood_group: str | None = None
    division: str | None = None
    district: str | None = None
    upazila: str | None = None
    role: str = "donor"
    status: str = "active"

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: str | None) -> str:
        return (v or "donor").strip().lower()

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: str | None) -> str:
        return (v or "active").strip().lower()


class RegisterRequest(BackendModel):
    """Profile saved after the identity provider has created the account."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    avatar: str | None = Field(None, max_length=2000)
    blood_group: BloodGroup
    division_id: str = Field(..., min_length=1)
    district_id: str = Field(..., min_length=1)
    upazila_id: str = Field(..., min_length=1)


class ProfileUpdate(BackendModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    avatar: str | None = Field(None, max_length=2000)
    blood_group: BloodGroup | None = None
    district: str | None = Field(None, max_length=100)
    upazila: str | None = Field(None, max_length=100)


class RoleChangeRequest(BaseModel):
    role: Literal["admin", "volunteer"]


class UserStatusChangeRequest(BaseModel):
    status: UserStatus
