"""Donation request schemas (backend documents, form payloads, list pages)."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from portal.schemas.common import BackendModel, Page

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
REQUEST_STATUSES = ("pending", "inprogress", "done", "canceled")

BloodGroup = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
RequestStatus = Literal["pending", "inprogress", "done", "canceled"]
StatusFilter = Literal["all", "pending", "inprogress", "done", "canceled"]


class TargetDonor(BackendModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None


class DonationRequest(BackendModel):
    id: str = Field(alias="_id")
    requester_name: str | None = None
    requester_email: str | None = None
    recipient_name: str | None = None
    recipient_district: str | None = None
    recipient_upazila: str | None = None
    hospital_name: str | None = None
    full_address: str | None = None
    blood_group: str | None = None
    donation_date: str | None = None
    donation_time: str | None = None
    request_message: str | None = None
    status: str = "pending"
    donor_name: str | None = None
    donor_email: str | None = None
    target_donor: TargetDonor | None = None


class DonationRequestForm(BackendModel):
    """Fields the requester fills in on the create/edit forms."""

    recipient_name: str = Field(..., min_length=1, max_length=255)
    recipient_district: str = Field(..., min_length=1, max_length=100)
    recipient_upazila: str = Field(..., min_length=1, max_length=100)
    hospital_name: str = Field(..., min_length=1, max_length=255)
    full_address: str = Field(..., min_length=1, max_length=1000)
    blood_group: BloodGroup
    donation_date: date
    donation_time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    request_message: str = Field(..., min_length=1, max_length=2000)


class DonationRequestCreate(DonationRequestForm):
    target_donor: TargetDonor | None = None


class StatusUpdateRequest(BaseModel):
    status: RequestStatus


class CreateRequestResponse(BaseModel):
    inserted_id: str
    message: str


class RequestPage(Page[DonationRequest]):
    status_counts: dict[str, int]
    stale: bool = False


class RequestDetail(BaseModel):
    request: DonationRequest
    related: list[DonationRequest]
