"""Funding (payment) schemas."""

from pydantic import BaseModel, Field

from portal.schemas.common import BackendModel


class Funding(BackendModel):
    name: str | None = None
    email: str | None = None
    amount: float = 0.0
    transaction_id: str | None = None
    date: str | None = None


class FundingList(BaseModel):
    items: list[Funding]
    total_amount: float


class PaymentIntentRequest(BaseModel):
    amount: float = Field(..., gt=0)


class PaymentIntentResponse(BaseModel):
    client_secret: str


class FundingRecordRequest(BaseModel):
    amount: float = Field(..., gt=0)
    transaction_id: str = Field(..., min_length=1, max_length=255)
