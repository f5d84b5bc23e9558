"""Public client configuration (no auth)."""

from fastapi import APIRouter
from pydantic import BaseModel

from portal.core.config import settings

router = APIRouter()


class PublicConfig(BaseModel):
    payment_publishable_key: str
    min_funding_amount: float
    environment: str


@router.get("", response_model=PublicConfig)
async def get_public_config() -> PublicConfig:
    return PublicConfig(
        payment_publishable_key=settings.PAYMENT_PUBLISHABLE_KEY,
        min_funding_amount=settings.MIN_FUNDING_AMOUNT,
        environment=settings.ENVIRONMENT,
    )
