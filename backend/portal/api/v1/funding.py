"""Funding: list contributions, start a payment, record a paid contribution.

Card details never pass through here; the browser confirms the payment with
the processor's client library using the returned client secret.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from portal.core.config import settings
from portal.core.dependencies import get_backend, get_session
from portal.core.exceptions import BackendError, ProblemDetailError
from portal.schemas.funding import (
    Funding,
    FundingList,
    FundingRecordRequest,
    PaymentIntentRequest,
    PaymentIntentResponse,
)
from portal.services.backend_client import BackendClient
from portal.services.session import PortalSession

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_minimum(amount: float) -> None:
    if amount < settings.MIN_FUNDING_AMOUNT:
        raise ProblemDetailError(
            status=422,
            title="Amount Too Small",
            detail=f"Minimum donation is {settings.MIN_FUNDING_AMOUNT:g} Taka",
        )


@router.get("", response_model=FundingList)
async def list_funding(
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> FundingList:
    funds = [Funding.model_validate(f) for f in await backend.list_funding(session.token)]
    return FundingList(items=funds, total_amount=sum(f.amount for f in funds))


@router.post("/payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> PaymentIntentResponse:
    _check_minimum(body.amount)
    data = await backend.create_payment_intent(session.token, body.amount)
    client_secret = (data or {}).get("clientSecret")
    if not client_secret:
        raise BackendError(502, "Failed to initiate payment. Please try again.")
    return PaymentIntentResponse(client_secret=client_secret)


@router.post("", status_code=201)
async def record_funding(
    body: FundingRecordRequest,
    session: PortalSession = Depends(get_session),
    backend: BackendClient = Depends(get_backend),
) -> dict:
    _check_minimum(body.amount)
    payload = {
        "name": session.display_name,
        "email": session.email,
        "amount": body.amount,
        "transactionId": body.transaction_id,
        "date": datetime.now(UTC).date().isoformat(),
    }
    data = await backend.record_funding(session.token, payload)
    inserted_id = (data or {}).get("insertedId")
    if not inserted_id:
        raise BackendError(502, "Backend did not record the payment")
    logger.info("Funding %s of %s recorded for %s", body.transaction_id, body.amount, session.email)
    return {
        "inserted_id": str(inserted_id),
        "message": f"You have donated ৳{body.amount:g} to the cause.",
    }
