"""Payment processor webhook router.

The processor delivers confirmations at least once. Every request that gets
past payload checks receives exactly one 200 answer, whether the payment was
applied now, earlier, or cannot be applied, so the processor never redelivers
a confirmation that has already been handled.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from codebreaker.database import get_db
from codebreaker.dependencies import verify_payment_webhook
from codebreaker.schemas.payment import PaymentConfirmationRequest, PaymentConfirmationResponse
from codebreaker.services import ConfirmationOutcome, HintService
from codebreaker.utils.exceptions import PaymentNotFoundError, PaymentStateError

logger = logging.getLogger(__name__)

router = APIRouter()

CONFIRMATION_MESSAGES = {
    ConfirmationOutcome.HINT_PROVIDED: "Payment confirmed and hint provided.",
    ConfirmationOutcome.ALREADY_PROCESSED: "Payment already processed.",
    ConfirmationOutcome.PAYMENT_FAILED: "External payment verification failed.",
}


@router.post(
    "/confirm",
    response_model=PaymentConfirmationResponse,
    dependencies=[Depends(verify_payment_webhook)],
)
async def confirm_payment(
    request: PaymentConfirmationRequest,
    db: AsyncSession = Depends(get_db),
):
    """Apply a processor-verified hint payment."""
    if not request.payment_id or not request.transaction_id:
        logger.warning("Missing paymentId or transactionId in confirmPayment request body.")
        raise HTTPException(status_code=400, detail="Bad Request: Missing paymentId or transactionId.")

    try:
        payment_id = UUID(request.payment_id)
    except ValueError:
        logger.warning(f"Malformed payment id in confirmation: {request.payment_id!r}")
        return PaymentConfirmationResponse(success=False, status="unknown", message="Payment record not found internally.")

    try:
        confirmation = await HintService(db).confirm_payment(
            payment_id, request.transaction_id, verified=request.verified
        )
    except PaymentNotFoundError:
        logger.warning(f"Payment record not found for ID: {payment_id}")
        return PaymentConfirmationResponse(success=False, status="unknown", message="Payment record not found internally.")
    except PaymentStateError as exc:
        logger.warning(f"Payment {payment_id} rejected: {exc}")
        return PaymentConfirmationResponse(success=False, status="rejected", message="Payment is not in pending state.")

    return PaymentConfirmationResponse(
        success=confirmation.outcome != ConfirmationOutcome.PAYMENT_FAILED,
        status=confirmation.status.value,
        message=CONFIRMATION_MESSAGES[confirmation.outcome],
    )
