"""Payment webhook schemas."""
from typing import Optional

from pydantic import BaseModel, Field

from codebreaker.schemas.base import BaseSchema


class PaymentConfirmationRequest(BaseModel):
    """Payload sent by the payment processor once it has checked a transaction."""
    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    verified: bool = True

    model_config = {"populate_by_name": True}


class PaymentConfirmationResponse(BaseSchema):
    """Terminal webhook acknowledgement."""
    success: bool
    status: str
    message: str
