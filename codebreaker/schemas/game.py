"""Gameplay request and response schemas."""
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from codebreaker.schemas.base import BaseSchema


class AssignCodeResponse(BaseSchema):
    """Code assignment confirmation. The code itself is never included."""
    success: bool = True
    round_id: UUID
    already_assigned: bool
    message: str


class SubmitGuessRequest(BaseModel):
    """Submit guess request."""
    code: list[Any] = Field(..., description="Guessed digits, one per position, checked by the guess service")


class SubmitGuessResponse(BaseSchema):
    """Submit guess response."""
    success: bool = True
    is_correct: bool
    is_winner: bool
    round_ended: bool
    winner_number: Optional[int] = None
    message: str


class HintRequestResponse(BaseSchema):
    """Hint request response: a pending payment to be completed by the player."""
    success: bool = True
    payment_initiated: bool = True
    payment_id: UUID
    amount: float
    currency: str
    message: str


class RevealedDigitSchema(BaseSchema):
    position: int
    digit: int


class RoundStatusResponse(BaseSchema):
    """Player's progress in the active round."""
    round_id: Optional[UUID] = None
    round_number: Optional[int] = None
    winner_count: int
    max_winners: int
    has_code: bool
    attempts: int
    hint_purchases: int
    is_winner: bool
    revealed_digits: list[RevealedDigitSchema]
