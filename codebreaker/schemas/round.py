"""Round-related Pydantic schemas."""
from typing import Optional
from uuid import UUID

from codebreaker.schemas.base import BaseSchema, UTCDatetime


class StartRoundResponse(BaseSchema):
    """Start round response."""
    success: bool = True
    round_id: UUID
    round_number: int
    message: str


class FinishRoundResponse(BaseSchema):
    """Finish round response."""
    success: bool
    message: str


class RoundSummary(BaseSchema):
    """Public view of a round."""
    round_id: UUID
    round_number: int
    is_active: bool
    winner_count: int
    max_winners: int
    start_time: UTCDatetime
    end_time: Optional[UTCDatetime] = None


class WinnerEntry(BaseSchema):
    """A winner as listed publicly (no secret code)."""
    winner_number: int
    player_id: UUID
    won_at: UTCDatetime
