"""Read-only player views."""
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codebreaker.models.round import Round
from codebreaker.models.user_code import UserCode
from codebreaker.services.round_service import get_active_round

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealedDigit:
    position: int
    digit: int


@dataclass
class PlayerRoundStatus:
    """What a player may see about their progress in the active round."""
    round_id: Optional[UUID]
    round_number: Optional[int]
    winner_count: int
    max_winners: int
    has_code: bool
    attempts: int = 0
    hint_purchases: int = 0
    is_winner: bool = False
    revealed_digits: list[RevealedDigit] = field(default_factory=list)


class PlayerService:
    """Service assembling the player-facing view of round state."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_round_status(self, player_id: UUID) -> PlayerRoundStatus:
        """
        Summarize the active round for a player.

        Only digits at positions the player paid to reveal are included; the
        rest of the secret never leaves the server.
        """
        round_object: Optional[Round] = await get_active_round(self.db)
        if round_object is None:
            return PlayerRoundStatus(
                round_id=None,
                round_number=None,
                winner_count=0,
                max_winners=0,
                has_code=False,
            )

        result = await self.db.execute(
            select(UserCode).where(
                UserCode.player_id == player_id,
                UserCode.round_id == round_object.round_id,
            )
        )
        user_code = result.scalar_one_or_none()

        status = PlayerRoundStatus(
            round_id=round_object.round_id,
            round_number=round_object.round_number,
            winner_count=round_object.winner_count,
            max_winners=round_object.max_winners,
            has_code=user_code is not None,
        )
        if user_code is not None:
            digits = user_code.digits
            status.attempts = user_code.attempts
            status.hint_purchases = user_code.hint_purchases
            status.is_winner = user_code.is_winner
            status.revealed_digits = [
                RevealedDigit(position=pos, digit=digits[pos]) for pos in (user_code.revealed_digits or [])
            ]
        return status
