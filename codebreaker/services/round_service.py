"""Round service: opening, closing, and reading contest rounds."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID
import uuid
import logging

from codebreaker.config import get_settings
from codebreaker.models.round import Round
from codebreaker.models.winner import Winner
from codebreaker.utils import run_in_transaction
from codebreaker.utils.datetime_helpers import utc_now
from codebreaker.utils.exceptions import RoundNotFoundError, RoundAlreadyEndedError

logger = logging.getLogger(__name__)


async def get_active_round(db: AsyncSession, for_update: bool = False) -> Optional[Round]:
    """Fetch the single active round, if any."""
    stmt = (
        select(Round)
        .where(Round.is_active.is_(True))
        .limit(1)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def close_round(round_object: Round, now: datetime) -> None:
    """Mark a round ended. Callers run this inside their own transaction."""
    round_object.is_active = False
    round_object.end_time = now
    logger.info(f"Round {round_object.round_id} (#{round_object.round_number}) ended "
                f"with {round_object.winner_count} winners")


class RoundService:
    """Service for the round lifecycle: created -> active -> ended."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.settings = get_settings()
        self.clock = clock

    async def start_round(self) -> Round:
        """
        End the active round (if any) and open the next one.

        - Round number is the previous maximum + 1 (1 for the first round)
        - Winner count starts at 0 with the configured quota

        Runs as a single transaction; a concurrent start makes one side retry.
        """
        async def _start_round_impl() -> Round:
            now = self.clock()

            result = await self.db.execute(select(func.max(Round.round_number)))
            last_number = result.scalar()
            active = await get_active_round(self.db, for_update=True)

            if active is not None:
                close_round(active, now)
                # Deactivate before inserting so the single-active index never sees two rows
                await self.db.flush()

            round_object = Round(
                round_id=uuid.uuid4(),
                round_number=(last_number or 0) + 1,
                is_active=True,
                winner_count=0,
                max_winners=self.settings.max_winners_per_round,
                start_time=now,
            )
            self.db.add(round_object)
            return round_object

        round_object = await run_in_transaction(self.db, _start_round_impl, name="start_round")
        logger.info(f"New round started: {round_object.round_id} (#{round_object.round_number})")
        return round_object

    async def end_round(self, round_id: UUID) -> Round:
        """
        Manually end an active round.

        Raises:
            RoundNotFoundError: If the round does not exist
            RoundAlreadyEndedError: If the round is no longer active
        """
        async def _end_round_impl() -> Round:
            result = await self.db.execute(
                select(Round)
                .where(Round.round_id == round_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            round_object = result.scalar_one_or_none()
            if round_object is None:
                raise RoundNotFoundError("Round not found.")
            if not round_object.is_active:
                raise RoundAlreadyEndedError("Round is not active.")
            close_round(round_object, self.clock())
            return round_object

        return await run_in_transaction(self.db, _end_round_impl, name="end_round")

    async def get_active_round(self) -> Optional[Round]:
        return await get_active_round(self.db)

    async def get_round(self, round_id: UUID) -> Round:
        result = await self.db.execute(select(Round).where(Round.round_id == round_id))
        round_object = result.scalar_one_or_none()
        if round_object is None:
            raise RoundNotFoundError("Round not found.")
        return round_object

    async def list_winners(self, round_id: UUID) -> list[Winner]:
        """Winners of a round in rank order."""
        await self.get_round(round_id)
        result = await self.db.execute(
            select(Winner).where(Winner.round_id == round_id).order_by(Winner.winner_number)
        )
        return list(result.scalars().all())
