"""Row loaders shared by the transactional services.

Every loader refreshes rows already present in the session so a transaction
always starts from what the database currently holds.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codebreaker.models.player import Player
from codebreaker.models.round import Round
from codebreaker.models.user_code import UserCode
from codebreaker.services.round_service import get_active_round
from codebreaker.utils.exceptions import NoActiveRoundError, NoCodeAssignedError, PlayerNotFoundError


async def load_player(db: AsyncSession, player_id: UUID) -> Optional[Player]:
    result = await db.execute(
        select(Player)
        .where(Player.player_id == player_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_user_code(db: AsyncSession, player_id: UUID, round_id: UUID) -> Optional[UserCode]:
    result = await db.execute(
        select(UserCode)
        .where(UserCode.player_id == player_id, UserCode.round_id == round_id)
        .limit(1)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_active_round(db: AsyncSession) -> Round:
    round_object = await get_active_round(db, for_update=True)
    if round_object is None:
        raise NoActiveRoundError("No active round found.")
    return round_object


async def require_player_state(db: AsyncSession, player_id: UUID) -> tuple[Round, Player, UserCode]:
    """Load the active round, the player, and the player's code for that round.

    Raises:
        NoActiveRoundError: If no round is open
        PlayerNotFoundError: If the player has no profile yet
        NoCodeAssignedError: If the player has no code in the active round
    """
    round_object = await require_active_round(db)

    player = await load_player(db, player_id)
    if player is None:
        raise PlayerNotFoundError("Player data not found.")

    user_code = await load_user_code(db, player_id, round_object.round_id)
    if user_code is None:
        raise NoCodeAssignedError("Player has no code assigned for the current round.")

    return round_object, player, user_code
