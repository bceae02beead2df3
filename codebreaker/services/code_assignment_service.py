"""Secret code assignment."""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID
import random
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codebreaker.config import get_settings
from codebreaker.models.player import Player
from codebreaker.models.user_code import UserCode
from codebreaker.services.code_generator import CodeGenerator, code_to_string
from codebreaker.services.helpers import load_player, load_user_code, require_active_round
from codebreaker.utils import run_in_transaction
from codebreaker.utils.datetime_helpers import utc_now
from codebreaker.utils.exceptions import CodeGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeAssignment:
    """Outcome of a code assignment. Never carries the secret itself."""
    round_id: UUID
    round_number: int
    already_assigned: bool


class CodeAssignmentService:
    """Gives each player exactly one secret code per round, unique within the round."""

    def __init__(
        self,
        db: AsyncSession,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = get_settings()
        self.clock = clock
        self.generator = CodeGenerator(rng=rng, max_attempts=self.settings.code_generation_max_attempts)

    async def assign_code(self, player_id: UUID, email: str | None = None) -> CodeAssignment:
        """
        Assign a secret code for the active round, or confirm the existing one.

        Idempotent: a player who already holds a code for the active round gets
        it back unchanged. A new code is checked against every other code in the
        round inside the same transaction; the unique constraint on
        (round, code) backs the check up against concurrent assignments.

        Raises:
            NoActiveRoundError: If no round is open
            CodeGenerationError: If no collision-free code was found
        """
        async def _assign_code_impl() -> CodeAssignment:
            round_object = await require_active_round(self.db)

            existing = await load_user_code(self.db, player_id, round_object.round_id)
            if existing is not None:
                logger.info(f"Player {player_id} already has a code for round {round_object.round_id}")
                return CodeAssignment(round_object.round_id, round_object.round_number, already_assigned=True)

            secret_code = await self._generate_unique_code(round_object.round_id)

            player = await load_player(self.db, player_id)
            if player is None:
                player = Player(player_id=player_id, email=email, created_at=self.clock())
                self.db.add(player)
            player.reset_round_state(round_object.round_id)
            if email and not player.email:
                player.email = email
            # Player row must exist before the code that references it
            await self.db.flush()

            self.db.add(UserCode(
                user_code_id=uuid.uuid4(),
                player_id=player_id,
                round_id=round_object.round_id,
                secret_code=secret_code,
                attempts=0,
                hint_purchases=0,
                revealed_digits=[],
                is_winner=False,
                created_at=self.clock(),
            ))
            return CodeAssignment(round_object.round_id, round_object.round_number, already_assigned=False)

        assignment = await run_in_transaction(self.db, _assign_code_impl, name="assign_code")
        if not assignment.already_assigned:
            logger.info(f"Player {player_id} assigned new code for round {assignment.round_id}")
        return assignment

    async def _generate_unique_code(self, round_id: UUID) -> str:
        for _ in range(self.settings.code_assignment_max_attempts):
            candidate = code_to_string(self.generator.generate(self.settings.code_length))
            result = await self.db.execute(
                select(UserCode.user_code_id)
                .where(UserCode.round_id == round_id, UserCode.secret_code == candidate)
                .limit(1)
            )
            if result.scalar() is None:
                return candidate
        logger.error(f"No collision-free code found for round {round_id} after "
                     f"{self.settings.code_assignment_max_attempts} candidates")
        raise CodeGenerationError("Failed to assign a unique secret code.")
