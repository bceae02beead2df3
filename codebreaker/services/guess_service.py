"""Guess evaluation: the winner path of the contest."""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence
from uuid import UUID
import uuid
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from codebreaker.config import get_settings
from codebreaker.models.winner import Winner
from codebreaker.services.anti_cheat import AntiCheatLimiter
from codebreaker.services.helpers import require_player_state
from codebreaker.services.round_service import close_round
from codebreaker.utils import run_in_transaction
from codebreaker.utils.datetime_helpers import utc_now
from codebreaker.utils.exceptions import AlreadyWonError, InvalidArgumentError, RoundFullError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuessResult:
    correct: bool
    round_ended: bool
    winner_rank: Optional[int]


@dataclass(frozen=True)
class _GuessOutcome:
    result: Optional[GuessResult]
    rejection: Optional[RoundFullError] = None


def validate_guess(guess: Sequence[int], length: int) -> list[int]:
    """Check the guess is exactly ``length`` digits in 0-9.

    Raises:
        InvalidArgumentError: On any malformed entry
    """
    if isinstance(guess, (str, bytes)) or not isinstance(guess, Sequence):
        raise InvalidArgumentError(f"Invalid guessed code format. Must be an array of {length} digits.")
    if len(guess) != length:
        raise InvalidArgumentError(f"Invalid guessed code format. Must be an array of {length} digits.")
    for digit in guess:
        if isinstance(digit, bool) or not isinstance(digit, int) or not 0 <= digit <= 9:
            raise InvalidArgumentError(f"Invalid guessed code format. Must be an array of {length} digits.")
    return list(guess)


class GuessService:
    """Service evaluating guesses against a player's secret code."""

    def __init__(
        self,
        db: AsyncSession,
        limiter: AntiCheatLimiter | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = get_settings()
        self.limiter = limiter or AntiCheatLimiter()
        self.clock = clock

    async def submit_guess(self, player_id: UUID, guess: Sequence[int]) -> GuessResult:
        """
        Evaluate a guess for the active round.

        - Shape is validated before any transaction starts
        - Attempts are charged once the rate limiter lets the guess through
        - A correct guess takes the next rank; the rank equal to the quota closes the round

        The round row is version-checked on the winner path, so concurrent
        winners are serialized: the loser re-runs and sees the new count.

        Raises:
            InvalidArgumentError: Malformed guess
            NoActiveRoundError / PlayerNotFoundError / NoCodeAssignedError: Missing state
            AlreadyWonError: Player already won this round
            RateLimitExceededError: Guess window is full
            RoundFullError: Quota already met (attempt is still recorded)
        """
        guess = validate_guess(guess, self.settings.code_length)

        async def _submit_guess_impl() -> _GuessOutcome:
            now = self.clock()
            round_object, player, user_code = await require_player_state(self.db, player_id)

            # Both flags are checked in case an earlier write only reached one of them
            if player.is_winner_in_current_round or user_code.is_winner:
                raise AlreadyWonError("You have already won in this round.")

            self.limiter.register_guess(player, now)
            user_code.attempts += 1

            if guess != user_code.digits:
                return _GuessOutcome(GuessResult(correct=False, round_ended=False, winner_rank=None))

            if round_object.winner_count >= round_object.max_winners:
                logger.warning(f"Correct guess from {player_id} rejected, round {round_object.round_id} is full")
                return _GuessOutcome(None, RoundFullError("Round has already reached maximum winners."))

            rank = round_object.winner_count + 1
            round_object.winner_count = rank
            user_code.is_winner = True
            player.is_winner_in_current_round = True
            self.db.add(Winner(
                winner_id=uuid.uuid4(),
                round_id=round_object.round_id,
                player_id=player_id,
                winner_number=rank,
                won_at=now,
                secret_code_at_win=user_code.secret_code,
            ))

            round_ended = rank == round_object.max_winners
            if round_ended:
                close_round(round_object, now)
                # The closing winner starts fresh when the next round opens
                player.reset_round_state(None)
                logger.info(f"Final winner {player_id} state reset for the next round")

            return _GuessOutcome(GuessResult(correct=True, round_ended=round_ended, winner_rank=rank))

        outcome = await run_in_transaction(self.db, _submit_guess_impl, name="submit_guess")
        if outcome.rejection is not None:
            raise outcome.rejection

        result = outcome.result
        if result.correct:
            logger.info(f"Player {player_id} won rank {result.winner_rank} (round_ended={result.round_ended})")
        else:
            logger.debug(f"Incorrect guess from player {player_id}")
        return result
