"""Per-player throttling for guesses and hint requests.

The counters live on the player row, so the check and the increment are part
of the same transaction as the action they gate.
"""
from dataclasses import dataclass
from datetime import datetime
import logging
import math

from codebreaker.config import get_settings
from codebreaker.models.player import Player
from codebreaker.utils.datetime_helpers import seconds_between
from codebreaker.utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuessLimit:
    window_seconds: int
    max_attempts: int


class AntiCheatLimiter:
    """Guess window counter and hint cooldown, keyed by player and action kind."""

    def __init__(
        self,
        guess_window_seconds: int | None = None,
        guess_max_attempts: int | None = None,
        hint_cooldown_seconds: int | None = None,
    ):
        settings = get_settings()
        self.guess_limit = GuessLimit(
            window_seconds=(
                guess_window_seconds if guess_window_seconds is not None else settings.guess_rate_limit_window_seconds
            ),
            max_attempts=(
                guess_max_attempts if guess_max_attempts is not None else settings.guess_rate_limit_max_attempts
            ),
        )
        self.hint_cooldown_seconds = (
            hint_cooldown_seconds if hint_cooldown_seconds is not None else settings.hint_cooldown_seconds
        )

    def register_guess(self, player: Player, now: datetime) -> int:
        """Count a guess attempt against the player's window.

        The window is measured from the previous attempt. Once it has elapsed
        the counter starts over; inside it the attempt is rejected when the
        counter has already reached the maximum.

        Returns:
            The player's attempt count for the window, including this attempt

        Raises:
            RateLimitExceededError: If the window is full
        """
        elapsed = seconds_between(player.last_guess_at, now)
        window = self.guess_limit.window_seconds

        if elapsed is not None and elapsed < window:
            if player.attempt_count >= self.guess_limit.max_attempts:
                retry_after = max(1, math.ceil(window - elapsed))
                logger.warning(
                    f"Guess rate limit hit for player {player.player_id}: "
                    f"{player.attempt_count} attempts in {elapsed:.1f}s"
                )
                raise RateLimitExceededError(
                    "Too many guess attempts. Please wait a moment before trying again.",
                    retry_after=retry_after,
                )
        else:
            player.attempt_count = 0

        player.attempt_count += 1
        player.last_guess_at = now
        return player.attempt_count

    def check_hint_cooldown(self, player: Player, now: datetime) -> None:
        """Reject a hint request that arrives within the cooldown of the previous one."""
        elapsed = seconds_between(player.last_hint_request_at, now)
        if elapsed is not None and elapsed < self.hint_cooldown_seconds:
            retry_after = max(1, math.ceil(self.hint_cooldown_seconds - elapsed))
            logger.warning(f"Hint cooldown active for player {player.player_id}: {elapsed:.1f}s since last request")
            raise RateLimitExceededError(
                "Please wait a moment before requesting another hint.",
                retry_after=retry_after,
            )
