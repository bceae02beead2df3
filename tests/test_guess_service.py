"""Tests for guess evaluation and the winner path."""
import uuid
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select

from codebreaker.config import get_settings
from codebreaker.models.player import Player
from codebreaker.models.round import Round
from codebreaker.models.winner import Winner
from codebreaker.services import AntiCheatLimiter, GuessService, RoundService
from codebreaker.services.guess_service import validate_guess
from codebreaker.utils.exceptions import (
    AlreadyWonError,
    InvalidArgumentError,
    NoActiveRoundError,
    NoCodeAssignedError,
    PlayerNotFoundError,
    RateLimitExceededError,
    RoundFullError,
)


def wrong_guess(digits: list[int]) -> list[int]:
    return [(digits[0] + 1) % 10] + list(digits[1:])


class TestValidateGuess:

    def test_valid_guess_passes(self):
        assert validate_guess([0, 1, 2, 3, 4, 5, 6], 7) == [0, 1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("guess", [
        [1, 2, 3],
        [1, 2, 3, 4, 5, 6, 7, 8],
        [1, 2, 3, 4, 5, 6, 10],
        [1, 2, 3, 4, 5, 6, -1],
        [1, 2, 3, 4, 5, 6, "7"],
        [1, 2, 3, 4, 5, 6, 7.0],
        [1, 2, 3, 4, 5, 6, True],
        "1234567",
        None,
    ])
    def test_malformed_guess_rejected(self, guess):
        with pytest.raises(InvalidArgumentError):
            validate_guess(guess, 7)


class TestSubmitGuess:

    @pytest.mark.asyncio
    async def test_incorrect_guess_counts_attempt(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()

        result = await GuessService(db_session).submit_guess(player_id, wrong_guess(user_code.digits))

        assert result.correct is False
        assert result.round_ended is False
        assert result.winner_rank is None
        await db_session.refresh(user_code)
        assert user_code.attempts == 1
        assert user_code.is_winner is False

    @pytest.mark.asyncio
    async def test_correct_guess_records_winner(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()

        result = await GuessService(db_session).submit_guess(player_id, user_code.digits)

        assert result.correct is True
        assert result.winner_rank == 1
        assert result.round_ended is False

        await db_session.refresh(active_round)
        assert active_round.winner_count == 1
        await db_session.refresh(user_code)
        assert user_code.is_winner is True
        player = await db_session.get(Player, player_id)
        await db_session.refresh(player)
        assert player.is_winner_in_current_round is True

        winners = await RoundService(db_session).list_winners(active_round.round_id)
        assert [(w.player_id, w.winner_number) for w in winners] == [(player_id, 1)]
        assert winners[0].secret_code_at_win == user_code.secret_code

    @pytest.mark.asyncio
    async def test_second_guess_after_win_rejected(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()
        service = GuessService(db_session)
        await service.submit_guess(player_id, user_code.digits)

        with pytest.raises(AlreadyWonError):
            await service.submit_guess(player_id, user_code.digits)

        await db_session.refresh(active_round)
        assert active_round.winner_count == 1

    @pytest.mark.asyncio
    async def test_ranks_follow_acceptance_order_and_quota_closes_round(
        self, db_session, active_round, player_factory
    ):
        players = [await player_factory() for _ in range(active_round.max_winners)]
        service = GuessService(db_session)

        ranks = []
        for index, (player_id, user_code) in enumerate(players):
            result = await service.submit_guess(player_id, user_code.digits)
            ranks.append(result.winner_rank)
            assert result.round_ended is (index == len(players) - 1)

        assert ranks == list(range(1, active_round.max_winners + 1))

        await db_session.refresh(active_round)
        assert active_round.is_active is False
        assert active_round.end_time is not None
        assert active_round.winner_count == active_round.max_winners

        # The closing winner is reset for the next round
        last_player = await db_session.get(Player, players[-1][0])
        await db_session.refresh(last_player)
        assert last_player.current_round_id is None
        assert last_player.is_winner_in_current_round is False

        result = await db_session.execute(select(Winner).where(Winner.round_id == active_round.round_id))
        assert len(result.scalars().all()) == active_round.max_winners

    @pytest.mark.asyncio
    async def test_guess_after_round_closed(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()
        await RoundService(db_session).end_round(active_round.round_id)

        with pytest.raises(NoActiveRoundError):
            await GuessService(db_session).submit_guess(player_id, user_code.digits)

    @pytest.mark.asyncio
    async def test_full_round_rejects_but_charges_attempt(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()
        round_object = await db_session.get(Round, active_round.round_id)
        round_object.winner_count = round_object.max_winners
        await db_session.commit()

        with pytest.raises(RoundFullError):
            await GuessService(db_session).submit_guess(player_id, user_code.digits)

        await db_session.refresh(user_code)
        assert user_code.attempts == 1
        assert user_code.is_winner is False

    @pytest.mark.asyncio
    async def test_unknown_player(self, db_session, active_round):
        with pytest.raises(PlayerNotFoundError):
            await GuessService(db_session).submit_guess(uuid.uuid4(), [0, 1, 2, 3, 4, 5, 6])

    @pytest.mark.asyncio
    async def test_player_without_code_in_new_round(self, db_session, active_round, player_factory):
        player_id, _ = await player_factory()
        await RoundService(db_session).start_round()

        with pytest.raises(NoCodeAssignedError):
            await GuessService(db_session).submit_guess(player_id, [0, 1, 2, 3, 4, 5, 6])

    @pytest.mark.asyncio
    async def test_malformed_guess_touches_nothing(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()

        with pytest.raises(InvalidArgumentError):
            await GuessService(db_session).submit_guess(player_id, [1, 2, 3])

        await db_session.refresh(user_code)
        assert user_code.attempts == 0

    @pytest.mark.asyncio
    async def test_rate_limit_blocks_rapid_guesses(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()
        now = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        service = GuessService(
            db_session,
            limiter=AntiCheatLimiter(guess_window_seconds=60, guess_max_attempts=2),
            clock=lambda: now,
        )
        guess = wrong_guess(user_code.digits)

        await service.submit_guess(player_id, guess)
        await service.submit_guess(player_id, guess)
        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.submit_guess(player_id, guess)
        assert exc_info.value.retry_after == 60

        await db_session.refresh(user_code)
        assert user_code.attempts == 2

        now = now + timedelta(seconds=61)
        result = await service.submit_guess(player_id, guess)
        assert result.correct is False
        await db_session.refresh(user_code)
        assert user_code.attempts == 3

    @pytest.mark.asyncio
    async def test_rate_limit_uses_configured_defaults(self, db_session, active_round, player_factory):
        player_id, user_code = await player_factory()
        service = GuessService(db_session)
        guess = wrong_guess(user_code.digits)

        for _ in range(get_settings().guess_rate_limit_max_attempts):
            await service.submit_guess(player_id, guess)

        with pytest.raises(RateLimitExceededError):
            await service.submit_guess(player_id, guess)
