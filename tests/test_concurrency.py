"""Races between independent sessions on the winner, assignment and payment paths."""
import asyncio
import uuid

import pytest
from sqlalchemy import select, func

from codebreaker.config import get_settings
from codebreaker.models.round import Round
from codebreaker.models.user_code import UserCode
from codebreaker.models.winner import Winner
from codebreaker.services import (
    AntiCheatLimiter,
    CodeAssignmentService,
    ConfirmationOutcome,
    GuessService,
    HintService,
    RoundService,
)
from codebreaker.utils.exceptions import AlreadyWonError, NoActiveRoundError, RoundFullError


@pytest.fixture
def patient_transactions(monkeypatch):
    """Give racing writers enough retries to all get through on SQLite."""
    monkeypatch.setattr(get_settings(), "transaction_max_attempts", 50)


async def guess_in_own_session(session_factory, player_id, digits):
    async with session_factory() as session:
        return await GuessService(session).submit_guess(player_id, digits)


@pytest.mark.asyncio
async def test_concurrent_winners_get_distinct_ranks(
    db_session, session_factory, player_factory, monkeypatch, patient_transactions
):
    """More simultaneous correct guesses than the quota: exactly the quota wins."""
    monkeypatch.setattr(get_settings(), "max_winners_per_round", 3)
    round_object = await RoundService(db_session).start_round()
    players = [await player_factory() for _ in range(5)]

    results = await asyncio.gather(
        *(guess_in_own_session(session_factory, player_id, code.digits) for player_id, code in players),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, BaseException)]
    assert sorted(r.winner_rank for r in winners) == [1, 2, 3]
    assert sum(1 for r in winners if r.round_ended) == 1
    assert len(rejected) == 2
    assert all(isinstance(r, (NoActiveRoundError, RoundFullError)) for r in rejected)

    stored = await db_session.execute(
        select(Round).where(Round.round_id == round_object.round_id).execution_options(populate_existing=True)
    )
    stored_round = stored.scalar_one()
    assert stored_round.winner_count == 3
    assert stored_round.is_active is False

    ranks = await db_session.execute(
        select(Winner.winner_number).where(Winner.round_id == round_object.round_id).order_by(Winner.winner_number)
    )
    assert list(ranks.scalars().all()) == [1, 2, 3]


@pytest.mark.asyncio
async def test_double_submission_wins_once(
    db_session, session_factory, active_round, player_factory, patient_transactions
):
    player_id, user_code = await player_factory()

    results = await asyncio.gather(
        guess_in_own_session(session_factory, player_id, user_code.digits),
        guess_in_own_session(session_factory, player_id, user_code.digits),
        return_exceptions=True,
    )

    wins = [r for r in results if not isinstance(r, BaseException)]
    assert len(wins) == 1
    assert wins[0].winner_rank == 1
    assert any(isinstance(r, AlreadyWonError) for r in results)

    count = await db_session.execute(
        select(func.count()).select_from(Winner).where(Winner.round_id == active_round.round_id)
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_concurrent_assignment_yields_one_code(
    db_session, session_factory, active_round, patient_transactions
):
    player_id = uuid.uuid4()

    async def assign():
        async with session_factory() as session:
            return await CodeAssignmentService(session).assign_code(player_id)

    results = await asyncio.gather(assign(), assign())

    assert sorted(r.already_assigned for r in results) == [False, True]
    count = await db_session.execute(
        select(func.count()).select_from(UserCode).where(UserCode.player_id == player_id)
    )
    assert count.scalar() == 1


@pytest.mark.asyncio
async def test_duplicate_confirmation_delivery_applies_once(
    db_session, session_factory, active_round, player_factory, patient_transactions
):
    player_id, user_code = await player_factory()
    request = await HintService(db_session, limiter=AntiCheatLimiter(hint_cooldown_seconds=0)).request_hint(player_id)

    async def confirm():
        async with session_factory() as session:
            return await HintService(session).confirm_payment(request.payment_id, "tx-dup")

    results = await asyncio.gather(confirm(), confirm())

    assert sorted(r.outcome.value for r in results) == sorted(
        [ConfirmationOutcome.HINT_PROVIDED.value, ConfirmationOutcome.ALREADY_PROCESSED.value]
    )
    await db_session.refresh(user_code)
    assert user_code.hint_purchases == 1
    assert len(user_code.revealed_digits) == 1
