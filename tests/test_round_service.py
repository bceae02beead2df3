"""Tests for the round lifecycle."""
import uuid

import pytest
from sqlalchemy import select, func

from codebreaker.config import get_settings
from codebreaker.models.round import Round
from codebreaker.services import RoundService
from codebreaker.utils.datetime_helpers import ensure_utc
from codebreaker.utils.exceptions import RoundAlreadyEndedError, RoundNotFoundError


class TestStartRound:

    @pytest.mark.asyncio
    async def test_start_round_opens_active_round(self, db_session):
        round_object = await RoundService(db_session).start_round()

        assert round_object.is_active is True
        assert round_object.winner_count == 0
        assert round_object.max_winners == get_settings().max_winners_per_round
        assert round_object.end_time is None
        assert round_object.round_number >= 1

    @pytest.mark.asyncio
    async def test_start_round_closes_previous_round(self, db_session):
        service = RoundService(db_session)
        first = await service.start_round()
        second = await service.start_round()

        assert second.round_number == first.round_number + 1
        assert second.is_active is True

        await db_session.refresh(first)
        assert first.is_active is False
        assert first.end_time is not None
        assert ensure_utc(first.end_time) <= ensure_utc(second.start_time)

    @pytest.mark.asyncio
    async def test_only_one_round_is_ever_active(self, db_session):
        service = RoundService(db_session)
        for _ in range(3):
            await service.start_round()

        result = await db_session.execute(select(func.count()).select_from(Round).where(Round.is_active.is_(True)))
        assert result.scalar() == 1


class TestEndRound:

    @pytest.mark.asyncio
    async def test_end_round_marks_round_inactive(self, db_session, active_round):
        service = RoundService(db_session)

        ended = await service.end_round(active_round.round_id)

        assert ended.is_active is False
        assert ended.end_time is not None
        assert await service.get_active_round() is None

    @pytest.mark.asyncio
    async def test_end_round_twice_rejected(self, db_session, active_round):
        service = RoundService(db_session)
        await service.end_round(active_round.round_id)

        with pytest.raises(RoundAlreadyEndedError):
            await service.end_round(active_round.round_id)

    @pytest.mark.asyncio
    async def test_end_unknown_round_rejected(self, db_session):
        with pytest.raises(RoundNotFoundError):
            await RoundService(db_session).end_round(uuid.uuid4())


class TestRoundReads:

    @pytest.mark.asyncio
    async def test_list_winners_of_unknown_round(self, db_session):
        with pytest.raises(RoundNotFoundError):
            await RoundService(db_session).list_winners(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_winners_empty_for_new_round(self, db_session, active_round):
        assert await RoundService(db_session).list_winners(active_round.round_id) == []
