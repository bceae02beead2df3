"""Gameplay API router."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from codebreaker.database import get_db
from codebreaker.dependencies import get_current_identity
from codebreaker.schemas.game import (
    AssignCodeResponse,
    SubmitGuessRequest,
    SubmitGuessResponse,
    HintRequestResponse,
    RevealedDigitSchema,
    RoundStatusResponse,
)
from codebreaker.schemas.round import RoundSummary, WinnerEntry
from codebreaker.services import (
    CodeAssignmentService,
    GuessService,
    HintService,
    Identity,
    PlayerService,
    RoundService,
)
from codebreaker.utils.exceptions import NoActiveRoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/code", response_model=AssignCodeResponse)
async def assign_code(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Make sure the player holds a secret code for the active round."""
    assignment = await CodeAssignmentService(db).assign_code(identity.player_id, identity.email)
    message = (
        "Secret code already exists for the active round."
        if assignment.already_assigned
        else "Secret code assigned for the active round."
    )
    return AssignCodeResponse(
        round_id=assignment.round_id,
        already_assigned=assignment.already_assigned,
        message=message,
    )


@router.post("/guess", response_model=SubmitGuessResponse)
async def submit_guess(
    request: SubmitGuessRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Submit a guess for the player's secret code."""
    result = await GuessService(db).submit_guess(identity.player_id, request.code)
    return SubmitGuessResponse(
        is_correct=result.correct,
        is_winner=result.correct,
        round_ended=result.round_ended,
        winner_number=result.winner_rank,
        message=(
            "Congratulations! You guessed the code correctly!"
            if result.correct
            else "Incorrect code. Try again!"
        ),
    )


@router.post("/hints", response_model=HintRequestResponse)
async def request_hint(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Start a paid hint. The digit is revealed once the payment is confirmed."""
    result = await HintService(db).request_hint(identity.player_id)
    return HintRequestResponse(
        payment_id=result.payment_id,
        amount=float(result.amount),
        currency=result.currency,
        message="Hint request processed. Awaiting payment confirmation.",
    )


@router.get("/status", response_model=RoundStatusResponse)
async def get_round_status(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Player's progress in the active round, including paid-for digits."""
    status = await PlayerService(db).get_round_status(identity.player_id)
    return RoundStatusResponse(
        round_id=status.round_id,
        round_number=status.round_number,
        winner_count=status.winner_count,
        max_winners=status.max_winners,
        has_code=status.has_code,
        attempts=status.attempts,
        hint_purchases=status.hint_purchases,
        is_winner=status.is_winner,
        revealed_digits=[
            RevealedDigitSchema(position=item.position, digit=item.digit) for item in status.revealed_digits
        ],
    )


@router.get("/rounds/current", response_model=RoundSummary)
async def get_current_round(db: AsyncSession = Depends(get_db)):
    """Public summary of the active round."""
    round_object = await RoundService(db).get_active_round()
    if round_object is None:
        raise NoActiveRoundError("No active round found.")
    return RoundSummary.model_validate(round_object)


@router.get("/rounds/{round_id}/winners", response_model=list[WinnerEntry])
async def list_round_winners(round_id: UUID, db: AsyncSession = Depends(get_db)):
    """Winners of a round in rank order."""
    winners = await RoundService(db).list_winners(round_id)
    return [WinnerEntry.model_validate(winner) for winner in winners]
