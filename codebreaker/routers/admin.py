"""Admin API router for round control."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from codebreaker.database import get_db
from codebreaker.dependencies import get_admin_identity
from codebreaker.schemas.round import StartRoundResponse, FinishRoundResponse
from codebreaker.services import Identity, RoundService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/rounds", response_model=StartRoundResponse, status_code=201)
async def start_round(
    admin: Identity = Depends(get_admin_identity),
    db: AsyncSession = Depends(get_db),
):
    """End the active round (if any) and open the next one."""
    round_object = await RoundService(db).start_round()
    logger.info(f"Admin {admin.email} started round {round_object.round_id}")
    return StartRoundResponse(
        round_id=round_object.round_id,
        round_number=round_object.round_number,
        message=f"Round {round_object.round_id} started successfully.",
    )


@router.post("/rounds/{round_id}/finish", response_model=FinishRoundResponse)
async def finish_round(
    round_id: UUID,
    admin: Identity = Depends(get_admin_identity),
    db: AsyncSession = Depends(get_db),
):
    """Manually end an active round."""
    await RoundService(db).end_round(round_id)
    logger.info(f"Admin {admin.email} finished round {round_id}")
    return FinishRoundResponse(success=True, message=f"Round {round_id} manually ended.")
