"""Codebreaker API routers."""
from fastapi import APIRouter

from codebreaker.routers import admin, game, health, payments

router = APIRouter(prefix="/game", tags=["game"])

router.include_router(game.router, tags=["game"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(payments.router, prefix="/payments", tags=["payments"])

__all__ = ["router", "health"]
