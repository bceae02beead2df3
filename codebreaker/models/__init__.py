"""Database models."""
from codebreaker.models.round import Round
from codebreaker.models.player import Player
from codebreaker.models.user_code import UserCode
from codebreaker.models.winner import Winner
from codebreaker.models.payment import PaymentRequest
from codebreaker.models.base import PaymentStatus

__all__ = [
    "Round",
    "Player",
    "UserCode",
    "Winner",
    "PaymentRequest",
    "PaymentStatus",
]
