"""Per-round secret code record."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
import uuid
from datetime import datetime, UTC
from codebreaker.database import Base
from codebreaker.models.base import get_uuid_column


class UserCode(Base):
    """The secret code a player must break in one round.

    ``secret_code`` is stored as a digit string (e.g. ``"0381927"``) and is
    never returned to the player.
    """
    __tablename__ = "user_codes"

    user_code_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False, index=True)
    round_id = get_uuid_column(ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False, index=True)
    secret_code = Column(String(16), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    hint_purchases = Column(Integer, default=0, nullable=False)
    revealed_digits = Column(JSON, default=list, nullable=False)  # Ascending digit positions
    is_winner = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("player_id", "round_id", name="uq_user_codes_player_round"),
        UniqueConstraint("round_id", "secret_code", name="uq_user_codes_round_code"),
    )

    @property
    def digits(self) -> list[int]:
        """Secret code as a list of ints."""
        return [int(ch) for ch in self.secret_code]

    def __repr__(self):
        # Secret deliberately left out of the repr so it never lands in logs
        return (f"<UserCode(user_code_id={self.user_code_id}, player_id={self.player_id}, "
                f"round_id={self.round_id}, attempts={self.attempts}, winner={self.is_winner})>")
