"""Append-only winner audit record."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint, Index
import uuid
from datetime import datetime, UTC
from codebreaker.database import Base
from codebreaker.models.base import get_uuid_column


class Winner(Base):
    """A correct guess within a round, ranked by the order it was accepted."""
    __tablename__ = "winners"

    winner_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    round_id = get_uuid_column(ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False, index=True)
    winner_number = Column(Integer, nullable=False)  # Rank within the round, 1..max_winners
    won_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    secret_code_at_win = Column(String(16), nullable=False)  # Audit snapshot

    __table_args__ = (
        UniqueConstraint("round_id", "winner_number", name="uq_winners_round_rank"),
        UniqueConstraint("round_id", "player_id", name="uq_winners_round_player"),
        Index("ix_winners_round_id", "round_id"),
    )

    def __repr__(self):
        return f"<Winner(round_id={self.round_id}, player_id={self.player_id}, rank={self.winner_number})>"
