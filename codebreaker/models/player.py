"""Player profile model."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey
import uuid
from datetime import datetime, UTC
from codebreaker.database import Base
from codebreaker.models.base import get_uuid_column


class Player(Base):
    """Player profile, one per verified identity, spanning every round played."""
    __tablename__ = "players"

    player_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)

    # Round-scoped state, reset on every new code assignment
    current_round_id = get_uuid_column(ForeignKey("rounds.round_id"), nullable=True, index=True)
    is_winner_in_current_round = Column(Boolean, default=False, nullable=False)
    hint_count = Column(Integer, default=0, nullable=False)
    revealed_hint_digits = Column(JSON, default=list, nullable=False)  # Mirror of UserCode.revealed_digits

    # Anti-cheat bookkeeping
    attempt_count = Column(Integer, default=0, nullable=False)  # Attempts in the current rate-limit window
    last_guess_at = Column(DateTime(timezone=True), nullable=True)
    last_hint_request_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def reset_round_state(self, round_id: uuid.UUID | None) -> None:
        """Point the player at ``round_id`` with zeroed round-scoped fields."""
        self.current_round_id = round_id
        self.is_winner_in_current_round = False
        self.hint_count = 0
        self.attempt_count = 0
        self.revealed_hint_digits = []

    def __repr__(self):
        return (f"<Player(player_id={self.player_id}, current_round_id={self.current_round_id}, "
                f"winner={self.is_winner_in_current_round})>")
