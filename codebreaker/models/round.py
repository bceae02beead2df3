"""Contest round model."""
from sqlalchemy import Column, Integer, Boolean, DateTime, Index, text
import uuid
from datetime import datetime, UTC
from codebreaker.database import Base
from codebreaker.models.base import get_uuid_column


class Round(Base):
    """One instance of the contest, closed once its winner quota is reached."""
    __tablename__ = "rounds"

    round_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    round_number = Column(Integer, nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)
    winner_count = Column(Integer, default=0, nullable=False)
    max_winners = Column(Integer, nullable=False)
    start_time = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # At most one round may be active at a time
    __table_args__ = (
        Index(
            "uq_rounds_single_active",
            "is_active",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self):
        return (f"<Round(round_id={self.round_id}, number={self.round_number}, "
                f"active={self.is_active}, winners={self.winner_count}/{self.max_winners})>")
