"""Hint payment request ledger model."""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric, ForeignKey, Index
import uuid
from datetime import datetime, UTC
from codebreaker.database import Base
from codebreaker.models.base import get_uuid_column, PaymentStatus


class PaymentRequest(Base):
    """A paid hint: pending until the payment processor confirms it."""
    __tablename__ = "payments"

    payment_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = get_uuid_column(ForeignKey("players.player_id", ondelete="CASCADE"), nullable=False)
    round_id = get_uuid_column(ForeignKey("rounds.round_id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False, index=True)
    requested_digit_index = Column(Integer, nullable=False)  # Position revealed once the payment completes
    hint_provided = Column(Boolean, default=False, nullable=False)
    transaction_id = Column(String(255), nullable=True)  # Processor's id, set on confirmation
    initiated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_payments_player_round", "player_id", "round_id"),
    )

    def __repr__(self):
        return (f"<PaymentRequest(payment_id={self.payment_id}, player_id={self.player_id}, "
                f"status={self.status}, hint_provided={self.hint_provided})>")
