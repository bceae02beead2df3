"""Paid hints: payment request creation and confirmation."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional
from uuid import UUID
import random
import uuid
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from codebreaker.config import get_settings
from codebreaker.models.base import PaymentStatus
from codebreaker.models.payment import PaymentRequest
from codebreaker.services.anti_cheat import AntiCheatLimiter
from codebreaker.services.helpers import load_player, load_user_code, require_player_state
from codebreaker.utils import run_in_transaction
from codebreaker.utils.datetime_helpers import seconds_between, utc_now
from codebreaker.utils.exceptions import (
    AlreadyWonError,
    HintsExhaustedError,
    InternalError,
    InvalidArgumentError,
    NoDigitsLeftError,
    PaymentNotFoundError,
    PaymentStateError,
)

logger = logging.getLogger(__name__)


class ConfirmationOutcome(str, Enum):
    HINT_PROVIDED = "hint_provided"
    ALREADY_PROCESSED = "already_processed"
    PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class HintRequestResult:
    payment_id: UUID
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class PaymentConfirmation:
    payment_id: UUID
    status: PaymentStatus
    outcome: ConfirmationOutcome
    revealed_position: Optional[int] = None


class HintService:
    """Service gating digit reveals behind a confirmed payment."""

    def __init__(
        self,
        db: AsyncSession,
        limiter: AntiCheatLimiter | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = get_settings()
        self.limiter = limiter or AntiCheatLimiter()
        self.rng = rng or random.SystemRandom()
        self.clock = clock

    async def request_hint(self, player_id: UUID) -> HintRequestResult:
        """
        Create a pending payment for a hint on the active round.

        The digit to reveal is chosen now and stored on the payment; nothing is
        revealed until the payment is confirmed. Pending requests count towards
        the hint quota so confirmations can never push reveals past it. Requests
        left unpaid for ``hint_payment_ttl_seconds`` are marked failed first,
        which releases their quota slot and position.

        Raises:
            NoActiveRoundError / PlayerNotFoundError / NoCodeAssignedError: Missing state
            AlreadyWonError: Player already won this round
            HintsExhaustedError: Hint quota used up
            RateLimitExceededError: Cooldown since the last hint request not elapsed
            NoDigitsLeftError: Every position is already revealed or requested
        """
        async def _request_hint_impl() -> HintRequestResult:
            now = self.clock()
            round_object, player, user_code = await require_player_state(self.db, player_id)

            if player.is_winner_in_current_round or user_code.is_winner:
                raise AlreadyWonError("You cannot request a hint after winning.")

            pending = await self._live_pending_requests(player_id, round_object.round_id, now)
            if user_code.hint_purchases + len(pending) >= self.settings.max_hints_per_round:
                raise HintsExhaustedError("You have reached the maximum number of hints for this round.")

            self.limiter.check_hint_cooldown(player, now)

            taken = set(user_code.revealed_digits or []) | {p.requested_digit_index for p in pending}
            available = [i for i in range(len(user_code.secret_code)) if i not in taken]
            if not available:
                raise NoDigitsLeftError("All digits have already been revealed for your code.")
            digit_index = self.rng.choice(available)

            player.last_hint_request_at = now

            payment = PaymentRequest(
                payment_id=uuid.uuid4(),
                player_id=player_id,
                round_id=round_object.round_id,
                amount=Decimal(str(self.settings.hint_price)),
                currency=self.settings.hint_currency,
                status=PaymentStatus.PENDING.value,
                requested_digit_index=digit_index,
                hint_provided=False,
                initiated_at=now,
            )
            self.db.add(payment)
            return HintRequestResult(payment.payment_id, payment.amount, payment.currency)

        result = await run_in_transaction(self.db, _request_hint_impl, name="request_hint")
        logger.info(f"Hint payment initiated for player {player_id}. Payment ID: {result.payment_id}")
        return result

    async def confirm_payment(
        self,
        payment_id: UUID,
        transaction_id: str,
        verified: bool = True,
    ) -> PaymentConfirmation:
        """
        Apply an externally verified payment and reveal the chosen digit.

        Safe under repeated delivery: a payment that already produced its hint
        is acknowledged without touching any counter.

        Args:
            payment_id: Our payment request id
            transaction_id: The processor's transaction id
            verified: Result of the processor-side verification

        Raises:
            InvalidArgumentError: Missing transaction id
            PaymentNotFoundError: Unknown payment id
            PaymentStateError: Payment is not pending (e.g. already failed)
        """
        if not transaction_id:
            raise InvalidArgumentError("Missing transactionId.")

        async def _confirm_payment_impl() -> PaymentConfirmation:
            now = self.clock()
            result = await self.db.execute(
                select(PaymentRequest)
                .where(PaymentRequest.payment_id == payment_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            payment = result.scalar_one_or_none()
            if payment is None:
                raise PaymentNotFoundError("Payment record not found.")

            if payment.status == PaymentStatus.COMPLETED.value and payment.hint_provided:
                return PaymentConfirmation(
                    payment.payment_id, PaymentStatus.COMPLETED, ConfirmationOutcome.ALREADY_PROCESSED
                )
            if payment.status != PaymentStatus.PENDING.value:
                raise PaymentStateError(f"Payment is not in pending state. Current status: {payment.status}")

            if not verified:
                payment.status = PaymentStatus.FAILED.value
                payment.transaction_id = transaction_id
                payment.confirmed_at = now
                return PaymentConfirmation(payment.payment_id, PaymentStatus.FAILED, ConfirmationOutcome.PAYMENT_FAILED)

            position = payment.requested_digit_index
            user_code = await load_user_code(self.db, payment.player_id, payment.round_id)
            if user_code is None:
                raise InternalError("User code not found for payment.")
            if not 0 <= position < len(user_code.secret_code):
                raise InternalError("Invalid requested digit index in payment record.")
            player = await load_player(self.db, payment.player_id)
            if player is None:
                raise InternalError("Player not found for payment.")

            payment.status = PaymentStatus.COMPLETED.value
            payment.transaction_id = transaction_id
            payment.confirmed_at = now

            revealed = list(user_code.revealed_digits or [])
            if position not in revealed:
                revealed = sorted(revealed + [position])
            else:
                logger.warning(f"Digit {position} was already revealed for player {payment.player_id}")
            user_code.revealed_digits = revealed
            user_code.hint_purchases += 1

            # Only mirror onto the profile while it still points at this round
            if player.current_round_id == payment.round_id:
                player.revealed_hint_digits = list(revealed)
                player.hint_count += 1

            payment.hint_provided = True
            return PaymentConfirmation(
                payment.payment_id, PaymentStatus.COMPLETED, ConfirmationOutcome.HINT_PROVIDED, position
            )

        confirmation = await run_in_transaction(self.db, _confirm_payment_impl, name="confirm_payment")
        if confirmation.outcome == ConfirmationOutcome.HINT_PROVIDED:
            logger.info(f"Payment {payment_id} confirmed, hint provided at index {confirmation.revealed_position}")
        elif confirmation.outcome == ConfirmationOutcome.PAYMENT_FAILED:
            logger.error(f"External payment verification failed for payment {payment_id} ({transaction_id})")
        else:
            logger.info(f"Payment {payment_id} already confirmed and hint provided")
        return confirmation

    async def _live_pending_requests(self, player_id: UUID, round_id: UUID, now: datetime) -> list[PaymentRequest]:
        """Pending requests still within their payment window; older ones are failed in place."""
        result = await self.db.execute(
            select(PaymentRequest)
            .where(
                PaymentRequest.player_id == player_id,
                PaymentRequest.round_id == round_id,
                PaymentRequest.status == PaymentStatus.PENDING.value,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        live = []
        for payment in result.scalars().all():
            if seconds_between(payment.initiated_at, now) >= self.settings.hint_payment_ttl_seconds:
                payment.status = PaymentStatus.FAILED.value
                logger.info(f"Hint payment {payment.payment_id} expired unpaid")
            else:
                live.append(payment)
        return live
