"""Unit-of-work runner for engine operations.

Every state-changing operation runs as one database transaction: all reads
first, then writes that are flushed at commit. Rows carry a ``version`` column
so each UPDATE only applies if the row still has the version that was read,
and unique constraints reject racing INSERTs. When either check fails the whole
operation is rolled back and re-run from scratch.
"""
import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from codebreaker.config import get_settings
from codebreaker.utils.exceptions import GameError, InternalError, TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE codes PostgreSQL uses for serialization failures and deadlocks
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def is_write_conflict(exc: Exception) -> bool:
    """Return True when ``exc`` means another transaction won a race."""
    if isinstance(exc, (StaleDataError, IntegrityError)):
        return True
    if isinstance(exc, OperationalError) and "database is locked" in str(exc).lower():
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return sqlstate in RETRYABLE_SQLSTATES
    return False


async def run_in_transaction(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    max_attempts: int | None = None,
) -> T:
    """Run ``operation`` and commit, retrying the whole thing on write conflicts.

    Args:
        db: Session the operation reads and writes through
        operation: Coroutine function performing every read and write of the unit of work
        name: Operation name for logging
        max_attempts: Override for ``transaction_max_attempts``

    Returns:
        Whatever ``operation`` returned on the attempt that committed

    Raises:
        GameError: Domain errors raised by the operation, after rollback
        TransactionConflictError: If every attempt lost a race
        InternalError: On any other database failure
    """
    attempts = max_attempts or get_settings().transaction_max_attempts

    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await db.commit()
            return result
        except GameError:
            await db.rollback()
            raise
        except (StaleDataError, DBAPIError) as exc:
            await db.rollback()
            if not is_write_conflict(exc):
                logger.error(f"{name} failed with a database error: {exc}")
                raise InternalError(f"{name} failed due to a storage error") from exc
            if attempt == attempts:
                logger.error(f"{name} gave up after {attempts} conflicting attempts: {exc.__class__.__name__}")
                raise TransactionConflictError(
                    f"{name} could not complete because of concurrent updates, please retry"
                ) from exc
            logger.warning(
                f"{name} hit a write conflict on attempt {attempt}/{attempts} "
                f"({exc.__class__.__name__}), retrying"
            )
            # Jitter so retrying writers do not collide in lockstep
            await asyncio.sleep(random.uniform(0, 0.005 * attempt))
        except Exception:
            await db.rollback()
            raise

    raise InternalError(f"{name} did not run")  # pragma: no cover - loop always returns or raises
