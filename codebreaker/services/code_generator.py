"""Secret code generation.

A valid code:
1) is not made of one repeated digit, and
2) never repeats the same digit more than three times in a row.
"""
import logging
import random
import time
from typing import Callable, Sequence

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_REPEATS = 3


def is_not_all_same(code: Sequence[int]) -> bool:
    """True unless every digit equals the first one."""
    return len(set(code)) > 1


def has_no_long_runs(code: Sequence[int], max_run: int = MAX_CONSECUTIVE_REPEATS) -> bool:
    """True when no digit repeats more than ``max_run`` times consecutively."""
    run = 0
    previous = None
    for digit in code:
        run = run + 1 if digit == previous else 1
        if run > max_run:
            return False
        previous = digit
    return True


def is_valid_code(code: Sequence[int]) -> bool:
    """Check both game rules."""
    return is_not_all_same(code) and has_no_long_runs(code)


def code_to_string(code: Sequence[int]) -> str:
    return "".join(str(digit) for digit in code)


class CodeGenerator:
    """Reject-and-resample generator for secret codes."""

    def __init__(
        self,
        rng: random.Random | None = None,
        max_attempts: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        self.rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts
        self.clock = clock

    def generate(self, length: int) -> list[int]:
        """Draw ``length`` uniform digits until both rules hold.

        After ``max_attempts`` rejected draws a deterministic pattern is
        returned instead: consecutive digits counting up mod 10, offset by the
        current time. Adjacent digits always differ, so it satisfies both rules.
        """
        if length < 2:
            raise ValueError("code length must be at least 2")

        for _ in range(self.max_attempts):
            code = [self.rng.randrange(10) for _ in range(length)]
            if is_valid_code(code):
                return code

        logger.warning(f"Code generation exhausted {self.max_attempts} draws, using fallback pattern")
        return self.fallback(length)

    def fallback(self, length: int) -> list[int]:
        offset = int(self.clock())
        return [(offset + i) % 10 for i in range(length)]
