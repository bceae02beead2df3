from codebreaker.services.auth_service import AuthService, AuthError, Identity
from codebreaker.services.code_generator import CodeGenerator, is_not_all_same, has_no_long_runs, is_valid_code
from codebreaker.services.anti_cheat import AntiCheatLimiter
from codebreaker.services.round_service import RoundService
from codebreaker.services.code_assignment_service import CodeAssignmentService, CodeAssignment
from codebreaker.services.guess_service import GuessService, GuessResult
from codebreaker.services.hint_service import (
    HintService,
    HintRequestResult,
    PaymentConfirmation,
    ConfirmationOutcome,
)
from codebreaker.services.player_service import PlayerService, PlayerRoundStatus

__all__ = [
    "AuthService",
    "AuthError",
    "Identity",
    "CodeGenerator",
    "is_not_all_same",
    "has_no_long_runs",
    "is_valid_code",
    "AntiCheatLimiter",
    "RoundService",
    "CodeAssignmentService",
    "CodeAssignment",
    "GuessService",
    "GuessResult",
    "HintService",
    "HintRequestResult",
    "PaymentConfirmation",
    "ConfirmationOutcome",
    "PlayerService",
    "PlayerRoundStatus",
]
