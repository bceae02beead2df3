"""Access token issuance and verification.

Login itself (the one-time passcode flow) happens elsewhere; once it has
verified an email it asks this service for a token. Every engine request then
identifies the caller through that token.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from codebreaker.config import get_settings
from codebreaker.utils.datetime_helpers import utc_now

logger = logging.getLogger(__name__)


class AuthError(RuntimeError):
    """Raised when authentication fails."""


@dataclass(frozen=True)
class Identity:
    """Verified caller identity."""
    player_id: uuid.UUID
    email: str | None = None


class AuthService:
    """Service responsible for JWT issuance and decoding."""

    def __init__(self):
        self.settings = get_settings()

    def create_access_token(
        self,
        player_id: uuid.UUID,
        email: str | None = None,
        now: datetime | None = None,
    ) -> tuple[str, int]:
        """Issue a signed access token.

        Returns:
            tuple[str, int]: The encoded token and its lifetime in seconds
        """
        issued_at = now or utc_now()
        expires_in = self.settings.access_token_exp_minutes * 60
        payload = {
            "sub": str(player_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=expires_in),
            "jti": uuid.uuid4().hex,
        }
        if email:
            payload["email"] = email.strip().lower()
        token = jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)
        return token, expires_in

    def decode_access_token(self, token: str) -> Identity:
        """Verify a token and return the identity it carries.

        Raises:
            AuthError: ``token_expired`` or ``invalid_token``
        """
        try:
            payload = jwt.decode(token, self.settings.secret_key, algorithms=[self.settings.jwt_algorithm])
        except ExpiredSignatureError as exc:
            raise AuthError("token_expired") from exc
        except InvalidTokenError as exc:
            raise AuthError("invalid_token") from exc

        subject = payload.get("sub")
        if not subject:
            raise AuthError("invalid_token")
        try:
            player_id = uuid.UUID(str(subject))
        except ValueError as exc:
            raise AuthError("invalid_token") from exc
        return Identity(player_id=player_id, email=payload.get("email"))
