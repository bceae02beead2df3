"""FastAPI dependencies."""
import hmac
import logging

from fastapi import Depends, Header

from codebreaker.config import get_settings
from codebreaker.services.auth_service import AuthService, AuthError, Identity
from codebreaker.utils.exceptions import PermissionDeniedError, UnauthenticatedError

logger = logging.getLogger(__name__)

settings = get_settings()


def _mask_identifier(identifier: str) -> str:
    """Mask a sensitive identifier for logging (e.g., player_id, token)."""
    if not identifier:
        return "<missing>"
    if len(identifier) <= 8:
        return f"{identifier[:2]}...{identifier[-2:]}"
    return f"{identifier[:4]}...{identifier[-4:]}"


async def get_current_identity(
        authorization: str | None = Header(default=None, alias="Authorization"),
) -> Identity:
    """Resolve the caller's verified identity from a bearer access token."""
    if not authorization:
        raise UnauthenticatedError("missing_credentials")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthenticatedError("invalid_authorization_header")

    try:
        identity = AuthService().decode_access_token(token)
    except AuthError as exc:
        logger.info(f"Rejected access token {_mask_identifier(token)}: {exc}")
        raise UnauthenticatedError(str(exc)) from exc

    logger.debug(f"Authenticated player via JWT: {identity.player_id}")
    return identity


async def get_admin_identity(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """Verify that the current caller is an admin.

    Admins are identified by the email claim of their token, matched against
    the ``admin_emails`` configuration.

    Raises:
        PermissionDeniedError: If the caller is not an admin
    """
    if not settings.is_admin_email(identity.email):
        logger.warning(f"Access denied to admin endpoint for non-admin player {identity.player_id}")
        raise PermissionDeniedError("admin_access_required")

    logger.debug(f"Admin access granted to: {identity.email}")
    return identity


async def verify_payment_webhook(
    webhook_secret: str | None = Header(default=None, alias="X-Webhook-Secret"),
) -> None:
    """Check the shared secret the payment processor sends with confirmations.

    Disabled when no ``payment_webhook_secret`` is configured (development).
    """
    expected = settings.payment_webhook_secret
    if not expected:
        return
    if not webhook_secret or not hmac.compare_digest(webhook_secret, expected):
        logger.warning("Payment webhook called with an invalid secret")
        raise UnauthenticatedError("invalid_webhook_secret")
