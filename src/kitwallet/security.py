"""One-time password checks for sensitive actions."""

import logging
from typing import Optional

import pyotp

from kitwallet.db.models import User

logger = logging.getLogger(__name__)

# Accept the previous and next 30s step to absorb clock drift
OTP_VALID_WINDOW = 1


def verify_otp(secret: str, code: str) -> bool:
    """Verify a TOTP code against a base32 secret."""
    if not code:
        return False
    return pyotp.TOTP(secret).verify(str(code).strip(), valid_window=OTP_VALID_WINDOW)


def verify_otp_before_action(user: User, otp_code: Optional[str]) -> bool:
    """Check the OTP of a user about to perform a sensitive action.

    Users without OTP enabled always pass.
    """
    if not user.otp_enabled:
        return True
    if not user.otp_secret:
        logger.warning("User %s has OTP enabled without a secret", user.id)
        return False
    return verify_otp(user.otp_secret, otp_code or "")
