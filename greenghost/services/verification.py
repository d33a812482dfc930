# greenghost/services/verification.py
from datetime import datetime, timedelta
from typing import Callable
import secrets
import logging

from sqlalchemy.orm import Session

from greenghost.config import settings
from greenghost.models.verification_token import VerificationToken
from greenghost.utils.email_validator import normalize_email

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def generate_code() -> str:
    """Uniformly random 6-digit code, 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class CodeIssuer:
    """Issues one-time codes. Every earlier token for the email is purged first."""

    def __init__(self, db: Session, clock: Clock = datetime.utcnow, ttl_seconds: int = None):
        self.db = db
        self.clock = clock
        self.ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.VERIFICATION_CODE_TTL_SECONDS)

    def issue(self, email: str) -> str:
        email = normalize_email(email)
        now = self.clock()

        try:
            # used and expired rows go too
            self.db.query(VerificationToken).filter(VerificationToken.email == email).delete()
            self.db.flush()

            code = generate_code()
            self.db.add(VerificationToken(
                email=email,
                code=code,
                used=False,
                created_at=now,
                expires_at=now + self.ttl,
            ))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"[OTP] Issued verification code for {email}, expires in {int(self.ttl.total_seconds())}s")
        return code


class CodeVerifier:
    """Fails closed: unknown, used and expired codes are all just invalid."""

    def __init__(self, db: Session, clock: Clock = datetime.utcnow):
        self.db = db
        self.clock = clock

    def verify(self, email: str, code: str) -> bool:
        email = normalize_email(email)
        code = (code or "").strip()

        token = self.db.query(VerificationToken).filter(
            VerificationToken.email == email,
            VerificationToken.code == code,
            VerificationToken.used == False,  # noqa: E712
            VerificationToken.expires_at > self.clock(),
        ).order_by(VerificationToken.created_at.desc()).first()

        if not token:
            logger.info(f"[OTP] No valid code found for {email}")
            return False

        token.used = True
        self.db.commit()
        logger.info(f"[OTP] ✅ Code verified for {email}")
        return True
