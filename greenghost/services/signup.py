# greenghost/services/signup.py
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from greenghost.config import settings
from greenghost.errors import (
    DeliveryError,
    DuplicateEntryError,
    EntryNotFoundError,
    InvalidCodeError,
    ValidationFailed,
)
from greenghost.models.waitlist import WaitlistEntry
from greenghost.services.email_templates import SystemTemplateStore, TemplateRenderer
from greenghost.services.mailer import Mailer
from greenghost.services.verification import Clock, CodeIssuer, CodeVerifier
from greenghost.utils.email_validator import EmailValidator, normalize_email, is_valid_zip, is_valid_code

logger = logging.getLogger(__name__)


class SignupReconciler:
    """
    Waitlist state per email: NONE -> PENDING -> VERIFIED.

    Resubmitting while PENDING replaces the row and the code. Resubmitting
    once VERIFIED is rejected. The pending row is only written after the
    verification email went out.
    """

    def __init__(
        self,
        db: Session,
        mailer: Mailer,
        store: SystemTemplateStore,
        renderer: TemplateRenderer,
        clock: Clock = datetime.utcnow,
        check_mx: Optional[bool] = None,
    ):
        self.db = db
        self.mailer = mailer
        self.store = store
        self.renderer = renderer
        self.clock = clock
        self.check_mx = settings.CHECK_EMAIL_MX if check_mx is None else check_mx
        self.issuer = CodeIssuer(db, clock=clock)
        self.verifier = CodeVerifier(db, clock=clock)

    async def signup(self, email: str, zip_code: str) -> str:
        """Returns the issued code; callers decide whether to expose it."""
        email = normalize_email(email)
        zip_code = (zip_code or "").strip()

        valid, reason = EmailValidator.validate_signup_email(email, check_mx=self.check_mx)
        if not valid:
            raise ValidationFailed(reason)
        for suggestion in EmailValidator.check_for_typos(email):
            logger.warning(f"Possible typo in {email}: {suggestion}")
        if not is_valid_zip(zip_code):
            raise ValidationFailed("ZIP code must be exactly 5 digits")

        existing = self.db.query(WaitlistEntry).filter(WaitlistEntry.email == email).first()
        if existing and existing.verified:
            logger.warning(f"Signup rejected, {email} is already verified")
            raise DuplicateEntryError("This email is already on the waitlist")
        if existing:
            logger.info(f"Replacing pending waitlist entry for {email}")
            self.db.delete(existing)
            self.db.commit()

        code = self.issuer.issue(email)

        template = self.store.get("verification")
        html = self.renderer.render(template, {
            "code": code,
            "zip_code": zip_code,
            "expires_in_seconds": int(self.issuer.ttl.total_seconds()),
        })
        result = await self.mailer.send(email, template.subject, html, template.from_email)
        if not result.success:
            logger.error(f"Verification email to {email} failed: {result.error}")
            raise DeliveryError(f"Could not send verification email: {result.error}")

        self.db.add(WaitlistEntry(email=email, zip_code=zip_code, verified=False, created_at=self.clock()))
        self.db.commit()
        logger.info(f"Waitlist entry pending verification: {email} ({zip_code})")
        return code

    async def verify(self, email: str, code: str) -> WaitlistEntry:
        email = normalize_email(email)
        code = (code or "").strip()

        if not is_valid_code(code):
            raise ValidationFailed("Verification code must be exactly 6 digits")

        if not self.verifier.verify(email, code):
            raise InvalidCodeError("Invalid or expired verification code")

        entry = self.db.query(WaitlistEntry).filter(WaitlistEntry.email == email).first()
        if entry is None:
            raise EntryNotFoundError(f"No waitlist entry found for {email}")

        entry.verified = True
        self.db.commit()
        logger.info(f"Waitlist entry verified: {email}")

        await self._send_welcome(entry)
        return entry

    async def _send_welcome(self, entry: WaitlistEntry):
        # a failed welcome email never undoes the verification
        try:
            template = self.store.get("welcome")
            html = self.renderer.render(template, {"zip_code": entry.zip_code})
            result = await self.mailer.send(entry.email, template.subject, html, template.from_email)
            if not result.success:
                logger.error(f"Welcome email to {entry.email} failed: {result.error}")
        except Exception as e:
            logger.error(f"Welcome email to {entry.email} failed: {str(e)}")
