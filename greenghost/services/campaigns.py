# greenghost/services/campaigns.py
"""
Campaign delivery: resolve recipients, send one template to each of them in
order, and record a single ``EmailSegment`` audit row per send.

Per-recipient failures are returned as data. Only recipient resolution can
fail the whole campaign, and it does so before anything is sent.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from greenghost.config import settings
from greenghost.errors import DeliveryError, NoRecipientsError, RecipientResolutionError
from greenghost.models.email_segment import EmailSegment
from greenghost.models.waitlist import WaitlistEntry
from greenghost.services.email_templates import RECIPIENT_TYPES, CustomTemplate, Template, TemplateRenderer
from greenghost.services.mailer import Mailer
from greenghost.utils.email_validator import EmailValidator, is_valid_zip, normalize_email

logger = logging.getLogger(__name__)


@dataclass
class Recipient:
    email: str
    display_name: Optional[str] = None


@dataclass
class RecipientFilter:
    recipient_type: str = "waitlist"
    custom_recipients: List[Recipient] = field(default_factory=list)
    zip_codes: List[str] = field(default_factory=list)

    @classmethod
    def for_template(cls, template: Template) -> "RecipientFilter":
        """Default filter stored on the template, used when the request names none."""
        stored = template.recipient_filter or {}
        if not isinstance(stored, dict):
            raise RecipientResolutionError(f"Template '{template.name}' has a malformed recipient filter")

        custom_recipients = _stored_list(stored, "custom_recipients", template.name)
        zip_codes = _stored_list(stored, "zip_codes", template.name)

        recipients = []
        for item in custom_recipients:
            if isinstance(item, str):
                recipients.append(Recipient(email=item))
            elif isinstance(item, dict) and isinstance(item.get("email"), str):
                recipients.append(Recipient(email=item["email"], display_name=item.get("name")))
            else:
                raise RecipientResolutionError(f"Template '{template.name}' has a stored recipient without an email")

        if not all(isinstance(z, str) for z in zip_codes):
            raise RecipientResolutionError(f"Template '{template.name}' has a non-text ZIP code in its filter")

        return cls(
            recipient_type=template.recipient_type or "waitlist",
            custom_recipients=recipients,
            zip_codes=list(zip_codes),
        )


def _stored_list(stored: dict, key: str, template_name: str) -> list:
    if key not in stored:
        return []
    value = stored[key]
    if not isinstance(value, list):
        raise RecipientResolutionError(f"Template '{template_name}' recipient filter '{key}' must be a list")
    return value


@dataclass
class CampaignResult:
    success_count: int
    error_count: int
    total_recipients: int
    errors: List[str]
    segment_id: Optional[int] = None


def _dedupe(recipients: Iterable[Recipient]) -> List[Recipient]:
    seen = set()
    unique = []
    for recipient in recipients:
        if recipient.email in seen:
            continue
        seen.add(recipient.email)
        unique.append(recipient)
    return unique


class RecipientResolver:
    def __init__(self, db: Session):
        self.db = db

    def resolve(self, recipient_filter: RecipientFilter) -> List[Recipient]:
        kind = recipient_filter.recipient_type
        if kind not in RECIPIENT_TYPES:
            raise RecipientResolutionError(f"Unknown recipient type '{kind}'")

        if kind == "custom":
            recipients = []
            for recipient in recipient_filter.custom_recipients:
                valid, reason = EmailValidator.is_valid_format(recipient.email)
                if not valid:
                    raise RecipientResolutionError(f"{recipient.email}: {reason}")
                recipients.append(Recipient(normalize_email(recipient.email), recipient.display_name))
            return _dedupe(recipients)

        query = self.db.query(WaitlistEntry)
        if kind == "waitlist":
            query = query.filter(WaitlistEntry.verified == True)  # noqa: E712
        elif kind == "zip":
            bad = [z for z in recipient_filter.zip_codes if not is_valid_zip(z)]
            if bad:
                raise RecipientResolutionError(f"Invalid ZIP code(s): {', '.join(bad)}")
            if not recipient_filter.zip_codes:
                raise RecipientResolutionError("A ZIP code filter needs at least one ZIP code")
            query = query.filter(WaitlistEntry.zip_code.in_(recipient_filter.zip_codes))

        rows = query.order_by(WaitlistEntry.created_at.asc(), WaitlistEntry.id.asc()).all()
        return _dedupe(Recipient(email=row.email) for row in rows)


class CampaignSender:
    def __init__(
        self,
        db: Session,
        mailer: Mailer,
        renderer: TemplateRenderer,
        error_limit: Optional[int] = None,
    ):
        self.db = db
        self.mailer = mailer
        self.renderer = renderer
        self.resolver = RecipientResolver(db)
        self.error_limit = settings.CAMPAIGN_ERROR_LIMIT if error_limit is None else error_limit

    async def send(
        self,
        template: Template,
        recipient_filter: RecipientFilter,
        from_email: Optional[str] = None,
    ) -> CampaignResult:
        recipients = self.resolver.resolve(recipient_filter)
        if not recipients:
            raise NoRecipientsError("No recipients matched the selected filter")

        sender = from_email or template.from_email or settings.MARKETING_FROM
        html = self.renderer.render(template)

        logger.info(f"📧 Sending '{template.name}' to {len(recipients)} recipient(s) from {sender}")
        success_count, error_count, errors = await self._deliver(recipients, template.subject, html, sender)

        segment = EmailSegment(
            template_id=template.row.id if isinstance(template, CustomTemplate) else None,
            template_name=template.name,
            zip_codes=list(recipient_filter.zip_codes) if recipient_filter.recipient_type == "zip" else [],
            total_recipients=len(recipients),
            status="completed",
        )
        self.db.add(segment)
        self.db.commit()
        self.db.refresh(segment)

        logger.info(
            f"Campaign '{template.name}' finished: {success_count} sent, {error_count} failed "
            f"(segment {segment.id})"
        )
        return CampaignResult(
            success_count=success_count,
            error_count=error_count,
            total_recipients=len(recipients),
            errors=errors,
            segment_id=segment.id,
        )

    async def _deliver(self, recipients: Sequence[Recipient], subject: str, html: str, sender: str):
        success_count = 0
        error_count = 0
        errors: List[str] = []

        for recipient in recipients:
            try:
                result = await self.mailer.send(recipient.email, subject, html, sender, recipient.display_name)
                ok, error = result.success, result.error
            except Exception as e:
                ok, error = False, str(e)

            if ok:
                success_count += 1
                continue
            error_count += 1
            if len(errors) < self.error_limit:
                errors.append(f"{recipient.email}: {error or 'Unknown error'}")

        return success_count, error_count, errors

    async def send_test(self, template: Template, test_email: str, from_email: Optional[str] = None) -> None:
        """Single send to an admin's inbox. Writes no segment row."""
        valid, reason = EmailValidator.is_valid_format(test_email)
        if not valid:
            raise RecipientResolutionError(f"{test_email}: {reason}")

        sender = from_email or template.from_email or settings.MARKETING_FROM
        html = self.renderer.render(template, _preview_context(template))
        result = await self.mailer.send(normalize_email(test_email), f"[TEST] {template.subject}", html, sender)
        if not result.success:
            raise DeliveryError(f"Test email to {test_email} failed: {result.error}")
        logger.info(f"Test email for '{template.name}' sent to {test_email}")


def _preview_context(template: Template) -> dict:
    # sample values so system templates render meaningfully in a test send
    if template.kind == "system":
        return {"code": "123456", "zip_code": "78701", "expires_in_seconds": settings.VERIFICATION_CODE_TTL_SECONDS}
    return {}
