# greenghost/routes/email_templates.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from greenghost.auth.dependencies import get_current_admin
from greenghost.database import get_db
from greenghost.dependencies import get_campaign_sender, get_template_service
from greenghost.errors import ValidationFailed
from greenghost.models.admin import Admin
from greenghost.models.email_segment import EmailSegment
from greenghost.schemas.email_template import (
    EmailSegmentResponse,
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
    SendCampaignRequest,
    SendCampaignResponse,
    SendTestEmailRequest,
)
from greenghost.services.campaigns import CampaignSender, Recipient, RecipientFilter
from greenghost.services.email_templates import Template, TemplateService, parse_template_ref

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/email-templates",
    tags=["Email Templates"],
    dependencies=[Depends(get_current_admin)],
)


def to_response(template: Template) -> EmailTemplateResponse:
    row = getattr(template, "row", None)
    return EmailTemplateResponse(
        id=str(template.ref),
        kind=template.kind,
        name=template.name,
        subject=template.subject,
        html_content=template.html_content,
        from_email=template.from_email,
        recipient_type=template.recipient_type,
        recipient_filter=template.recipient_filter,
        is_active=template.is_active,
        created_at=row.created_at if row is not None else None,
        updated_at=row.updated_at if row is not None else None,
    )


def build_filter(payload: SendCampaignRequest, template: Template) -> RecipientFilter:
    """Explicit recipients win, then ZIP codes, then the template's stored filter."""
    if payload.custom_recipients:
        return RecipientFilter(
            recipient_type="custom",
            custom_recipients=[Recipient(email=r.email, display_name=r.name) for r in payload.custom_recipients],
        )
    if payload.zip_codes:
        return RecipientFilter(recipient_type="zip", zip_codes=payload.zip_codes)

    recipient_filter = RecipientFilter.for_template(template)
    if payload.recipient_type:
        recipient_filter.recipient_type = payload.recipient_type
    return recipient_filter


@router.get("", response_model=List[EmailTemplateResponse])
def list_templates(service: TemplateService = Depends(get_template_service)):
    return [to_response(t) for t in service.list_all()]


@router.post("", response_model=EmailTemplateResponse, status_code=201)
def create_template(payload: EmailTemplateCreate, service: TemplateService = Depends(get_template_service)):
    return to_response(service.create(payload.model_dump()))


@router.get("/segments", response_model=List[EmailSegmentResponse])
def list_segments(db: Session = Depends(get_db)):
    return db.query(EmailSegment).order_by(EmailSegment.sent_at.desc(), EmailSegment.id.desc()).all()


@router.post("/test")
async def send_test_email(
    payload: SendTestEmailRequest,
    service: TemplateService = Depends(get_template_service),
    sender: CampaignSender = Depends(get_campaign_sender),
):
    template = service.get(parse_template_ref(payload.template_id))
    await sender.send_test(template, payload.test_email, payload.from_email)
    return {"success": True, "message": f"Test email sent to {payload.test_email}"}


@router.get("/{template_id}", response_model=EmailTemplateResponse)
def get_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    return to_response(service.get(parse_template_ref(template_id)))


@router.patch("/{template_id}", response_model=EmailTemplateResponse)
def update_template(
    template_id: str,
    payload: EmailTemplateUpdate,
    service: TemplateService = Depends(get_template_service),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No changes supplied")
    return to_response(service.update(parse_template_ref(template_id), changes))


@router.delete("/{template_id}")
def delete_template(template_id: str, service: TemplateService = Depends(get_template_service)):
    service.delete(parse_template_ref(template_id))
    return {"status": "success", "message": "Template deleted"}


@router.post("/{template_id}/send", response_model=SendCampaignResponse)
async def send_campaign(
    template_id: str,
    payload: SendCampaignRequest,
    admin: Admin = Depends(get_current_admin),
    service: TemplateService = Depends(get_template_service),
    sender: CampaignSender = Depends(get_campaign_sender),
):
    template = service.get(parse_template_ref(template_id))
    if not template.is_active:
        raise ValidationFailed(f"Template '{template.name}' is inactive")

    logger.info(f"Admin {admin.username} started campaign '{template.name}'")
    result = await sender.send(template, build_filter(payload, template), payload.from_email)
    return SendCampaignResponse(
        success_count=result.success_count,
        error_count=result.error_count,
        total_recipients=result.total_recipients,
        errors=result.errors,
        segment_id=result.segment_id,
    )
