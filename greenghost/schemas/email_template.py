# greenghost/schemas/email_template.py

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional, Literal
from datetime import datetime

RecipientType = Literal["all", "waitlist", "custom", "zip"]


class CustomRecipient(BaseModel):
    email: str
    name: Optional[str] = None


class StoredRecipientFilter(BaseModel):
    """Default audience saved with a template."""
    custom_recipients: List[CustomRecipient] = []
    zip_codes: List[str] = []


class EmailTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    html_content: str = Field(..., min_length=1)
    from_email: Optional[EmailStr] = None
    recipient_type: RecipientType = "waitlist"
    recipient_filter: Optional[StoredRecipientFilter] = None
    is_active: bool = True


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    subject: Optional[str] = Field(None, min_length=1)
    html_content: Optional[str] = Field(None, min_length=1)
    from_email: Optional[EmailStr] = None
    recipient_type: Optional[RecipientType] = None
    recipient_filter: Optional[StoredRecipientFilter] = None
    is_active: Optional[bool] = None


class EmailTemplateResponse(BaseModel):
    id: str
    kind: Literal["system", "custom"]
    name: str
    subject: str
    html_content: str
    from_email: Optional[str] = None
    recipient_type: str
    recipient_filter: Optional[dict] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SendCampaignRequest(BaseModel):
    custom_recipients: Optional[List[CustomRecipient]] = Field(None, alias="customRecipients")
    zip_codes: Optional[List[str]] = Field(None, alias="zipCodes")
    recipient_type: Optional[RecipientType] = Field(None, alias="recipientType")
    from_email: Optional[EmailStr] = Field(None, alias="fromEmail")

    class Config:
        populate_by_name = True


class SendCampaignResponse(BaseModel):
    success_count: int = Field(..., alias="successCount")
    error_count: int = Field(..., alias="errorCount")
    total_recipients: int = Field(..., alias="totalRecipients")
    errors: List[str]
    segment_id: Optional[int] = Field(None, alias="segmentId")

    class Config:
        populate_by_name = True


class SendTestEmailRequest(BaseModel):
    template_id: str = Field(..., alias="templateId")
    test_email: EmailStr = Field(..., alias="testEmail")
    from_email: Optional[EmailStr] = Field(None, alias="fromEmail")

    class Config:
        populate_by_name = True


class EmailSegmentResponse(BaseModel):
    id: int
    template_id: Optional[int] = None
    template_name: str
    zip_codes: List[str]
    sent_at: datetime
    total_recipients: int
    status: str

    class Config:
        from_attributes = True
