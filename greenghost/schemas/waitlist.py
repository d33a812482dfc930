# greenghost/schemas/waitlist.py

from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime


class WaitlistSignupRequest(BaseModel):
    # shapes are checked by the signup service so errors read the same everywhere
    email: str
    zip_code: str = Field(..., alias="zipCode")

    class Config:
        populate_by_name = True


class WaitlistSignupResponse(BaseModel):
    status: str = "pending_verification"
    debug_code: Optional[str] = None


class VerifyRequest(BaseModel):
    email: str
    code: str


class VerifyResponse(BaseModel):
    success: bool


class WaitlistEntryResponse(BaseModel):
    id: int
    email: str
    zip_code: str
    verified: bool
    created_at: datetime

    class Config:
        from_attributes = True


class WaitlistStats(BaseModel):
    total: int
    verified: int
    pending: int
    by_zip_code: Dict[str, int]


class ZipPlaceResponse(BaseModel):
    zip_code: str
    city: str
    state: str
    state_abbreviation: str
    latitude: float
    longitude: float
    waitlist_count: int = 0
