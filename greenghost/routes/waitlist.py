# greenghost/routes/waitlist.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List
import logging

import httpx

from greenghost.auth.dependencies import get_current_admin
from greenghost.config import settings
from greenghost.database import get_db
from greenghost.dependencies import get_signup_reconciler
from greenghost.models.admin import Admin
from greenghost.models.waitlist import WaitlistEntry
from greenghost.schemas.waitlist import (
    VerifyRequest,
    VerifyResponse,
    WaitlistEntryResponse,
    WaitlistSignupRequest,
    WaitlistSignupResponse,
    WaitlistStats,
    ZipPlaceResponse,
)
from greenghost.services.signup import SignupReconciler
from greenghost.services.zip_lookup import ZipLookupService, get_zip_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/waitlist", tags=["Waitlist"])


# ------------------ Public ------------------

@router.post("", response_model=WaitlistSignupResponse, response_model_exclude_none=True)
async def join_waitlist(
    payload: WaitlistSignupRequest,
    reconciler: SignupReconciler = Depends(get_signup_reconciler),
):
    logger.info(f"Received waitlist submission: {payload.email} ({payload.zip_code})")
    code = await reconciler.signup(payload.email, payload.zip_code)
    return WaitlistSignupResponse(
        status="pending_verification",
        debug_code=code if settings.DEBUG else None,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_waitlist_email(
    payload: VerifyRequest,
    reconciler: SignupReconciler = Depends(get_signup_reconciler),
):
    await reconciler.verify(payload.email, payload.code)
    return VerifyResponse(success=True)


# ------------------ Admin ------------------

@router.get("", response_model=List[WaitlistEntryResponse])
def list_waitlist(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    return db.query(WaitlistEntry).order_by(WaitlistEntry.created_at.desc(), WaitlistEntry.id.desc()).all()


@router.get("/stats", response_model=WaitlistStats)
def waitlist_stats(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    total = db.query(WaitlistEntry).count()
    verified = db.query(WaitlistEntry).filter(WaitlistEntry.verified == True).count()  # noqa: E712
    by_zip = db.query(WaitlistEntry.zip_code, func.count(WaitlistEntry.id)).group_by(WaitlistEntry.zip_code).all()
    return WaitlistStats(
        total=total,
        verified=verified,
        pending=total - verified,
        by_zip_code={zip_code: count for zip_code, count in by_zip},
    )


@router.get("/zip/{zip_code}", response_model=ZipPlaceResponse)
async def lookup_zip(
    zip_code: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
    zip_lookup: ZipLookupService = Depends(get_zip_lookup),
):
    try:
        place = await zip_lookup.lookup(zip_code)
    except httpx.HTTPError as e:
        logger.error(f"ZIP lookup failed for {zip_code}: {e}")
        raise HTTPException(status_code=502, detail="ZIP code lookup service unavailable")
    if place is None:
        raise HTTPException(status_code=404, detail=f"Unknown ZIP code {zip_code}")

    count = db.query(WaitlistEntry).filter(WaitlistEntry.zip_code == zip_code).count()
    return ZipPlaceResponse(**place.__dict__, waitlist_count=count)


@router.delete("/{entry_id}")
def delete_waitlist_entry(entry_id: int, db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    entry = db.query(WaitlistEntry).filter(WaitlistEntry.id == entry_id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Waitlist entry not found")
    email = entry.email
    db.delete(entry)
    db.commit()
    logger.info(f"Admin {admin.username} deleted waitlist entry {email}")
    return {"status": "success", "message": "Entry deleted"}
