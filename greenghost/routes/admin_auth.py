from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
import logging

from greenghost.auth.dependencies import get_current_admin
from greenghost.database import get_db
from greenghost.models.admin import Admin
from greenghost.schemas.admin import AdminLogin, AdminResponse, Token
from greenghost.utils.hash import verify_password
from greenghost.utils.token import create_access_token

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin Authentication"]
)

logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token)
def admin_login(data: AdminLogin, db: Session = Depends(get_db)):
    # Case-insensitive username lookup
    admin = db.query(Admin).filter(
        func.lower(Admin.username) == data.username.strip().lower()
    ).first()

    if not admin or not admin.is_active or not verify_password(data.password, admin.hashed_password):
        logger.warning(f"Failed admin login for {data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )

    logger.info(f"Admin logged in: {admin.username}")
    return Token(access_token=create_access_token(data={"sub": admin.username, "role": "admin"}))


@router.get("/me", response_model=AdminResponse)
def read_current_admin(admin: Admin = Depends(get_current_admin)):
    return admin
