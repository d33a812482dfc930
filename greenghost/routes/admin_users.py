from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List
import logging

from greenghost.auth.dependencies import get_current_admin
from greenghost.database import get_db
from greenghost.models.admin import Admin
from greenghost.schemas.admin import AdminCreate, AdminResponse, AdminUpdate
from greenghost.utils.hash import hash_password

router = APIRouter(
    prefix="/api/users",
    tags=["Admin Accounts"]
)

logger = logging.getLogger(__name__)


def _username_taken(db: Session, username: str, exclude_id: int = None) -> bool:
    query = db.query(Admin).filter(func.lower(Admin.username) == username.strip().lower())
    if exclude_id is not None:
        query = query.filter(Admin.id != exclude_id)
    return query.first() is not None


def _get_or_404(db: Session, admin_id: int) -> Admin:
    admin = db.query(Admin).filter(Admin.id == admin_id).first()
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    return admin


@router.get("", response_model=List[AdminResponse])
def list_admins(db: Session = Depends(get_db), current: Admin = Depends(get_current_admin)):
    return db.query(Admin).order_by(Admin.id.asc()).all()


@router.post("", response_model=AdminResponse, status_code=201)
def create_admin(data: AdminCreate, db: Session = Depends(get_db), current: Admin = Depends(get_current_admin)):
    if _username_taken(db, data.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    admin = Admin(
        username=data.username.strip(),
        email=data.email,
        hashed_password=hash_password(data.password),
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin {current.username} created admin account '{admin.username}'")
    return admin


@router.patch("/{admin_id}", response_model=AdminResponse)
def update_admin(
    admin_id: int,
    data: AdminUpdate,
    db: Session = Depends(get_db),
    current: Admin = Depends(get_current_admin),
):
    admin = _get_or_404(db, admin_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("username") is not None:
        if _username_taken(db, changes["username"], exclude_id=admin.id):
            raise HTTPException(status_code=400, detail="Username already exists")
        admin.username = changes["username"].strip()
    if changes.get("password") is not None:
        admin.hashed_password = hash_password(changes["password"])
    if "email" in changes:
        admin.email = changes["email"]
    if changes.get("is_active") is not None:
        if admin.id == current.id and not changes["is_active"]:
            raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
        admin.is_active = changes["is_active"]

    db.commit()
    db.refresh(admin)
    logger.info(f"Admin {current.username} updated admin account {admin.id}")
    return admin


@router.delete("/{admin_id}")
def delete_admin(admin_id: int, db: Session = Depends(get_db), current: Admin = Depends(get_current_admin)):
    if admin_id == current.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    admin = _get_or_404(db, admin_id)
    username = admin.username
    db.delete(admin)
    db.commit()
    logger.info(f"Admin {current.username} deleted admin account '{username}'")
    return {"status": "success", "message": "Admin deleted"}
