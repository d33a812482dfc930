#!/usr/bin/env python3
"""
Create an admin account, or reset its password if it already exists.

Usage: python reset_admin.py <username> <password> [email]
"""

import sys
import logging

from greenghost.database import SessionLocal, init_db
from greenghost.models.admin import Admin
from greenghost.utils.hash import hash_password

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def reset_admin(username: str, password: str, email: str = None) -> Admin:
    init_db()
    db = SessionLocal()
    try:
        admin = db.query(Admin).filter(Admin.username == username).first()
        if admin:
            admin.hashed_password = hash_password(password)
            admin.is_active = True
            if email:
                admin.email = email
            logger.info(f"Password reset for admin '{username}'")
        else:
            admin = Admin(username=username, email=email, hashed_password=hash_password(password))
            db.add(admin)
            logger.info(f"Created admin '{username}'")
        db.commit()
        db.refresh(admin)
        return admin
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    reset_admin(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
