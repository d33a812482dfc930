# greenghost/models/verification_token.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime

from greenghost.database import Base


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    code = Column(String(6), nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<VerificationToken email={self.email} used={self.used}>"
