# greenghost/models/waitlist.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime

from greenghost.database import Base


class WaitlistEntry(Base):
    __tablename__ = "waitlist"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)  # always lowercase
    zip_code = Column(String(5), nullable=False, index=True)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<WaitlistEntry email={self.email} verified={self.verified}>"
