# greenghost/models/email_template.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON
from datetime import datetime

from greenghost.database import Base


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    subject = Column(String, nullable=False)
    html_content = Column(Text, nullable=False)
    from_email = Column(String, nullable=True)
    recipient_type = Column(String, default="waitlist", nullable=False)  # all, waitlist, custom, zip
    recipient_filter = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
