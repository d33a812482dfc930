# greenghost/models/email_segment.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from datetime import datetime

from greenghost.database import Base


class EmailSegment(Base):
    """Audit row written once per campaign send."""
    __tablename__ = "email_segments"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(Integer, ForeignKey("email_templates.id", ondelete="SET NULL"), nullable=True)
    template_name = Column(String, nullable=False)
    zip_codes = Column(JSON, nullable=False, default=list)
    sent_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    total_recipients = Column(Integer, nullable=False)
    status = Column(String, default="completed", nullable=False)
