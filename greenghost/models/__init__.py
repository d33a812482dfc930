# greenghost/models/__init__.py

from .admin import Admin
from .waitlist import WaitlistEntry
from .verification_token import VerificationToken
from .email_template import EmailTemplate
from .email_segment import EmailSegment

__all__ = ["Admin", "WaitlistEntry", "VerificationToken", "EmailTemplate", "EmailSegment"]
