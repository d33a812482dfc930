# greenghost/utils/email_validator.py
import re
import dns.resolver
import dns.exception
import logging
from typing import Tuple, List

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
ZIP_PATTERN = re.compile(r'^\d{5}$')
CODE_PATTERN = re.compile(r'^\d{6}$')

DISPOSABLE_DOMAINS = {
    'tempmail.com', '10minutemail.com', 'guerrillamail.com',
    'mailinator.com', 'yopmail.com', 'throwawaymail.com',
    'fakeinbox.com', 'trashmail.com', 'getairmail.com',
    'dispostable.com', 'maildrop.cc'
}

COMMON_TYPOS = {
    'gmial.com': 'gmail.com',
    'gmal.com': 'gmail.com',
    'gmail.cm': 'gmail.com',
    'gmail.con': 'gmail.com',
    'gmai.com': 'gmail.com',
    'gamil.com': 'gmail.com',
    'yaho.com': 'yahoo.com',
    'yahoo.cm': 'yahoo.com',
    'hotmal.com': 'hotmail.com',
    'hotmail.cm': 'hotmail.com',
    'outlok.com': 'outlook.com',
    'outlook.cm': 'outlook.com',
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_valid_zip(zip_code: str) -> bool:
    return bool(zip_code) and bool(ZIP_PATTERN.match(zip_code))


def is_valid_code(code: str) -> bool:
    return bool(code) and bool(CODE_PATTERN.match(code))


class EmailValidator:
    """Email validation utility to prevent hard bounces"""

    @staticmethod
    def is_valid_format(email: str) -> Tuple[bool, str]:
        """
        Validate email format using regex
        Returns: (is_valid, error_message)
        """
        if not email or not isinstance(email, str):
            return False, "Email is required"

        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            return False, "Invalid email format"

        domain = email.split('@')[1]
        if domain in DISPOSABLE_DOMAINS:
            return False, "Disposable email addresses are not allowed"

        return True, "Email format is valid"

    @staticmethod
    def has_valid_mx_record(email: str) -> Tuple[bool, str]:
        """
        Check if email domain has valid MX records
        Returns: (has_mx, error_message)
        """
        domain = email.split('@')[1]
        try:
            mx_records = dns.resolver.resolve(domain, 'MX')
            if len(mx_records) > 0:
                return True, f"Domain has {len(mx_records)} MX record(s)"
            return False, "Domain has no MX records"
        except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN):
            return False, "Domain does not exist or has no MX records"
        except dns.resolver.Timeout:
            return False, "DNS lookup timed out"
        except dns.exception.DNSException as e:
            logger.error(f"MX record check failed: {str(e)}")
            return False, f"MX record check failed: {str(e)}"

    @staticmethod
    def validate_signup_email(email: str, check_mx: bool = False) -> Tuple[bool, str]:
        """Format check, then the optional MX lookup. Used before any side effect."""
        format_valid, format_msg = EmailValidator.is_valid_format(email)
        if not format_valid:
            return False, format_msg
        if check_mx:
            return EmailValidator.has_valid_mx_record(normalize_email(email))
        return True, format_msg

    @staticmethod
    def check_for_typos(email: str) -> List[str]:
        """Check for common email typos"""
        suggestions = []
        domain = normalize_email(email).split('@')[-1]
        if domain in COMMON_TYPOS:
            suggestions.append(f"Did you mean @{COMMON_TYPOS[domain]}?")
        return suggestions
