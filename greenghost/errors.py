# greenghost/errors.py
"""
Domain errors raised by the services layer.

Routes let these propagate; ``greenghost.main`` renders them as
``{"error": <label>, "details": <message>}`` with the matching status code.
"""


class GreenGhostError(Exception):
    status_code = 500
    error = "Request failed"

    def __init__(self, details: str = ""):
        super().__init__(details or self.error)
        self.details = details or self.error


class ValidationFailed(GreenGhostError):
    status_code = 400
    error = "Validation failed"


class DuplicateEntryError(GreenGhostError):
    status_code = 400
    error = "Duplicate entry"


class InvalidCodeError(GreenGhostError):
    status_code = 400
    error = "Invalid or expired verification code"


class EntryNotFoundError(GreenGhostError):
    status_code = 404
    error = "Waitlist entry not found"


class TemplateNotFoundError(GreenGhostError):
    status_code = 404
    error = "Template not found"


class TemplateConflictError(GreenGhostError):
    status_code = 400
    error = "Template conflict"


class RecipientResolutionError(GreenGhostError):
    status_code = 400
    error = "Invalid recipient filter"


class NoRecipientsError(GreenGhostError):
    status_code = 400
    error = "No recipients"


class DeliveryError(GreenGhostError):
    status_code = 500
    error = "Failed to send email"
