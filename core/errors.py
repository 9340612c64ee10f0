# core/errors.py
"""
Error taxonomy shared by services and request handlers
"""


class JournalServiceError(Exception):
    """Base exception for journal backend operations"""
    status_code = 400
    # Whether the envelope shows this error's own message instead of the
    # handler's generic failure message
    expose_message = False

    def __init__(self, message: str = None, details=None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        self.details = details


class ValidationError(JournalServiceError):
    """Malformed or missing input"""
    status_code = 400


class NotFoundError(JournalServiceError):
    """Referenced entity absent, or a listing came back empty"""
    status_code = 404
    expose_message = True


class ConflictError(JournalServiceError):
    """Uniqueness violation on email, phone number or reviewer"""
    status_code = 409
    expose_message = True


class ArchiveIOError(JournalServiceError):
    """Upload missing or unreadable, or archive could not be written"""
    status_code = 404


class MailTransportError(JournalServiceError):
    """SMTP delivery failed"""
    status_code = 502
