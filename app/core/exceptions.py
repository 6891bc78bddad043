"""
Custom exceptions for the application
"""


class BaseAppException(Exception):
    """Base application exception"""
    status_code = 500

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Raised when request input is missing or malformed"""
    status_code = 400


class ConflictError(BaseAppException):
    """Raised when an email or wallet is already registered"""
    status_code = 409


class NotFoundError(BaseAppException):
    """Raised when a waitlist entry cannot be found or its token does not match"""
    status_code = 404


class DependencyError(BaseAppException):
    """Raised when the database or the email provider fails on the primary path"""
    status_code = 500
