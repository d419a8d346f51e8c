"""Exceptions raised by the maintenance gate and the Opencast client"""
from typing import Optional

from app.core.config import settings


class MaintenanceError(Exception):
    """Generic maintenance failure, raised when no other bounce applies"""

    message_key = "maintenance_exception_message"

    def __init__(self, message: Optional[str] = None):
        self.message = message or settings.MAINTENANCE_EXCEPTION_MESSAGE
        super().__init__(self.message)


class AccessDeniedError(MaintenanceError):
    """A gated Opencast operation was refused during maintenance"""


class MaintenanceRedirect(MaintenanceError):
    """Bounce the current request to a safe url"""

    def __init__(self, url: str, message: Optional[str] = None):
        self.url = url
        super().__init__(message)


class MaintenanceCloseWindow(MaintenanceError):
    """No safe redirect target exists, close the current window"""


class OpencastApiHttpError(Exception):
    """Opencast answered with a 4xx/5xx status or could not be reached"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
