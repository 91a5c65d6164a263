"""
Domain errors raised by the stores and services.

Each error carries the HTTP status it is reported with; the exception
handlers in ``soilsense.main`` turn them into ``{"status": "error",
"error": message}`` bodies.
"""


class SoilSenseError(Exception):
    """Base class for every error reported to API callers"""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmail(SoilSenseError):
    status_code = 400
    default_message = "Duplicate email"


class DuplicateName(SoilSenseError):
    status_code = 409
    default_message = "Duplicate device name"


class InvalidCredentials(SoilSenseError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthorized(SoilSenseError):
    """Missing, invalid or expired token, or a token for an unknown user"""

    status_code = 401
    default_message = "Unauthorized"


class InvalidToken(SoilSenseError):
    status_code = 401
    default_message = "Invalid token"


class NotFound(SoilSenseError):
    status_code = 404
    default_message = "Not found"


class InvalidRequest(SoilSenseError):
    status_code = 400
    default_message = "Invalid request"


class InternalError(SoilSenseError):
    status_code = 500


class ConfigurationError(Exception):
    """Raised at startup when the settings cannot run the service"""
