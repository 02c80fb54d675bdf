class MediConnectError(Exception):
    """Base class for errors surfaced to API callers as a message string"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(MediConnectError):
    status_code = 400

class DuplicateIdentity(MediConnectError):
    status_code = 400

class InvalidCredentials(MediConnectError):
    status_code = 401

class Unauthorized(MediConnectError):
    status_code = 401

class Forbidden(MediConnectError):
    status_code = 403

class NotFound(MediConnectError):
    status_code = 404

class Conflict(MediConnectError):
    status_code = 409

class UpstreamFailure(MediConnectError):
    status_code = 502

class InvalidToken(Exception):
    """Raised by the token issuer; the access guard turns it into Unauthorized"""
