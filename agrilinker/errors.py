"""Domain errors surfaced to API clients as JSON."""


class MarketplaceError(Exception):
    """Base error; carries the HTTP status it maps to."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(MarketplaceError):
    """Form-level validation failed."""
    status_code = 400


class AuthenticationError(MarketplaceError):
    status_code = 401


class PermissionDenied(MarketplaceError):
    status_code = 403


class NotFoundError(MarketplaceError):
    status_code = 404


class ConflictError(MarketplaceError):
    """Requested change conflicts with the current state of the entity."""
    status_code = 409
