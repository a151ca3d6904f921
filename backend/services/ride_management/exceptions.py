"""Custom exceptions for ride management."""


class RideServiceError(Exception):
    """Base for recoverable ride errors surfaced verbatim to the caller."""
    error_code = "ride_error"
    status_code = 400

    def __init__(self, message: str = "", errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class RideValidationError(RideServiceError):
    """Raised when a request is malformed or missing fields."""
    error_code = "validation_error"


class NoCaptainAvailableError(RideServiceError):
    """Raised when matching exhausted its candidate pool."""
    error_code = "no_captain_available"
    status_code = 404


class RideNotFoundError(RideServiceError):
    """Raised when a ride cannot be found or is not owned by the requester."""
    error_code = "not_found"
    status_code = 404


class InvalidTransitionError(RideServiceError):
    """Raised when the ride state does not allow the requested operation."""
    error_code = "invalid_transition"


class AlreadyRatedError(RideServiceError):
    """Raised when the rating slot for this actor is already set."""
    error_code = "already_rated"


class InvalidRatingError(RideServiceError):
    """Raised when a rating score is not an integer between 1 and 5."""
    error_code = "invalid_rating"
