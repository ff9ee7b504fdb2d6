
class ApplicationError(Exception):
    """
    Base class for application-specific errors.

    `kind` is the taxonomy bucket the HTTP layer maps to a status code,
    `code` is the machine-readable identifier returned to clients.
    """

    kind = "application"
    code = "APPLICATION_ERROR"
    default_message = "An application error occurred."

    def __init__(self, message=None, code=None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {
            "success": False,
            "error": {"code": self.code, "message": self.message},
        }


class InvalidIdError(ApplicationError):
    """Raised when a caller supplies a malformed identifier or reference."""
    kind = "invalid_id"
    code = "INVALID_ID_FORMAT"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Invalid {field_name} format. Must be a valid UUID.")


class NotFoundError(ApplicationError):
    kind = "not_found"
    code = "NOT_FOUND"
    default_message = "Resource not found"


class PickupLocationNotFoundError(NotFoundError):
    """Raised when a pickup location is not found."""
    code = "PICKUP_LOCATION_NOT_FOUND"
    default_message = "Pickup location not found"


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class ConflictError(ApplicationError):
    kind = "conflict"
    code = "CONFLICT"
    default_message = "The request conflicts with existing data"


class AdminEmailInUseError(ConflictError):
    """Raised when the email for a new pickup admin already belongs to a user."""
    code = "ADMIN_EMAIL_IN_USE"
    default_message = "A user with this email already exists"


class PickupLocationAlreadyAssignedError(ConflictError):
    """Raised when a pickup location is already managed by another user."""
    code = "PICKUP_LOCATION_ALREADY_ASSIGNED"
    default_message = "Pickup location is already assigned to another user"


class AdminAlreadyHasPickupLocationError(ConflictError):
    """Raised when an admin already has a pickup location attached."""
    code = "ADMIN_ALREADY_HAS_PICKUP_LOCATION"
    default_message = "Admin already has a pickup location attached"


class ValidationFailedError(ApplicationError):
    """Raised when a cross-field rule is violated."""
    kind = "validation"
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class InvalidRoleError(ApplicationError):
    """Raised when the subject of an operation does not hold the required role."""
    kind = "invalid_role"
    code = "INVALID_ADMIN_ROLE"
    default_message = "User does not have the required role"


class UpdateFailedError(ApplicationError):
    """Raised when a write reports no effect although the record existed."""
    kind = "update_failed"
    code = "UPDATE_FAILED"
    default_message = "Failed to update resource"


class PreconditionFailedError(ApplicationError):
    """Raised when an ETag-guarded write loses against a concurrent update."""
    kind = "precondition_failed"
    code = "PRECONDITION_FAILED"
    default_message = "Resource has been modified since it was last retrieved"


class DatabaseError(ApplicationError):
    """Raised for general database-related errors not specifically handled."""
    kind = "database"
    code = "DATABASE_ERROR"

    def __init__(self, message="A database error occurred.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception
