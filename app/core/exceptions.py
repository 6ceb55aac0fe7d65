from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(ServiceError):
    """Caller has no identity or no tenant context."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class AuthorizationError(ServiceError):
    """Missing capability or tenant mismatch."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class SecurityViolationError(ServiceError):
    """Client tried to supply a tenant id."""

    def __init__(self, message: str) -> None:
        super().__init__(f"SECURITY_VIOLATION: {message}", status.HTTP_403_FORBIDDEN)


class NotFoundError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ValidationError(ServiceError):
    """Malformed input or a broken business rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ConflictError(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class ImmutableRecordError(ServiceError):
    """Raised by ORM hooks when an append-only row is modified."""

    def __init__(self, entity_type: str, entity_id: str, reason: str) -> None:
        super().__init__(f"{entity_type} {entity_id}: {reason}")
        self.entity_type = entity_type
        self.entity_id = entity_id
