"""
Application exceptions, translated to HTTP responses in error_handlers
"""

from typing import Optional, Dict, Any


class BaseAppException(Exception):
    """Base application exception"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


# === Authentication / authorization ===
class AuthenticationError(BaseAppException):
    """Caller identity could not be resolved"""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, 401, "AUTHENTICATION_ERROR", details)


class AuthorizationError(BaseAppException):
    """Access gate denial"""

    def __init__(
        self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, 403, "AUTHORIZATION_ERROR", details)


# === Validation ===
class ValidationError(BaseAppException):
    """Invalid input data"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, "VALIDATION_ERROR", details)


class DuplicateError(BaseAppException):
    """A unique business key is already taken"""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field} '{value}' already exists"
        details = {"resource": resource, "field": field, "value": str(value)}
        super().__init__(message, 400, "DUPLICATE_ERROR", details)


# === Resources ===
class NotFoundError(BaseAppException):
    """Resource not found"""

    def __init__(self, resource: str, identifier: Any = None):
        if identifier is not None:
            message = f"{resource} with identifier '{identifier}' not found"
            details = {"resource": resource, "identifier": str(identifier)}
        else:
            message = f"{resource} not found"
            details = {"resource": resource}
        super().__init__(message, 404, "NOT_FOUND", details)


class ConcurrencyConflictError(BaseAppException):
    """The row was modified by another request since it was read"""

    def __init__(self, resource: str, identifier: Any):
        message = f"{resource} '{identifier}' was modified by another request"
        details = {"resource": resource, "identifier": str(identifier)}
        super().__init__(message, 409, "CONCURRENCY_CONFLICT", details)


# === Business rules ===
class BusinessLogicError(BaseAppException):
    """Business rule violation"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, "BUSINESS_LOGIC_ERROR", details)


class DependentRecordsError(BusinessLogicError):
    """Deletion blocked by existing children"""

    def __init__(self, resource: str, dependents: Dict[str, int]):
        names = ", ".join(f"{count} {name}" for name, count in dependents.items())
        message = f"Cannot delete {resource}: it still has {names}"
        super().__init__(message, {"resource": resource, "dependents": dependents})


# === Database ===
class DatabaseError(BaseAppException):
    """Database failure"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, 500, "DATABASE_ERROR", details)


class DatabaseConnectionError(BaseAppException):
    """Database unreachable"""

    def __init__(self, message: str = "Database connection failed"):
        super().__init__(message, 503, "DATABASE_CONNECTION_ERROR")


class DatabaseTimeoutError(BaseAppException):
    def __init__(self, operation: str, timeout: int):
        message = f"Database operation '{operation}' timed out after {timeout}s"
        details = {"operation": operation, "timeout": timeout}
        super().__init__(message, 504, "DATABASE_TIMEOUT", details)


class DatabaseIntegrityError(BaseAppException):
    """Storage-level constraint violation (lost uniqueness race)"""

    def __init__(self, constraint: str, details: Optional[Dict[str, Any]] = None):
        message = f"Database integrity constraint violated: {constraint}"
        error_details = {"constraint": constraint}
        if details:
            error_details.update(details)
        super().__init__(message, 409, "DATABASE_INTEGRITY_ERROR", error_details)


# === Configuration ===
class ConfigurationError(BaseAppException):
    def __init__(self, parameter: str, message: str = None):
        message = (
            message or f"Configuration parameter '{parameter}' is invalid or missing"
        )
        details = {"parameter": parameter}
        super().__init__(message, 500, "CONFIGURATION_ERROR", details)
