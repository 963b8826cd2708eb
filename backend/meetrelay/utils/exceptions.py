"""Custom exceptions and error handling utilities."""
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Optional


class AppException(Exception):
    """Base exception for application errors."""

    code = "AppError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Application error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SessionNotFoundError(AppException):
    """Raised when a session id does not exist."""
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Session not found"


class HostNotFoundError(AppException):
    """Raised when a host email does not resolve to a local user."""
    code = "HostNotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Host user not found"


class UnauthorizedError(AppException):
    """Raised when the caller does not own the resource."""
    code = "Unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized"


class InvalidPasswordError(AppException):
    code = "InvalidPassword"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid password"


class SessionExpiredError(AppException):
    code = "Expired"
    status_code = status.HTTP_410_GONE
    default_message = "Session has expired"


class SessionEndedError(AppException):
    code = "Ended"
    status_code = status.HTTP_410_GONE
    default_message = "Session has ended"


class InvalidKeyError(AppException):
    code = "InvalidKey"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid API key"


class CreateFailedError(AppException):
    code = "CreateFailed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to create session"


class NotFoundError(AppException):
    """Raised when a resource other than a session is not found."""
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ValidationError(AppException):
    """Raised when validation fails."""
    code = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(AppException):
    """Raised when authentication fails."""
    code = "AuthenticationError"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render domain errors as JSON with their error kind."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def handle_database_error(error: Exception, operation: str) -> HTTPException:
    """
    Convert database errors to HTTP exceptions.
    
    Args:
        error: The database error
        operation: Description of the operation that failed
        
    Returns:
        HTTPException with appropriate status code
    """
    error_message = str(error)

    if "duplicate" in error_message.lower() or "unique" in error_message.lower():
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Resource already exists: {operation}",
        )

    # Default to 500 for unknown database errors
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Database error during {operation}",
    )


def authentication_error(message: str = "Invalid credentials") -> HTTPException:
    """
    Create a standardized 401 authentication error.
    
    Args:
        message: Authentication error message
        
    Returns:
        HTTPException with 401 status
    """
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


def forbidden_error(message: str = "Access denied") -> HTTPException:
    """
    Create a standardized 403 forbidden error.
    
    Args:
        message: Forbidden error message
        
    Returns:
        HTTPException with 403 status
    """
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
