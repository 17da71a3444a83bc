"""Custom exceptions for error handling"""
from typing import Optional

from fastapi import HTTPException, status


class BaseHTTPException(HTTPException):
    """Base exception class for all custom HTTP exceptions"""
    def __init__(self, detail: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.detail,
            headers=headers
        )


class BadRequestException(BaseHTTPException):
    """400 Bad Request"""
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"


class UnauthorizedException(BaseHTTPException):
    """401 Unauthorized"""
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Sign in to continue"

    def __init__(self, detail: str = None):
        super().__init__(
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PaymentRequiredException(BaseHTTPException):
    """402 Payment Required - rendered by the client as a paywall redirect"""
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    detail = "No roasts remaining. Please upgrade to continue."

    def __init__(self, reason: str, detail: str = None):
        self.reason = reason
        super().__init__(detail=detail)


class NotFoundException(BaseHTTPException):
    """404 Not Found"""
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class BadGatewayException(BaseHTTPException):
    """502 Bad Gateway"""
    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Upstream provider error"


class ServiceUnavailableException(BaseHTTPException):
    """503 Service Unavailable"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Service temporarily unavailable"


class ExternalAnalysisException(ServiceUnavailableException):
    """Analysis call failed or returned unusable output; safe to retry"""
    detail = "Failed to analyze. Please try again."

    def __init__(self, detail: str = None):
        super().__init__(detail=detail, headers={"Retry-After": "5"})


# ── domain errors raised by services ─────────────────────────────────────────

class UnauthenticatedError(Exception):
    """No principal could be resolved where one is required."""


class AnalysisError(Exception):
    """The LLM call failed or its output did not match the analysis schema."""


class PaymentProviderError(Exception):
    """The payment provider rejected a request or a webhook could not be verified."""

    def __init__(self, message: str, *, signature_invalid: bool = False, cause: Optional[Exception] = None):
        super().__init__(message)
        self.signature_invalid = signature_invalid
        self.cause = cause
