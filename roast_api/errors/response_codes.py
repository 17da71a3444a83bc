"""
HTTP Response Codes and Messages
Centralized response handling for consistent API responses
"""
from typing import Any, Dict, Optional
from fastapi import status


class ResponseCode:
    """HTTP Response Code Container"""
    def __init__(self, code: int, message: str, status_code: int):
        self.code = code
        self.message = message
        self.status_code = status_code


class ErrorCode:
    """Error Response Codes (4xx, 5xx)"""

    VALIDATION_ERROR = ResponseCode(
        code=4221,
        message="Validation error",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )

    # 402 - Paywall
    NO_CREDITS_REMAINING = ResponseCode(
        code=4021,
        message="No roasts remaining. Please upgrade to continue.",
        status_code=status.HTTP_402_PAYMENT_REQUIRED
    )

    INVALID_OR_EXPIRED_SESSION = ResponseCode(
        code=4022,
        message="This payment session is invalid or has already been used.",
        status_code=status.HTTP_402_PAYMENT_REQUIRED
    )

    FREE_GRANT_ALREADY_USED = ResponseCode(
        code=4023,
        message="You've already used your free roast. Please purchase to continue.",
        status_code=status.HTTP_402_PAYMENT_REQUIRED
    )

    # 5xx
    INTERNAL_ERROR = ResponseCode(
        code=500,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    DATABASE_ERROR = ResponseCode(
        code=5001,
        message="An internal database error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


PAYWALL_CODES = {
    "no_credits_remaining": ErrorCode.NO_CREDITS_REMAINING,
    "invalid_or_expired_session": ErrorCode.INVALID_OR_EXPIRED_SESSION,
    "free_grant_already_used": ErrorCode.FREE_GRANT_ALREADY_USED,
}


def error_response(
    code: ResponseCode = ErrorCode.INTERNAL_ERROR,
    message: Optional[str] = None,
    errors: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Create a standardized error response

    Args:
        code: ResponseCode object
        message: Optional custom message
        errors: Optional detailed error information

    Returns:
        Standardized error response dictionary
    """
    response = {
        "success": False,
        "code": code.code,
        "message": message or code.message
    }

    if errors:
        response["errors"] = errors

    return response
