"""Error handling module"""
from roast_api.errors.exceptions import (
    BadRequestException,
    UnauthorizedException,
    PaymentRequiredException,
    NotFoundException,
    BadGatewayException,
    ServiceUnavailableException,
    ExternalAnalysisException,
    UnauthenticatedError,
    AnalysisError,
    PaymentProviderError,
)
from roast_api.errors.response_codes import (
    ErrorCode,
    error_response,
)

__all__ = [
    "BadRequestException",
    "UnauthorizedException",
    "PaymentRequiredException",
    "NotFoundException",
    "BadGatewayException",
    "ServiceUnavailableException",
    "ExternalAnalysisException",
    "UnauthenticatedError",
    "AnalysisError",
    "PaymentProviderError",
    "ErrorCode",
    "error_response",
]
