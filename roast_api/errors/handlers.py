"""Error handlers for the application"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from roast_api.errors.exceptions import PaymentRequiredException
from roast_api.errors.response_codes import ErrorCode, PAYWALL_CODES, error_response

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(f"Validation error on {request.url}: {errors}")

    content = error_response(code=ErrorCode.VALIDATION_ERROR)
    content.update({"detail": "Validation error", "errors": errors})

    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


async def payment_required_exception_handler(request: Request, exc: PaymentRequiredException):
    """
    Render a paywall denial. Never a hard error: the client redirects to pricing.
    """
    code = PAYWALL_CODES.get(exc.reason, ErrorCode.NO_CREDITS_REMAINING)
    content = error_response(code=code)
    content.update({
        "detail": content["message"],
        "needs_payment": True,
        "reason": exc.reason,
    })

    logger.info(f"Paywall on {request.url.path}: {exc.reason}")

    return JSONResponse(status_code=status.HTTP_402_PAYMENT_REQUIRED, content=content)


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Database failures never leak driver messages to the client
    """
    logger.error(f"Database error on {request.method} {request.url.path}: {str(exc)}")

    content = error_response(code=ErrorCode.DATABASE_ERROR)
    content["detail"] = content["message"]
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)

    content = error_response(code=ErrorCode.INTERNAL_ERROR)
    content["detail"] = content["message"]
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
