"""Rejection Roast API application"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from sqlalchemy.exc import SQLAlchemyError
import logging

from roast_api.core.config import settings
from roast_api.utils.logger import setup_file_logging
from roast_api.api.v1.api import api_router
from roast_api.db.init_db import init_db
from roast_api.errors.exceptions import PaymentRequiredException
from roast_api.errors.handlers import (
    validation_exception_handler,
    payment_required_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)

setup_file_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), log_dir=settings.LOG_DIR or None)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Resume rejection roasts with free-tier, credit and one-time payment entitlements",
    version=settings.PROJECT_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)


def custom_openapi():
    """Document the bearer token and the paywall response on the roast endpoint"""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        description="Resume rejection roasts. Sign in with your identity provider token, or roast once for free with an email.",
        routes=app.routes,
    )

    schemes = openapi_schema.get("components", {}).get("securitySchemes", {})
    if "HTTPBearer" in schemes:
        schemes["HTTPBearer"]["description"] = \
            "Session token from the identity provider. Optional on **POST /roasts** (guests send `email`)."

    roast_path = openapi_schema.get("paths", {}).get(f"{settings.API_V1_STR}/roasts", {})
    if "post" in roast_path:
        roast_path["post"].setdefault("responses", {})["402"] = {
            "description": "Payment required: `{needs_payment: true, reason}`. Redirect to pricing.",
        }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PaymentRequiredException, payment_required_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "version": settings.PROJECT_VERSION, "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    """Create missing tables and log startup"""
    try:
        init_db()
        logger.warning(f"{settings.PROJECT_NAME} STARTED ({settings.ENVIRONMENT}) - tables ready")
    except SQLAlchemyError as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.warning(f"{settings.PROJECT_NAME} STARTED - database unavailable, requests will fail until it is reachable")


@app.on_event("shutdown")
async def shutdown_event():
    logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")
