"""API v1 router aggregation"""
from fastapi import APIRouter
from roast_api.api.v1.endpoints import roast_endpoints, free_tier_endpoints
from roast_api.api.v1.endpoints import user_endpoints
from roast_api.api.v1.endpoints import payment_endpoints

api_router = APIRouter()

api_router.include_router(roast_endpoints.router,     prefix="/roasts",    tags=["Roasts"])
api_router.include_router(free_tier_endpoints.router, prefix="/free-tier", tags=["Free Tier"])
api_router.include_router(user_endpoints.router,      prefix="/users",     tags=["Users"])
api_router.include_router(payment_endpoints.router,   prefix="/payment",   tags=["Payment"])
