"""Authentication dependencies"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Any, Dict, Optional

from roast_api.services.identity_service import (
    Principal,
    decode_identity_token,
    resolve_principal,
)
from roast_api.errors.exceptions import UnauthenticatedError, UnauthorizedException

bearer_scheme = HTTPBearer(auto_error=False, description="Identity provider session token")


def get_account_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Dict[str, Any]]:
    """Verified token claims, or None for anonymous / invalid tokens"""
    if credentials is None:
        return None
    return decode_identity_token(credentials.credentials)


async def get_optional_account(
    claims: Optional[Dict[str, Any]] = Depends(get_account_claims),
) -> Optional[Principal]:
    """Get the signed-in account if any, otherwise return None"""
    if not claims:
        return None
    return resolve_principal(account_claims=claims)


async def require_account(
    claims: Optional[Dict[str, Any]] = Depends(get_account_claims),
) -> Principal:
    """Require a verified account; guests are prompted to sign in"""
    try:
        return resolve_principal(account_claims=claims, require_account=True)
    except UnauthenticatedError as exc:
        raise UnauthorizedException(detail=str(exc))
