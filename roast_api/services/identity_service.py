"""Identity resolution: maps request context to a single principal.

Accounts come from a verified bearer token issued by the identity provider;
guests are identified by a self-reported email, or only by the paid
checkout session they redeem. Nothing here touches the
database.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email
from jose import JWTError, jwt

from roast_api.core.config import settings
from roast_api.errors.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


class PrincipalKind(str, Enum):
    ACCOUNT = "account"
    GUEST = "guest"


@dataclass(frozen=True)
class Principal:
    kind: PrincipalKind
    id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.kind == PrincipalKind.GUEST

    @property
    def key(self) -> str:
        """Stable ledger key: the account id, or the normalized email for guests."""
        return self.id if self.kind == PrincipalKind.ACCOUNT else self.email

    @classmethod
    def account(cls, account_id: str, email: Optional[str] = None) -> "Principal":
        return cls(kind=PrincipalKind.ACCOUNT, id=account_id, email=normalize_email(email) if email else None)

    @classmethod
    def guest(cls, email: str) -> "Principal":
        return cls(kind=PrincipalKind.GUEST, email=normalize_email(email))

    @classmethod
    def session_holder(cls) -> "Principal":
        """Anonymous caller redeeming a paid checkout session; no free-tier key."""
        return cls(kind=PrincipalKind.GUEST)


def normalize_email(email: str) -> str:
    """
    Canonical email form used at every ledger read and write.
    Raises ValueError for anything email-validator rejects.
    """
    try:
        validated = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"Invalid email address: {email!r} ({exc})") from exc
    return validated.normalized.lower()


def decode_identity_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Verify an identity-provider token and return its claims.
    Returns None for a missing, malformed, expired or subject-less token.
    """
    if not token:
        return None
    options = {"verify_aud": settings.AUTH_AUDIENCE is not None}
    try:
        claims = jwt.decode(
            token,
            settings.AUTH_SECRET_KEY,
            algorithms=[settings.AUTH_ALGORITHM],
            audience=settings.AUTH_AUDIENCE,
            options=options,
        )
    except JWTError as exc:
        logger.info(f"Rejected identity token: {exc}")
        return None
    if not claims.get("sub"):
        return None
    return claims


def resolve_principal(
    account_claims: Optional[Dict[str, Any]] = None,
    email: Optional[str] = None,
    require_account: bool = False,
    payment_session_token: Optional[str] = None,
) -> Principal:
    """
    Produce exactly one principal from request context.

    A verified account always wins over a self-reported email. Raises
    ``UnauthenticatedError`` when nothing identifies the caller, or when an
    account is required and only an email was supplied. A payment session
    token alone is enough: the session itself funds the roast.
    """
    if account_claims and account_claims.get("sub"):
        claimed_email = account_claims.get("email")
        try:
            return Principal.account(str(account_claims["sub"]), claimed_email)
        except ValueError:
            return Principal.account(str(account_claims["sub"]))

    if require_account:
        raise UnauthenticatedError("Authentication required")

    if email:
        return Principal.guest(email)

    if payment_session_token:
        return Principal.session_holder()

    raise UnauthenticatedError("Sign in or provide an email to continue")
