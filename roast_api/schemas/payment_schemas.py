"""Payment Pydantic schemas."""
from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional

# pack id -> (roasts granted, price in cents, display name)
ROAST_PACKS = {
    "starter": (10, 500, "Starter Pack"),
    "pro": (50, 1500, "Pro Pack"),
}
SINGLE_ROAST = "single"


class CheckoutRequest(BaseModel):
    """Body sent by the client to start a checkout."""
    pack: Literal["single", "starter", "pro"] = Field(
        SINGLE_ROAST, description="single = one paid roast; starter/pro = credit packs (sign-in required)"
    )
    email: Optional[EmailStr] = Field(None, description="Prefills the checkout email")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class CheckoutResponse(BaseModel):
    session_id: str
    url: str
    pack: str
    amount: int = Field(..., description="Price in minor units")
    currency: str


class WebhookResponse(BaseModel):
    received: bool = True
    recorded: bool = False
    message: str = ""
