"""Checkout input models."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ShippingDetails(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    full_name: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=2)
    phone: Optional[str] = None


class PaymentDetails(BaseModel):
    """
    Payment method reference returned by the payment provider's SDK.

    Only provider tokens travel through the client; there is deliberately no
    field for card numbers, and unknown fields are rejected.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    provider: str = Field(min_length=1)
    payment_method_token: Optional[str] = None
    payment_method_tokens: List[str] = Field(default_factory=list)

    @field_validator("payment_method_tokens")
    @classmethod
    def _drop_blank_tokens(cls, tokens: List[str]) -> List[str]:
        return [token.strip() for token in tokens if token and token.strip()]

    @model_validator(mode="after")
    def _require_token(self) -> "PaymentDetails":
        if not self.payment_method_token and not self.payment_method_tokens:
            raise ValueError("payment method token is required")
        return self

    @property
    def tokens(self) -> List[str]:
        tokens = list(self.payment_method_tokens)
        if self.payment_method_token and self.payment_method_token not in tokens:
            tokens.insert(0, self.payment_method_token)
        return tokens
