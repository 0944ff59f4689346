"""Payload and usage models for the captive-portal backend."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class RegistrationPayload(BaseModel):
    """Body of the account registration call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: Annotated[str, Field(min_length=1)]
    email: Annotated[str, Field(min_length=3)]
    password1: Annotated[str, Field(min_length=1)]
    password2: Annotated[str, Field(min_length=1)]
    first_name: str = ""
    last_name: str = ""
    phone_number: Annotated[str, Field(min_length=1)]
    method: str = "mobile_phone"
    plan_pricing: Annotated[str, Field(min_length=1)]

    @property
    def passwords_match(self) -> bool:
        """Check if both password fields agree."""
        return self.password1 == self.password2


class LoginPayload(BaseModel):
    """Body of the token issuance call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: Annotated[str, Field(min_length=1)]
    password: Annotated[str, Field(min_length=1)]


class UsageSummary(BaseModel):
    """Remaining data allowance derived from a usage response."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    remaining_bytes: int
    remaining_mb: str
    has_data: bool
