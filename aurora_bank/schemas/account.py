"""
Pydantic schemas for account and login operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from aurora_bank.models.base import MONEY_PRECISION

# bcrypt only hashes the first 72 bytes and refuses anything longer
MAX_PASSWORD_BYTES = 72


class AccountOpen(BaseModel):
    """Request to open a new account."""
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=5, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=8, max_length=MAX_PASSWORD_BYTES)
    opening_balance: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=MONEY_PRECISION, decimal_places=2
    )

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        # Runs before the pattern check so padded input is accepted
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(
                f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded"
            )
        return value


class AccountResponse(BaseModel):
    id: int
    name: str
    email: str
    account_number: str
    balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    account_id: int
    account_number: str
    balance: Decimal


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


class LoginResponse(BaseModel):
    message: str = "Login successful"
    account: AccountResponse
