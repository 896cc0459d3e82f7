"""Registration, login and user schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

BCRYPT_MAX_BYTES = 72


class RegisterRequest(BaseModel):
    email: EmailStr = Field(description="Login name; must be unique")
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    # bcrypt rejects more than 72 bytes; length here is in characters
    password: str = Field(min_length=8, max_length=72)
    confirm_password: str = Field(min_length=8, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes when UTF-8 encoded")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("password and confirm_password do not match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """
    Returned by POST /api/v1/auth/login.

    The client sends `token` back as `Authorization: Bearer <token>` until
    `expiration` passes.
    """
    token: str = Field(description="Signed JWT bearer token")
    token_type: str = Field(default="bearer")
    expiration: datetime = Field(description="When the token stops being accepted (UTC)")
    user: UserResponse
