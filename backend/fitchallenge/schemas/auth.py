from __future__ import annotations
import re
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

# At least one lowercase, one uppercase and one digit
STRONG_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")

class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    confirm_password: str

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str):
        if not STRONG_PASSWORD_RE.match(v):
            raise ValueError("Password must contain uppercase, lowercase, and number")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)

class UserPublic(BaseModel):
    id: str
    name: str
    email: EmailStr
    profile_image: str | None = None
    created_at: datetime

class TokenPair(BaseModel):
    access: str
    refresh: str

class AuthSession(BaseModel):
    message: str
    user: UserPublic
    tokens: TokenPair
