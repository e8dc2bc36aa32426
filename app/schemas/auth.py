import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.enums import UserRole

BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 6
_PASSWORD_CLASSES = (
    (re.compile(r'[a-z]'), 'a lowercase letter'),
    (re.compile(r'[A-Z]'), 'an uppercase letter'),
    (re.compile(r'\d'), 'a digit'),
    (re.compile(r'[^A-Za-z0-9]'), 'a special character'),
)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, max_length=32)

    @field_validator('password')
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        # bcrypt silently ignores everything past 72 bytes
        if len(value.encode('utf-8')) > BCRYPT_MAX_BYTES:
            raise ValueError(f'Password must be at most {BCRYPT_MAX_BYTES} bytes')
        missing = [label for pattern, label in _PASSWORD_CLASSES if not pattern.search(value)]
        if missing:
            raise ValueError('Password must contain ' + ', '.join(missing))
        return value

    @field_validator('first_name', 'last_name')
    @classmethod
    def check_name_length(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not 2 <= len(value) <= 100:
            raise ValueError('Name must be between 2 and 100 characters')
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = 'bearer'
    expires_in: int
    email: EmailStr


class ClaimsOut(BaseModel):
    id: int
    email: EmailStr
    role: UserRole


class SessionOut(BaseModel):
    id: int
    created_at: datetime
    expires_at: datetime
