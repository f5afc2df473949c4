"""
Auth Module - guardian login and registration
"""
from .router import router as auth_router, create_access_token, decode_access_token
from .models import (
    LoginRequest,
    ForgotPasswordRequest,
    GuardianRegistration,
    PlayerRegistration,
    SessionUser,
    TokenResponse,
    RegistrationResponse,
)
from .validation import get_age, mask_email

__all__ = [
    "auth_router",
    "create_access_token",
    "decode_access_token",
    "LoginRequest",
    "ForgotPasswordRequest",
    "GuardianRegistration",
    "PlayerRegistration",
    "SessionUser",
    "TokenResponse",
    "RegistrationResponse",
    "get_age",
    "mask_email",
]
