"""
Auth Models - Pydantic models for login, session and registration
"""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .validation import (
    validate_password,
    validate_person_name,
    validate_player_birth_date,
    validate_uk_phone,
    validate_uk_postcode,
)


# =============================================
# Request Models
# =============================================

class LoginRequest(BaseModel):
    """Email and password login"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Password reset request"""
    email: EmailStr
    redirect_to: Optional[str] = None


class PlayerRegistration(BaseModel):
    """A child registered together with the guardian"""
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Optional[str] = None
    medical_conditions: Optional[str] = None
    additional_medical_notes: Optional[str] = None
    team_preference: Optional[str] = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        return validate_person_name(v, "First name")

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        return validate_person_name(v, "Last name")

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        return validate_player_birth_date(v)


class GuardianRegistration(BaseModel):
    """Guardian registration form"""
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    phone: str
    relationship: str = Field(default="parent", max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None

    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_relationship: Optional[str] = None

    terms_accepted: bool = Field(...)
    code_of_conduct_accepted: bool = Field(...)
    photo_consent: bool = False

    players: List[PlayerRegistration] = Field(default_factory=list)

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        return validate_person_name(v, "First name")

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        return validate_person_name(v, "Last name")

    @field_validator('password')
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return validate_uk_phone(v)

    @field_validator('emergency_contact_phone')
    @classmethod
    def validate_emergency_phone(cls, v):
        if v is None or not v.strip():
            return None
        return validate_uk_phone(v)

    @field_validator('postcode')
    @classmethod
    def validate_postcode(cls, v):
        return validate_uk_postcode(v)

    @field_validator('terms_accepted', 'code_of_conduct_accepted')
    @classmethod
    def validate_accepted(cls, v):
        if not v:
            raise ValueError('Terms and code of conduct must be accepted')
        return v


# =============================================
# Response Models
# =============================================

class SessionUser(BaseModel):
    """Signed-in guardian"""
    guardian_id: str
    email: str
    full_name: str = ""
    roles: List[str] = Field(default_factory=list)
    approval_status: Optional[str] = None


class TokenResponse(BaseModel):
    """Token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser


class RegistrationResponse(BaseModel):
    """Registration result"""
    guardian_id: str
    player_ids: List[str] = Field(default_factory=list)
    approval_status: str = "pending"
    message: str
