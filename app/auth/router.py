"""
Auth Router - FastAPI login, session and registration endpoints
"""
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from jose import jwt, JWTError
from loguru import logger

from app.config import get_settings
from database.supabase_client import get_supabase_client
from .models import (
    ForgotPasswordRequest,
    GuardianRegistration,
    LoginRequest,
    RegistrationResponse,
    SessionUser,
    TokenResponse,
)
from .validation import mask_email

router = APIRouter(prefix="/auth", tags=["auth"])


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT session token"""
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode a session token; None when invalid or expired"""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    if not payload.get("guardian_id"):
        return None
    return payload


def get_bearer_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header"""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


def get_active_roles(guardian_id: str) -> List[str]:
    """Role names from active user_roles rows"""
    try:
        response = get_supabase_client().table("user_roles").select("role").eq(
            "guardian_id", guardian_id
        ).eq("is_active", True).execute()
        return sorted({row["role"] for row in response.data or []})
    except Exception as e:
        logger.error(f"Role lookup failed for {guardian_id}: {e}")
        return []


def _full_name(guardian: dict) -> str:
    return f"{guardian.get('first_name') or ''} {guardian.get('last_name') or ''}".strip()


# =============================================
# Login
# =============================================

@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest):
    """Sign in with email and password"""
    supabase = get_supabase_client()

    try:
        auth_response = supabase.auth.sign_in_with_password({
            "email": data.email,
            "password": data.password,
        })
    except Exception as e:
        logger.warning(f"Login failed for {mask_email(data.email)}: {e}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not auth_response or not getattr(auth_response, "user", None):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    response = supabase.table("guardians").select(
        "id, first_name, last_name, email, approval_status"
    ).eq("email", data.email).maybe_single().execute()
    guardian = response.data if response else None

    if not guardian:
        raise HTTPException(status_code=403, detail="No guardian profile for this account")

    roles = get_active_roles(guardian["id"])
    settings = get_settings()

    access_token = create_access_token({
        "guardian_id": str(guardian["id"]),
        "email": guardian["email"],
        "full_name": _full_name(guardian),
        "roles": roles,
    })

    logger.info(f"Login: {mask_email(data.email)} roles={roles}")

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=SessionUser(
            guardian_id=str(guardian["id"]),
            email=guardian["email"],
            full_name=_full_name(guardian),
            roles=roles,
            approval_status=guardian.get("approval_status"),
        )
    )


@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest):
    """Send a password reset email (same answer whether or not the account exists)"""
    try:
        options = {"redirect_to": data.redirect_to} if data.redirect_to else {}
        get_supabase_client().auth.reset_password_for_email(data.email, options)
    except Exception as e:
        logger.warning(f"Password reset failed for {mask_email(data.email)}: {e}")

    return {
        "success": True,
        "message": "If an account exists for this email, a reset link has been sent",
    }


# =============================================
# Profile
# =============================================

@router.get("/me")
async def get_my_profile(request: Request):
    """Current session and guardian profile"""
    token = get_bearer_token(request)
    payload = decode_access_token(token) if token else None
    if not payload:
        raise HTTPException(status_code=401, detail="Authentication required")

    response = get_supabase_client().table("guardians").select("*").eq(
        "id", payload["guardian_id"]
    ).maybe_single().execute()
    guardian = response.data if response else None

    if not guardian:
        raise HTTPException(status_code=404, detail="Guardian not found")

    return {
        "session": {
            "guardian_id": payload["guardian_id"],
            "email": payload.get("email"),
            "roles": payload.get("roles", []),
        },
        "guardian": guardian,
    }


# =============================================
# Registration
# =============================================

@router.post("/register", response_model=RegistrationResponse, status_code=201)
async def register_guardian(data: GuardianRegistration):
    """Register a guardian and their children; both wait for approval"""
    supabase = get_supabase_client()

    existing = supabase.table("guardians").select("id").eq("email", data.email).execute()
    if existing.data:
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    try:
        auth_response = supabase.auth.sign_up({
            "email": data.email,
            "password": data.password,
            "options": {"data": {"first_name": data.first_name, "last_name": data.last_name}},
        })
    except Exception as e:
        logger.warning(f"Sign-up failed for {mask_email(data.email)}: {e}")
        raise HTTPException(status_code=400, detail=f"Could not create account: {e}")

    user = getattr(auth_response, "user", None) if auth_response else None
    if not user:
        raise HTTPException(status_code=400, detail="Failed to create user account")

    # The guardian row shares the auth user's id; the password stays with auth
    guardian_data = data.model_dump(exclude={"players", "password"}, mode="json")
    guardian_data["id"] = str(user.id)
    guardian_data["approval_status"] = "pending"

    result = supabase.table("guardians").insert(guardian_data).execute()
    if not result.data:
        raise HTTPException(status_code=500, detail="Registration failed")

    guardian = result.data[0]
    player_ids = []

    for player in data.players:
        player_data = player.model_dump(mode="json")
        player_data["approval_status"] = "pending"

        player_result = supabase.table("players").insert(player_data).execute()
        if not player_result.data:
            logger.error(f"Player insert failed for guardian {guardian['id']}")
            continue

        player_id = player_result.data[0]["id"]
        supabase.table("player_guardians").insert({
            "guardian_id": guardian["id"],
            "player_id": player_id,
        }).execute()
        player_ids.append(str(player_id))

    logger.info(f"Registration: {mask_email(data.email)} with {len(player_ids)} player(s)")

    return RegistrationResponse(
        guardian_id=str(guardian["id"]),
        player_ids=player_ids,
        approval_status="pending",
        message="Registration received. An administrator will review it shortly.",
    )
