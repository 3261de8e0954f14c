"""
Authentication API Routes

Endpoints for registration, login, profile and password management.
Sessions are stateless: logout only acknowledges, the client drops its token.
"""

import logging
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any

from slowapi import Limiter
from slowapi.util import get_remote_address

from config.loader import get_config
from src.api.dependencies import get_auth_service, get_current_account
from src.services.auth_service import AuthService
from src.services.session_service import SessionAssertion
from src.tools.account_store import Account
from src.tools.supabase_tool import to_timestamp

logger = logging.getLogger(__name__)

# Per-IP limit on login attempts, on top of the per-account lockout.
# Keyed on the peer address; forwarded headers are caller-controlled.
limiter = Limiter(key_func=get_remote_address)

auth_router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def login_rate_limit() -> str:
    return get_config().login_rate_limit


# ==================== Pydantic Models ====================

class LawyerRegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str
    confirm_password: str
    bar_number: str
    specialization: str


class ClientRegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    specialization: Optional[str] = None
    personal_info: Optional[Dict[str, Any]] = None
    professional_info: Optional[Dict[str, Any]] = None
    qualifications: Optional[List[Dict[str, Any]]] = None
    experience: Optional[List[Dict[str, Any]]] = None


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_password: str


def _session_payload(session: SessionAssertion) -> Dict[str, Any]:
    return {
        "token": session.token,
        "expires_at": to_timestamp(session.expires_at),
    }


def _account_summary(account: Account) -> Dict[str, Any]:
    return {
        "id": account.id,
        "name": account.display_name,
        "email": account.email,
        "role": account.role,
        "specialization": account.specialization_tag,
        "bar_number": account.bar_number,
        "last_login_at": to_timestamp(account.last_login_at),
    }


# ==================== Registration ====================

@auth_router.post("/register", status_code=201)
async def register_lawyer(
    data: LawyerRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create a lawyer account and return a session token"""
    account, session = await auth_service.register_lawyer(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        confirm_password=data.confirm_password,
        bar_number=data.bar_number,
        specialization=data.specialization,
    )
    return {
        "success": True,
        "message": "Account created successfully",
        **_session_payload(session),
        "account": _account_summary(account),
    }


@auth_router.post("/clients/register", status_code=201)
async def register_client(
    data: ClientRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create a client account and return a session token"""
    account, session = await auth_service.register_client(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
    )
    return {
        "success": True,
        "message": "Client account created successfully",
        **_session_payload(session),
        "account": _account_summary(account),
    }


# ==================== Login / Logout ====================

@auth_router.post("/login")
@limiter.limit(login_rate_limit)
async def login(
    request: Request,  # Required for rate limiter
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate with email and password.

    Unknown emails, wrong passwords and deactivated accounts all get the
    same 401. Locked accounts get 423 with `locked_until`.
    """
    account, session = await auth_service.login(login_data.email, login_data.password)
    return {
        "success": True,
        "message": f"Welcome back, {account.display_name}!",
        **_session_payload(session),
        "account": _account_summary(account),
    }


@auth_router.post("/logout")
async def logout(account: Account = Depends(get_current_account)):
    """Acknowledge logout. The token stays valid until it expires."""
    return {"success": True, "message": "Logged out successfully"}


# ==================== Profile ====================

@auth_router.get("/profile")
async def get_profile(account: Account = Depends(get_current_account)):
    return {"success": True, "account": account.to_public_dict()}


@auth_router.put("/profile")
async def update_profile(
    data: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service)
):
    updated = await auth_service.update_profile(account.id, data.model_dump(exclude_none=True))
    return {
        "success": True,
        "message": "Profile updated successfully",
        "account": updated.to_public_dict(),
    }


@auth_router.put("/change-password")
async def change_password(
    data: PasswordChangeRequest,
    account: Account = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service)
):
    await auth_service.change_password(
        account.id,
        current_password=data.current_password,
        new_password=data.new_password,
        confirm_password=data.confirm_password,
    )
    return {"success": True, "message": "Password changed successfully"}


@auth_router.post("/deactivate")
async def deactivate_account(
    account: Account = Depends(get_current_account),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Deactivate the caller's account; its sessions stop working immediately"""
    await auth_service.deactivate(account.id)
    return {"success": True, "message": "Account deactivated"}
