"""Registration and login routes."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies import get_auth_service, require_auth
from schemas.auth import RegisterRequest, SocialAuthRequest
from services.auth_service import AuthService
from utils.errors import raise_server_error
from utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create the Firebase Auth user and the matching profile document."""
    try:
        uid = await auth_service.register(
            request.email.strip(),
            request.password,
            request.userType,
            request.firstName,
            request.lastName,
        )
        return {
            "message": f"{request.userType.value} registered successfully!",
            "uid": uid,
            "userType": request.userType.value,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "register user", e)


@router.post("/login")
async def login(
    user: Dict[str, Any] = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Resolve the caller's account type and profile."""
    try:
        profile = await auth_service.login(user)
        return {
            "message": "Login successful",
            "uid": profile["uid"],
            "userType": profile["userType"],
            "profile": profile,
        }
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "log in", e)


@router.post("/socialAuth")
async def social_auth(
    request: SocialAuthRequest,
    user: Dict[str, Any] = Depends(require_auth),
    auth_service: AuthService = Depends(get_auth_service)
):
    try:
        profile, is_new = await auth_service.social_auth(user, request.firstName, request.lastName)
        return JSONResponse(
            status_code=201 if is_new else 200,
            content={
                "message": "Account created successfully" if is_new else "Login successful",
                "uid": profile["uid"],
                "userType": profile["userType"],
                "isNewUser": is_new,
            },
        )
    except HTTPException:
        raise
    except Exception as e:
        raise_server_error(logger, "complete social sign-in", e)
