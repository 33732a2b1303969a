"""
Account endpoints. Credentials and tokens are handled by the configured
IdentityProvider; this router only shapes requests and responses.
"""
import logging

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from auth import bearer_token, get_identity, require_token
from identity import IdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str = ""
    nama_lengkap: str = ""
    alamat: str | None = None
    username: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    email_or_username: str = ""
    password: str = ""


class ProfileUpdateRequest(BaseModel):
    nama_lengkap: str | None = None
    alamat: str | None = None
    username: str | None = None


@router.post("/register", status_code=201)
def register(req: RegisterRequest, identity: IdentityProvider = Depends(get_identity)):
    user = identity.register(
        email=req.email.strip(),
        nama_lengkap=req.nama_lengkap.strip(),
        alamat=req.alamat,
        username=req.username.strip(),
        password=req.password,
    )
    return {"success": True, "message": "User registered successfully", "user": user}


@router.post("/login")
def login(req: LoginRequest, identity: IdentityProvider = Depends(get_identity)):
    user, token = identity.login(req.email_or_username.strip(), req.password)
    logger.info("Login ok user=%s", user.get("id"))
    return {"success": True, "message": "Login successful", "user": user, "access_token": token}


@router.post("/logout")
def logout(
    authorization: str | None = Header(default=None),
    identity: IdentityProvider = Depends(get_identity),
):
    """Revoke the bearer token if one was sent; logging out twice is fine."""
    token = bearer_token(authorization)
    if token is not None:
        identity.logout(token)
    return {"success": True, "message": "Logout successful"}


@router.get("/me")
def me(token: str = Depends(require_token), identity: IdentityProvider = Depends(get_identity)):
    profile = identity.get_profile(identity.resolve(token))
    return {"success": True, "profile": profile}


@router.put("/profile")
def update_profile(
    req: ProfileUpdateRequest,
    token: str = Depends(require_token),
    identity: IdentityProvider = Depends(get_identity),
):
    profile = identity.update_profile(
        identity.resolve(token),
        nama_lengkap=req.nama_lengkap,
        alamat=req.alamat,
        username=req.username,
    )
    return {"success": True, "message": "Profile updated successfully", "profile": profile}
