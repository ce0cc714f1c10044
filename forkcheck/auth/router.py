import structlog
from fastapi import APIRouter, HTTPException

from ..config import settings
from ..schemas.admin import AdminLoginRequest, TokenResponse
from .security import create_admin_token, verify_passcode


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/admin/login", response_model=TokenResponse)
def admin_login(req: AdminLoginRequest):
    if not verify_passcode(req.passcode):
        structlog.get_logger().warning("admin_login_failed")
        raise HTTPException(status_code=401, detail="Invalid passcode")
    structlog.get_logger().info("admin_login")
    return TokenResponse(access_token=create_admin_token(), expires_in=settings.jwt_ttl_seconds)
