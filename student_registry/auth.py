from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Optional, Dict
from functools import lru_cache
import hmac
import logging
import os
import bcrypt
from student_registry.utils.env import env_flag
from student_registry.utils.token import create_token, verify_token

logger = logging.getLogger("registry.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

_bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=4)
def _hash_plain(password: str) -> bytes:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt())


def _admin_password_hash() -> Optional[bytes]:
    hashed = os.getenv("ADMIN_PASSWORD_HASH")
    if hashed:
        return hashed.encode()
    plain = os.getenv("ADMIN_PASSWORD")
    if plain:
        return _hash_plain(plain)
    return None


def check_credentials(username: str, password: str) -> bool:
    expected_user = os.getenv("ADMIN_USERNAME", "admin")
    hashed = _admin_password_hash()
    if hashed is None:
        logger.warning("No ADMIN_PASSWORD or ADMIN_PASSWORD_HASH configured; admin login disabled")
        return False
    user_ok = hmac.compare_digest(username.encode(), expected_user.encode())
    # always run bcrypt so a wrong username costs the same as a wrong password
    pw_ok = bcrypt.checkpw(password.encode(), hashed)
    return user_ok and pw_ok


def admin_from_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[Dict[str, str]]:
    if credentials is None:
        return None
    payload = verify_token(credentials.credentials)
    if not payload or payload.get("role") != "admin":
        return None
    return payload


def require_admin_token() -> bool:
    return env_flag("REQUIRE_ADMIN_TOKEN", True)


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Dict[str, str]:
    """Shared dependency for admin-only routes. Use via Depends(get_current_admin)."""
    if not require_admin_token():
        return {"username": "anonymous", "role": "admin"}
    admin = admin_from_credentials(credentials)
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return admin


def optional_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[HTTPAuthorizationCredentials]:
    return credentials


class LoginIn(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    token: str
    username: str
    role: str


@router.post("/login", response_model=LoginOut, summary="Admin login", description="Exchange the admin username/password for a 24h bearer token.")
def login(data: LoginIn):
    if not check_credentials(data.username.strip(), data.password):
        logger.warning("Login failed for username: %s", data.username)
        raise HTTPException(status_code=401, detail="Invalid username or password.")
    token = create_token({"username": data.username.strip(), "role": "admin"})
    logger.info("Admin logged in: %s", data.username)
    return {"token": token, "username": data.username.strip(), "role": "admin"}


@router.get("/me", summary="Current admin", description="Return the admin identity carried by the bearer token.")
def me(admin=Depends(get_current_admin)):
    return {"username": admin.get("username"), "role": admin.get("role")}
