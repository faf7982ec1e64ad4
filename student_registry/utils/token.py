import logging
import os
from datetime import datetime, timezone, timedelta
from typing import Dict, Optional

import jwt

logger = logging.getLogger(__name__)

SESSION_MINUTES = 24 * 60
_DEV_SECRET = "dev-secret-do-not-use-in-prod"


def _get_secret() -> str:
    secret = os.getenv("APP_SECRET", "")
    if secret and secret != _DEV_SECRET:
        return secret
    if os.getenv("TESTING", "").lower() in ("1", "true", "yes"):
        return "test-secret-key-do-not-use-in-prod"
    logger.warning(
        "APP_SECRET is not set, using an insecure dev key. "
        "Set APP_SECRET before deploying the registry."
    )
    return _DEV_SECRET


def create_token(payload: Dict[str, str], expires_minutes: int = SESSION_MINUTES) -> str:
    """Create an HS256 JWT for the admin session (default 24h)."""
    secret = _get_secret()
    data = dict(payload)
    now = datetime.now(timezone.utc)
    data["exp"] = now + timedelta(minutes=expires_minutes)
    data["iat"] = now
    return jwt.encode(data, secret, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, str]]:
    """Decode a token. Returns None when it is expired, tampered or malformed."""
    try:
        data = jwt.decode(token, _get_secret(), algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    return {k: str(v) for k, v in data.items() if k not in ("exp", "iat")}
