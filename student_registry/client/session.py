import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from student_registry.client.cache import LocalCache
from student_registry.client.request_client import RequestClient
from student_registry.errors import NetworkError

logger = logging.getLogger("registry.session")

SESSION_KEY = "ss_user"
SESSION_TIMEOUT = 24 * 60 * 60


class AdminSession:
    """Admin login state persisted in storage; logging out also empties the cache."""

    def __init__(self, storage, http: RequestClient, cache: LocalCache, auth_url: str,
                 session_key: str = SESSION_KEY, timeout: float = SESSION_TIMEOUT,
                 clock: Callable[[], float] = time.time):
        self.storage = storage
        self.http = http
        self.cache = cache
        self.auth_url = auth_url
        self.session_key = session_key
        self.timeout = timeout
        self._clock = clock
        self.user: Optional[Dict[str, Any]] = self._load()
        if self.user:
            self.http.token = self.user.get("token")

    def login(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.http.send(self.auth_url, {"username": username, "password": password})
        except NetworkError as e:
            if e.status == 401:
                logger.warning("Login failed for username: %s", username)
                return None
            raise
        token = response.get("token")
        if not token:
            logger.warning("Login failed for username: %s", username)
            return None

        self.user = {
            "username": response.get("username", username),
            "role": response.get("role", "admin"),
            "token": token,
            "loginTime": int(self._clock() * 1000),
        }
        self.http.token = token
        self._save()
        logger.info("User logged in: %s", username)
        return self.user

    def logout(self) -> None:
        logger.info("User logged out")
        self.user = None
        self.http.token = None
        self.storage.remove_item(self.session_key)
        self.cache.clear()

    def is_authenticated(self) -> bool:
        if not self.user:
            self.user = self._load()
        if not self.user:
            return False
        if self._expired(self.user):
            self.logout()
            return False
        return True

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        return self.user if self.is_authenticated() else None

    def get_session_info(self) -> Dict[str, Any]:
        if not self.user:
            return {"authenticated": False}
        time_left_ms = max(0, int(self.timeout * 1000) - (int(self._clock() * 1000) - self.user["loginTime"]))
        return {
            "authenticated": True,
            "user": {k: v for k, v in self.user.items() if k != "token"},
            "time_left_ms": time_left_ms,
            "time_left_minutes": time_left_ms // 60000,
        }

    def _expired(self, user: Dict[str, Any]) -> bool:
        return int(self._clock() * 1000) - int(user.get("loginTime", 0)) > self.timeout * 1000

    def _save(self) -> None:
        try:
            self.storage.set_item(self.session_key, json.dumps(self.user))
        except OSError as e:
            logger.error("Failed to save session: %s", e)

    def _load(self) -> Optional[Dict[str, Any]]:
        try:
            stored = self.storage.get_item(self.session_key)
            if not stored:
                return None
            user = json.loads(stored)
        except (OSError, ValueError) as e:
            logger.error("Failed to load session: %s", e)
            return None
        if not isinstance(user, dict) or "loginTime" not in user:
            return None
        if self._expired(user):
            self.storage.remove_item(self.session_key)
            return None
        return user
