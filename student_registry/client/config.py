"""Client settings and one-shot wiring of storage, cache, HTTP, API and session."""

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from student_registry.client.api import RegistryAPI
from student_registry.client.cache import DEFAULT_TTL_SECONDS, LocalCache
from student_registry.client.request_client import DEFAULT_TIMEOUT, PLACEHOLDER, RequestClient
from student_registry.client.session import AdminSession
from student_registry.client.storage import FileStorage, MemoryStorage
from student_registry.client.students import StudentManager
from student_registry.utils.env import ensure_env_loaded, env_flag, env_float, env_str

DEFAULT_API_URL = f"https://script.example.com/macros/s/{PLACEHOLDER}/exec"
_LOCAL_HOSTS = ("localhost", "127.0.0.1")


@dataclass
class ClientConfig:
    api_url: str = DEFAULT_API_URL
    auth_url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    cache_enabled: bool = True
    cache_ttl: float = DEFAULT_TTL_SECONDS
    cache_dir: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "ClientConfig":
        ensure_env_loaded(env_path)
        api_url = env_str("REGISTRY_API_URL", DEFAULT_API_URL)
        local = any(h in api_url for h in _LOCAL_HOSTS)
        return cls(
            api_url=api_url,
            auth_url=env_str("REGISTRY_AUTH_URL"),
            timeout=env_float("REGISTRY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT),
            # a local dev server is always read fresh unless caching is forced on
            cache_enabled=env_flag("REGISTRY_CACHE_ENABLED", not local),
            cache_ttl=env_float("REGISTRY_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS),
            cache_dir=env_str("REGISTRY_CACHE_DIR", os.path.join(os.path.expanduser("~"), ".student_registry")),
            log_level=env_str("LOG_LEVEL", "DEBUG" if local else "INFO"),
        )

    def resolved_auth_url(self) -> str:
        return self.auth_url or urljoin(self.api_url, "auth/login")


@dataclass
class RegistryClient:
    config: ClientConfig
    http: RequestClient
    cache: LocalCache
    api: RegistryAPI
    session: AdminSession
    students: StudentManager

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def build_client(config: Optional[ClientConfig] = None, storage=None, sleep=None) -> RegistryClient:
    """Construct every client component once and hand out the references."""
    config = config or ClientConfig.from_env()
    if storage is None:
        storage = FileStorage(config.cache_dir) if config.cache_dir else MemoryStorage()

    http_kwargs = {"timeout": config.timeout}
    if sleep is not None:
        http_kwargs["sleep"] = sleep
    http = RequestClient(config.api_url, **http_kwargs)
    cache = LocalCache(storage, enabled=config.cache_enabled, default_ttl=config.cache_ttl)
    api = RegistryAPI(http, cache, list_ttl=config.cache_ttl)
    session = AdminSession(storage, http, cache, auth_url=config.resolved_auth_url())
    return RegistryClient(
        config=config,
        http=http,
        cache=cache,
        api=api,
        session=session,
        students=StudentManager(api),
    )
