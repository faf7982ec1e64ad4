import os
import re
from typing import Optional

from dotenv import load_dotenv

_TRUE = ("1", "true", "yes", "on")
_LOOSE_LINE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*[:=]\s*(?:\"([^\"]*)\"|'([^']*)'|([^#]*))")


def _set_from_loose_file(path: str) -> None:
    # accepts KEY: "value", KEY: 'value', KEY: value and KEY = value
    if not os.path.exists(path):
        return
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            m = _LOOSE_LINE.match(line)
            if not m:
                continue
            key = m.group(1)
            val = (m.group(2) or m.group(3) or m.group(4) or "").strip()
            if key not in os.environ:
                os.environ[key] = val


def ensure_env_loaded(env_path: Optional[str] = None) -> None:
    path = env_path or os.path.join(os.getcwd(), ".env")
    load_dotenv(path)
    try:
        _set_from_loose_file(path)
    except OSError:
        pass


def env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip().strip('"').strip("'")
    if v.lower() in ("", "none", "null"):
        return default
    return v


def env_flag(key: str, default: bool = False) -> bool:
    v = env_str(key)
    if v is None:
        return default
    return v.lower() in _TRUE


def env_float(key: str, default: float) -> float:
    v = env_str(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default
