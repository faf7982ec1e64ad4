import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None, log_path: Optional[str] = None) -> None:
    """
    Configure the root logger:
      - console handler, always
      - rotating file handler when `log_path` (or LOG_FILE) is given
    Calling it again replaces the handlers installed by the previous call.
    """
    lvl_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, lvl_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        if getattr(h, "_registry_handler", False):
            root.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT)
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    sh._registry_handler = True
    root.addHandler(sh)

    log_path = log_path or os.getenv("LOG_FILE")
    if log_path:
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
        fh = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        fh.setFormatter(fmt)
        fh._registry_handler = True
        root.addHandler(fh)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
