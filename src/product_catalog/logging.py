import logging
import os
from typing import Optional, Union

ROOT_NAME = "product_catalog"
FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(value: Optional[Union[str, int]]) -> int:
    """Map "debug", "WARN", "10" or 10 to a logging level; anything else is INFO."""
    if isinstance(value, int):
        return value
    text = (value or "").strip().upper()
    if text.isdigit():
        return int(text)
    if text == "WARN":
        return logging.WARNING
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_NAME)
    if getattr(root, "_catalog_configured", False):
        return root

    level = _coerce_level(os.environ.get("LOG_LEVEL"))
    root.setLevel(level)
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    root.addHandler(sh)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            root.warning(f"LOG_FILE {log_file!r} could not be opened ({e}); logging to stderr only")
        else:
            fh.setFormatter(formatter)
            root.addHandler(fh)

    # Handlers live on the package root only; keep records out of the global root.
    root.propagate = False
    setattr(root, "_catalog_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return the ``product_catalog.<name>`` logger.

    LOG_LEVEL (default INFO) and LOG_FILE (optional, appended to) are read the
    first time any logger is requested. Failed store calls and change
    notifications are reported here; the screen never shows them.
    """
    _configure_root()
    return logging.getLogger(f"{ROOT_NAME}.{name}")
