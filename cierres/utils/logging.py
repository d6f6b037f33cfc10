# cierres/utils/logging.py

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger("cierres")
    root.addHandler(handler)
    root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Logger hijo de "cierres" (cierres.<name>), con un único handler en consola.
    """
    _configure_root()
    return logging.getLogger(f"cierres.{name}")
