from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a single stream handler to the "coinstore" logger tree.
    Safe to call more than once (uvicorn reload, tests).
    """
    root = logging.getLogger("coinstore")
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if not any(getattr(h, "_coinstore", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._coinstore = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    return root
