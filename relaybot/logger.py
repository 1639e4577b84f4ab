import logging
import os
from typing import Optional


_ROOT_LOGGER_NAME = "relaybot"
_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def _level_from_env() -> int:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return the logger for a relaybot component.

    Names are namespaced under "relaybot" (``get_logger("irc.client")`` gives
    ``relaybot.irc.client``). Only the root "relaybot" logger owns a handler;
    component loggers propagate to it, so calling this repeatedly never
    duplicates output. The level comes from LOG_LEVEL (default INFO).
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)

    if not root.handlers:
        level = _level_from_env()
        root.setLevel(level)

        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))

        root.addHandler(handler)
        root.propagate = False

    if not name or name == _ROOT_LOGGER_NAME:
        return root

    if name.startswith(_ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)

    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
