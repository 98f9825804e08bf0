"""
Structured logging for the action orchestration system.

Every module logs through get_logger(__name__). The execution pipeline wraps
its logger in an ActionLogAdapter so each line carries the action being run.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Logger:
    """One stdout handler per logger, level from LOG_LEVEL unless overridden"""

    _loggers = {}
    _level_override: Optional[int] = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Cached per name; the first call attaches the handler"""
        if name in cls._loggers:
            return cls._loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(cls._resolve_level())

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

        cls._loggers[name] = logger
        return logger

    @classmethod
    def set_level(cls, level: str) -> None:
        """Change the level of every logger handed out so far (used by --verbose)"""
        cls._level_override = getattr(logging, level.upper(), logging.INFO)
        for logger in cls._loggers.values():
            logger.setLevel(cls._level_override)

    @classmethod
    def _resolve_level(cls) -> int:
        if cls._level_override is not None:
            return cls._level_override
        return getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)


class ActionLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the action name: '[search] invoking handler'"""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['action']}] {msg}", kwargs


def get_logger(module_name: str) -> logging.Logger:
    """Module logger: get_logger(__name__)"""
    return Logger.get_logger(module_name)


def get_action_logger(module_name: str, action_name: str) -> ActionLogAdapter:
    """Logger for one action run"""
    return ActionLogAdapter(Logger.get_logger(module_name), {'action': action_name})
