"""Logging for pocketauth.

Usage:
    from pocketauth.core.logging import logger

    attempt_logger = logger.with_context(attempt_id="3f2a")
    attempt_logger.info("Requesting request token")

Context key/values are rendered after the message so that every line of an
authorization attempt can be correlated.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from pocketauth.core.config import settings

LOGGER_NAME = "pocketauth"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries key/value context and an optional message prefix."""

    def __init__(
        self,
        logger: logging.Logger,
        extra: Optional[dict] = None,
        prefix: str = "",
    ) -> None:
        """Wrap ``logger`` with the given context and prefix."""
        super().__init__(logger, dict(extra or {}))
        self.prefix = prefix

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, Any]:
        """Prefix the message and append the context."""
        msg = f"{self.prefix}{msg}"
        if self.extra:
            rendered = " ".join(f"{k}={v}" for k, v in self.extra.items())
            msg = f"{msg} [{rendered}]"
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextualLogger":
        """Return a new logger with ``context`` merged into the existing context."""
        return ContextualLogger(self.logger, {**self.extra, **context}, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a new logger whose messages start with ``prefix``."""
        return ContextualLogger(self.logger, dict(self.extra), prefix)


def configure_logging(level: Optional[str] = None) -> None:
    """Install a stream handler on the package logger (idempotent)."""
    base = logging.getLogger(LOGGER_NAME)
    base.setLevel((level or settings.LOG_LEVEL).upper())
    if not base.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        base.addHandler(handler)


def redact(token: str, visible: int = 4) -> str:
    """Shorten a secret for log output."""
    if len(token) <= visible:
        return "*" * len(token)
    return f"{token[:visible]}..."


logger = ContextualLogger(logging.getLogger(LOGGER_NAME))
