"""Log output: `[ LEVEL | env ] message`, root environment unprefixed."""

import logging
from typing import IO, Optional

from envswitch.models.environment import ROOT_ID


class EnvironmentFormatter(logging.Formatter):
    """Prefixes each record with its level and, when present, its environment."""

    def format(self, record: logging.LogRecord) -> str:
        env = getattr(record, "env", None)
        prefix = record.levelname
        if env is not None and env != ROOT_ID:
            prefix = f"{prefix} | {env}"
        message = f"[ {prefix} ] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def configure_logging(debug: bool = False, stream: Optional[IO[str]] = None) -> logging.Logger:
    """Install the environment-aware handler on the package logger once."""
    logger = logging.getLogger("envswitch")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not any(getattr(h, "_envswitch", False) for h in logger.handlers):
        handler = logging.StreamHandler(stream)
        handler.setFormatter(EnvironmentFormatter())
        handler._envswitch = True
        logger.addHandler(handler)
    return logger
