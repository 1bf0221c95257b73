"""
Logging setup for the ``lumenpay`` command.

The library never installs handlers itself. Two console formats:
  - **human**: rich-rendered, for terminals
  - **json**: one JSON object per line, for log collectors
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "lumenpay"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def setup_logging(level: str = "WARNING", fmt: str = "human", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``lumenpay`` logger tree. Output goes to stderr.

    ``log_file``, when given, always receives JSON.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()
    logger.propagate = False

    if fmt == "json":
        console: logging.Handler = logging.StreamHandler()
        console.setFormatter(JSONFormatter())
    else:
        console = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        console.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path))
        fh.setFormatter(JSONFormatter())
        logger.addHandler(fh)
    return logger
