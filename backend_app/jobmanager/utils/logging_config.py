"""
Process-wide logging setup.

Records may carry a ``context`` dict (``extra={"context": {...}}``), as the
router error handler does; the formatter appends it as ``key=value`` pairs
so incident ids and job/user ids are searchable in plain log output.
"""
import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# SDK and transport loggers that flood INFO with per-request lines
QUIET_LOGGERS = ("azure", "httpx", "httpcore", "passlib", "urllib3")


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
            # Keep the context on the message line, ahead of any traceback
            head, sep, tail = text.partition("\n")
            text = f"{head} [{pairs}]{sep}{tail}"
        return text


def setup_application_logging(level: str = "INFO", force_flush: bool = True) -> logging.Logger:
    """
    Route every logger to stdout through ``ContextFormatter``.

    Args:
        level: Root level name; unknown names fall back to INFO
        force_flush: Line-buffer stdout so container logs appear immediately
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if force_flush and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(line_buffering=True)

    logger = logging.getLogger("jobmanager")
    logger.info("🔧 Logging to stdout at %s", level.upper())
    return logger


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper()))
    return logger
