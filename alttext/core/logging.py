"""Logging setup with key=value rendering of structured extras (image_id, error_kind, ...)."""

import logging
import sys

from alttext.core.config import get_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes passed via `extra=` that are appended to the rendered line, in this order.
STRUCTURED_FIELDS = ("event", "operation", "image_id", "error_kind", "model")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that appends known structured extras as key=value pairs.

    Records without any of STRUCTURED_FIELDS render exactly like the plain format, so
    third-party log lines are unaffected.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [
            f"{name}={getattr(record, name)}"
            for name in STRUCTURED_FIELDS
            if getattr(record, name, None) is not None
        ]
        if pairs:
            line = f"{line} | {' '.join(pairs)}"
        return line


def setup_logging(level: str | None = None) -> None:
    """
    Configure application logging.

    Invariants:
    - The root logger is set to DEBUG so that all records reach handlers.
    - One console handler on stdout filters at the configured log_level (or `level`).
    - Calling again replaces handlers instead of duplicating them.
    """
    cfg_level = level or get_config().log_level
    formatter = StructuredFormatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    # Remove existing handlers so we don't duplicate when called again
    for h in root.handlers[:]:
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.getLevelName(cfg_level.upper()))
    console.setFormatter(formatter)
    root.addHandler(console)

    # urllib3 logs every connection at DEBUG; keep it at WARNING
    logging.getLogger("urllib3").setLevel(logging.WARNING)
