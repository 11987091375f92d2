# src/whistle_notify/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Console thresholds for loggers outside our package, by name prefix.
# nio and aiohttp come from the Matrix connector; asyncio from the reconciler.
_THIRD_PARTY_CONSOLE_LEVELS: dict[str, int] = {
    "nio": logging.ERROR,
    "aiohttp": logging.ERROR,
    "asyncio": logging.WARNING,
    "py.warnings": logging.ERROR,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while /save and /whistle run:
    - whistle_notify logs pass, except the Matrix connector below WARNING
    - known third-party sources use _THIRD_PARTY_CONSOLE_LEVELS
    - anything else only at ERROR+
    The file handler is not filtered.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("whistle_notify."):
            if name.startswith("whistle_notify.connectors.matrix_"):
                return record.levelno >= logging.WARNING
            return True

        for prefix, level in _THIRD_PARTY_CONSOLE_LEVELS.items():
            if name == prefix or name.startswith(prefix + "."):
                return record.levelno >= level

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/whistle",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "whistle.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
