import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from vpn_bypass_agent import constants
from vpn_bypass_agent.constants import IS_DEV


def supports_color():
    """True when console output goes to something that renders ANSI colors."""
    if os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes"):
        return True
    if os.environ.get("NO_COLOR", "").lower() in ("1", "true", "yes"):
        return False
    # launchd hands the monitors a file or /dev/null, never a terminal
    if hasattr(sys.stderr, "isatty") and sys.stderr.isatty():
        return True
    return "TERM_PROGRAM" in os.environ or "VSCODE_PID" in os.environ


USE_COLOR = supports_color()


# https://talyian.github.io/ansicolors/
class CustomFormatter(logging.Formatter):
    """Custom colored logging formatter with support for terminal colors"""

    red = "\x1b[31;20m"
    white = "\x1b[38;5;255m"
    dark_grey = "\x1b[38;5;244m"
    orange = "\x1b[38;5;208m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = (
        "%(asctime)s | %(levelname)8s | %(name)s: %(message)s (%(filename)s:%(lineno)d)"
    )

    USE_COLOR = USE_COLOR

    FORMATS = {
        logging.DEBUG: dark_grey + fmt + reset,
        logging.INFO: white + fmt + reset,
        logging.WARNING: orange + fmt + reset,
        logging.ERROR: red + fmt + reset,
        logging.CRITICAL: bold_red + fmt + reset,
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno) if self.USE_COLOR else self.fmt
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


class FileFormatter(logging.Formatter):
    """Plain line-oriented format for log files, one record per line"""

    def __init__(self, component: str):
        super().__init__(
            f"[%(asctime)s] [{component}] %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def create_console_handler(level=logging.DEBUG):
    """Create a console handler with the CustomFormatter"""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(CustomFormatter())
    return handler


def _old_file_namer(default_name: str) -> str:
    # RotatingFileHandler names the single predecessor "<file>.1"
    if default_name.endswith(".1"):
        return default_name[:-2] + ".old"
    return default_name


def create_rotating_file_handler(
    path: Union[str, os.PathLike],
    component: str,
    max_bytes: int = constants.MAX_LOG_SIZE,
    level=logging.DEBUG,
) -> RotatingFileHandler:
    """
    Create a file handler that rotates once the file exceeds ``max_bytes``,
    keeping exactly one predecessor named ``<file>.old``.
    """
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=1, encoding="utf-8"
    )
    handler.namer = _old_file_namer
    handler.setLevel(level)
    handler.setFormatter(FileFormatter(component))
    return handler


def _env_level(name: str, default: str = "INFO") -> int:
    levels = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARN,
        "warning": logging.WARN,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    return levels.get(os.environ.get(name, default).strip().lower(), logging.INFO)


def setup_logging(level=logging.INFO, handlers: Optional[list] = None):
    """Setup logging with custom formatter"""

    if IS_DEV:
        # Default to DEBUG for dev mode.
        level = logging.DEBUG

    # Allow env override for global app log level
    level = _env_level("VPN_BYPASS_LOG_LEVEL", logging.getLevelName(level))

    if handlers is None:
        handlers = [create_console_handler(level)]

    logging.basicConfig(encoding="utf-8", level=level, handlers=handlers, force=True)

    # Set common library log levels
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("apscheduler.scheduler").setLevel(logging.WARNING)
    logging.getLogger("apscheduler.executors.default").setLevel(logging.WARNING)
    logging.getLogger("pyroute2.netlink.core").setLevel(logging.WARNING)

    if IS_DEV:
        logging.getLogger("vpn_bypass_agent.utils").setLevel(logging.DEBUG)
        logging.getLogger("vpn_bypass_agent.lib.process_supervisor").setLevel(logging.DEBUG)
    else:
        # Command traces are noisy at 5 second poll intervals
        logging.getLogger("vpn_bypass_agent.utils").setLevel(max(level, logging.INFO))
