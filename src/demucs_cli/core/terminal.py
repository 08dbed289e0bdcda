"""
Terminal Utilities for demucs-cli

ANSI color codes and colored logging for terminal output.

Usage:
    from demucs_cli.core.terminal import fmt_success, setup_colored_logging

    print(fmt_success("Separation complete"))
    setup_colored_logging(level=logging.DEBUG)
"""

import logging
import sys


class Colors:
    """ANSI escape codes for colored terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'

    LIGHT_RED = '\033[91m'

    BG_RED = '\033[41m'

    # Semantic aliases
    HEADER = BOLD
    FILENAME = YELLOW
    SUCCESS = GREEN
    WARNING = YELLOW
    ERROR = LIGHT_RED
    PROGRESS = CYAN
    DIM_TEXT = DIM


def color(text: str, color_code: str) -> str:
    """Wrap text with color code and reset."""
    return f"{color_code}{text}{Colors.RESET}"


def fmt_filename(name: str) -> str:
    return color(name, Colors.FILENAME)


def fmt_header(text: str) -> str:
    return color(text, Colors.HEADER)


def fmt_success(text: str) -> str:
    return color(text, Colors.SUCCESS)


def fmt_warning(text: str) -> str:
    return color(text, Colors.WARNING)


def fmt_error(text: str) -> str:
    return color(text, Colors.ERROR)


def fmt_dim(text: str) -> str:
    return color(text, Colors.DIM_TEXT)


class ColoredFormatter(logging.Formatter):
    """Formatter that colors by log level and a few message cues."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.RESET,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.LIGHT_RED,
        logging.CRITICAL: Colors.BG_RED + Colors.WHITE,
    }

    def format(self, record):
        level_color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        msg = record.getMessage()

        if record.levelno >= logging.ERROR:
            msg = f"{Colors.LIGHT_RED}{msg}{Colors.RESET}"
        elif record.levelno >= logging.WARNING:
            msg = f"{Colors.YELLOW}{msg}{Colors.RESET}"
        elif record.levelno <= logging.DEBUG:
            msg = f"{Colors.DIM}{msg}{Colors.RESET}"
        elif msg.startswith('['):
            # Batch / file progress markers
            msg = f"{Colors.PROGRESS}{msg}{Colors.RESET}"
        elif 'complete' in msg.lower() or 'created' in msg.lower():
            msg = f"{Colors.GREEN}{msg}{Colors.RESET}"

        timestamp = self.formatTime(record, self.datefmt)
        level = record.levelname

        if record.levelno >= logging.WARNING:
            level = f"{level_color}{level}{Colors.RESET}"

        text = f"{Colors.DIM}{timestamp}{Colors.RESET} {level}: {msg}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def setup_colored_logging(level=logging.INFO):
    """Route the root logger through a single colored stdout handler."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredFormatter(datefmt='%H:%M:%S'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers and add colored one
    for h in root_logger.handlers[:]:
        root_logger.removeHandler(h)
    root_logger.addHandler(handler)

    return root_logger
