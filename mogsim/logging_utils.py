"""Logging utilities for MOG simulations.

Every line carries a colour-blind safe tag so deterministic steps (generation,
decay, day summaries) can be told apart from stochastic ones (event rolls,
dungeon challenges) even with colour turned off (``MOGSIM_NO_COLOR``).
"""

import os
from enum import Enum

LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_RANDOM = "[~]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Deterministic steps
    YELLOW = "\033[93m"    # Random rolls
    RED = "\033[91m"       # Errors
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap ``text`` in ANSI codes unless ``MOGSIM_NO_COLOR`` is set."""
    if os.getenv("MOGSIM_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix
    return f"{prefix}{text}{Color.RESET.value}"


def _emit(tag: str, message: str, color: Color) -> None:
    print(colored(f"{tag} {message}", color))


def log_deterministic(message: str) -> None:
    _emit(LOG_TAG_DETERMINISTIC, message, Color.BLUE)


def log_random(message: str) -> None:
    _emit(LOG_TAG_RANDOM, message, Color.YELLOW)


def log_roll(day: int, message: str) -> None:
    """Report one random outcome of simulation day ``day``."""
    log_random(f"[Day {day}] {message}")


def log_error(message: str) -> None:
    _emit(LOG_TAG_ERROR, message, Color.RED)


def log_success(message: str) -> None:
    _emit(LOG_TAG_SUCCESS, message, Color.GREEN)


def log_info(message: str) -> None:
    _emit(LOG_TAG_INFO, message, Color.CYAN)
