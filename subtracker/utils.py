"""Shared helpers: colorized logging and display formatting."""

import logging
from decimal import ROUND_HALF_UP, Decimal

import colorlog

CENT = Decimal("0.01")


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    """Get a logger with a colorized console handler."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    logger.propagate = False
    return logger


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero. Only for display."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal, symbol: str = "$") -> str:
    return f"{symbol}{round_money(value):,.2f}"
