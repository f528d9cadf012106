"""Logging setup for the rental conflict engine."""

from __future__ import annotations

import logging

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Attach a console handler to the package logger once."""
    global _configured

    package_logger = logging.getLogger("rental_engine")
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _configured:
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    package_logger.addHandler(console_handler)
    _configured = True
