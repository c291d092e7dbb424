"""Environment-driven settings."""

import logging
import os
from pathlib import Path

# Data file used when the CLI gets no --data argument
DEFAULT_DATA_FILE = Path(os.environ.get("FUEL_LOG_FILE", "garage.yaml"))

LOG_LEVEL = os.environ.get("FUEL_LOG_LEVEL", "WARNING").upper()


def configure_logging(verbose: bool = False) -> None:
    """Set up root logging; verbose lowers the level to at least INFO."""
    level = getattr(logging, LOG_LEVEL, logging.WARNING)
    if verbose:
        level = min(level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
