"""Logging setup for Spiral Staircase Studio."""
import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with a consistent format on stdout."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
