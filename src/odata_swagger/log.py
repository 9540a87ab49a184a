"""Logging helpers."""

import logging
from contextlib import contextmanager
from time import monotonic
from typing import Iterator


def configure_root(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


@contextmanager
def scoped_timer(logger: logging.Logger, message: str, *, extra: dict[str, object] | None = None) -> Iterator[None]:
    """Log how long the wrapped block took, at DEBUG level."""
    start = monotonic()
    try:
        yield
    finally:
        elapsed = monotonic() - start
        logger.debug("%s took %.3fs", message, elapsed, extra={"duration_s": elapsed, **(extra or {})})
