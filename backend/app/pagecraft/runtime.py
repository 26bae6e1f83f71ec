"""
Runtime helpers imported by generated test scripts.
"""

import logging
import time
from contextlib import contextmanager

logger = logging.getLogger("pagecraft.steps")


@contextmanager
def step(title: str):
    """Named test step; logs start, duration and failures"""
    logger.info(f"[Step] {title}")
    started = time.monotonic()
    try:
        yield
    except Exception:
        logger.error(f"[Step] {title} failed after {time.monotonic() - started:.2f}s")
        raise
    logger.info(f"[Step] {title} passed in {time.monotonic() - started:.2f}s")
