# launch_engine/availability_waiter.py

from __future__ import annotations

import logging
import time
from typing import Optional

from .errors import AvailabilityTimeoutError


def wait_for_availability(
    client,
    max_attempts: int,
    interval: float,
    logger: Optional[logging.Logger] = None,
) -> int:
    """
    Poll ``client.check_liveness()`` until it returns without raising.

    Sleeps ``interval`` seconds between attempts (never after the last one).
    Returns the number of attempts used; raises ``AvailabilityTimeoutError``
    chained to the last failure once ``max_attempts`` calls have failed.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        try:
            client.check_liveness()
            return attempt
        except Exception as exc:
            last_error = exc
            if logger:
                logger.debug("Liveness attempt %d/%d failed: %s", attempt, max_attempts, exc)
        if attempt < max_attempts:
            time.sleep(interval)

    raise AvailabilityTimeoutError(
        f"Node did not become available after {max_attempts} attempt(s) "
        f"{interval}s apart; last error: {last_error}",
        attempts=max_attempts,
        last_error=last_error,
    ) from last_error


__all__ = ["wait_for_availability"]
