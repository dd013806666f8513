"""Fixed-interval poll loop with an optional attempt bound and cancellation."""

import itertools
import logging
import threading
import time
from collections.abc import Iterator

from stackdeploy.errors import DeployCancelledError, PollTimeoutError

logger = logging.getLogger(__name__)


def poll_attempts(
    interval: float,
    max_attempts: int | None = None,
    cancel: threading.Event | None = None,
    what: str = "operation",
) -> Iterator[int]:
    """Yield attempt numbers, sleeping ``interval`` seconds before each one.

    The caller breaks out of the loop once it sees a terminal status. If the
    attempts run out first, PollTimeoutError is raised from the loop. The
    cancel event is checked before every sleep and after it.
    """
    attempts = itertools.count() if max_attempts is None else range(max_attempts)
    for attempt in attempts:
        if cancel is not None and cancel.is_set():
            raise DeployCancelledError(f"Cancelled while waiting for {what}")
        if interval > 0:
            time.sleep(interval)
        if cancel is not None and cancel.is_set():
            raise DeployCancelledError(f"Cancelled while waiting for {what}")
        logger.debug("Polling %s (attempt %d)", what, attempt + 1)
        yield attempt

    raise PollTimeoutError(f"Timed out waiting for {what} after {max_attempts} attempts")
