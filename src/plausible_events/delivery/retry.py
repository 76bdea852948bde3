"""
Module: delivery/retry.py
Description: Retry policy for event delivery.

Encodes the backoff schedule as a tenacity policy: the immediate attempt
plus three retries spaced 1 s, 60 s and 360 s apart. The schedule plateaus
instead of growing without bound.
"""

import asyncio

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_chain,
    wait_fixed,
)

from plausible_events.exceptions import TransportFailure

# Waits between consecutive attempts, in seconds
RETRY_WAITS = (1, 60, 360)

# One immediate attempt plus one per wait
MAX_ATTEMPTS = len(RETRY_WAITS) + 1

# Idle period after the last failed retry before the delivery task ends.
# No attempt follows it; the persisted record is picked up by the next replay.
FINAL_WAIT = 600


def delivery_retrying(stop=None, before_sleep=None, sleep=asyncio.sleep) -> AsyncRetrying:
    """
    Build the retrying controller for one event's delivery attempts.

    Args:
        stop: Extra stop condition OR-ed with the attempt limit
        before_sleep: Callback run after a failed attempt, before waiting
        sleep: Awaitable sleep function (swapped out in tests)

    Returns:
        AsyncRetrying that retries on TransportFailure and re-raises the
        last failure once attempts are exhausted
    """
    stop_condition = stop_after_attempt(MAX_ATTEMPTS)
    if stop is not None:
        stop_condition = stop_condition | stop

    return AsyncRetrying(
        stop=stop_condition,
        wait=wait_chain(*[wait_fixed(seconds) for seconds in RETRY_WAITS]),
        retry=retry_if_exception_type(TransportFailure),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True
    )
