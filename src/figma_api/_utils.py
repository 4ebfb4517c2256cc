"""
Utility functions for the Figma API clients.

This module provides internal helpers used by the clients.
These functions are not part of the public API and may change without notice.
"""

import asyncio
import time


def sleep_for(seconds: float) -> None:
    """
    Block the current thread for exactly `seconds`.

    Unlike a jittered sleep, the duration is used as-is: rate-limit waits must
    honor the server's Retry-After value verbatim.
    """
    if seconds > 0:
        time.sleep(seconds)


async def async_sleep_for(seconds: float) -> None:
    """
    Suspend the current task for exactly `seconds`.

    Cancelling the task interrupts the sleep with `asyncio.CancelledError`.
    """
    if seconds > 0:
        await asyncio.sleep(seconds)
