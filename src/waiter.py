"""
State Change Waiter - generic poll loop for asynchronous remote operations.

The remote service accepts a mutating request and then moves the resource
through a status machine. A waiter repeatedly calls a refresh coroutine and
returns once the reported status is in the target set, failing distinctly on
deadline, unexpected status, unexpected disappearance or refresh error.

A refresh coroutine returns ``(obj, state)``. ``obj is None`` means the
resource could not be found; this satisfies an empty target set (waiting
for deletion) and is otherwise tolerated for ``not_found_checks`` probes.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from errors import UnexpectedNotFoundError, UnexpectedStateError, WaitTimeoutError

logger = logging.getLogger(__name__)

RefreshFunc = Callable[[], Awaitable[Tuple[Any, str]]]

MIN_BACKOFF_INTERVAL = 0.1  # seconds
MAX_BACKOFF_INTERVAL = 10.0  # seconds


@dataclass
class StateChangeWaiter:
    """
    Poll a resource until it leaves its pending states.

    Attributes:
        pending: States in which polling continues.
        target: States that end the wait successfully. Empty means the
            resource is expected to disappear.
        refresh: Coroutine function probing the current (obj, state).
        timeout: Deadline in seconds, measured from the start of wait().
            A probe still running at the deadline is cancelled.
        poll_interval: Fixed seconds between probes. None uses exponential
            backoff from MIN_BACKOFF_INTERVAL up to MAX_BACKOFF_INTERVAL.
        not_found_checks: Consecutive not-found probes tolerated when the
            target set is non-empty.
    """

    pending: Sequence[str]
    target: Sequence[str]
    refresh: RefreshFunc
    timeout: float
    poll_interval: Optional[float] = None
    not_found_checks: int = 20

    def _interval(self, tick: int) -> float:
        if self.poll_interval is not None:
            return self.poll_interval
        return min(MIN_BACKOFF_INTERVAL * (2**tick), MAX_BACKOFF_INTERVAL)

    async def wait(self) -> Any:
        """
        Run the poll loop.

        Returns:
            The object from the probe that reached the target, or None when
            the target set is empty and the resource is gone.

        Raises:
            WaitTimeoutError: The deadline passed while still pending, or
                while a probe was still running.
            UnexpectedStateError: A state outside pending and target was seen.
            UnexpectedNotFoundError: The resource stayed missing for more than
                not_found_checks probes while a target state was expected.
            Exception: Anything raised by refresh, unchanged.
            asyncio.CancelledError: The awaiting task was cancelled.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        last_state = ""
        not_found = 0
        tick = 0

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise WaitTimeoutError(last_state, self.target, self.timeout)

            try:
                obj, state = await asyncio.wait_for(self.refresh(), remaining)
            except asyncio.TimeoutError:
                logger.debug(f"State probe still running at deadline ({self.timeout}s)")
                raise WaitTimeoutError(last_state, self.target, self.timeout)
            last_state = state

            if obj is None:
                if not self.target:
                    return None
                not_found += 1
                if not_found > self.not_found_checks:
                    raise UnexpectedNotFoundError(not_found, self.target)
            else:
                not_found = 0
                if state in self.target:
                    return obj
                if state not in self.pending:
                    raise UnexpectedStateError(state, self.target)

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise WaitTimeoutError(last_state, self.target, self.timeout)

            interval = min(self._interval(tick), remaining)
            tick += 1
            logger.debug(
                f"Waiting for state {list(self.target)} (current: '{state}'), "
                f"next check in {interval:.2f}s"
            )
            await asyncio.sleep(interval)


async def wait_for_state(
    pending: Sequence[str],
    target: Sequence[str],
    refresh: RefreshFunc,
    timeout: float,
    **kwargs: Any,
) -> Any:
    """Build a StateChangeWaiter and run it."""
    return await StateChangeWaiter(
        pending=pending, target=target, refresh=refresh, timeout=timeout, **kwargs
    ).wait()
