"""Start-time pacing for calls against a rate limited provider.

Brave allows one request per second on the default plan, counted across
every endpoint. ``Pacer.pace`` admits callers one at a time in arrival
order and spaces the start of consecutive operations by at least
``min_interval`` seconds. The interval is measured from the end of the
previous operation, so slow calls only ever widen the gap.
"""

import logging
import threading
import time
from functools import lru_cache
from typing import Callable, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MIN_INTERVAL_SECONDS = 1.0


class Pacer:
    """FIFO gate enforcing a minimum interval between operation starts.

    Admission uses a ticket counter guarded by a condition variable: each
    caller draws a ticket on entry and is admitted only when its ticket is
    being served, so later arrivals can never barge ahead of earlier ones.

    Example:
        pacer = Pacer(min_interval=1.0)
        body = pacer.pace(lambda: session.get(url).text)
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")

        self.min_interval = min_interval
        self._clock = clock
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._now_serving = 0
        # Tickets whose callers gave up (e.g. interrupted) before their turn
        self._abandoned: Set[int] = set()
        self._next_allowed_at = clock()

    @property
    def next_allowed_at(self) -> float:
        """Earliest clock reading at which the next operation may start."""
        with self._cond:
            return self._next_allowed_at

    def pace(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` once it is this caller's turn and the interval has elapsed.

        Exceptions raised by ``operation`` propagate unchanged; the interval
        clock advances either way since the remote call was attempted.
        """
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            try:
                self._await_turn(ticket)
            except BaseException:
                self._abandon(ticket)
                raise

        try:
            return operation()
        finally:
            with self._cond:
                self._next_allowed_at = max(
                    self._next_allowed_at, self._clock() + self.min_interval
                )
                self._advance()

    def _await_turn(self, ticket: int) -> None:
        # Caller holds self._cond
        while True:
            if ticket != self._now_serving:
                self._cond.wait()
                continue

            wait = self._next_allowed_at - self._clock()
            if wait <= 0:
                return

            logger.debug(f"Pacer ticket {ticket} waiting {wait:.3f}s")
            # Re-checked on wake; spurious wakeups loop around
            self._cond.wait(timeout=wait)

    def _abandon(self, ticket: int) -> None:
        # Caller holds self._cond
        if ticket == self._now_serving:
            self._advance()
        else:
            self._abandoned.add(ticket)

    def _advance(self) -> None:
        # Caller holds self._cond
        self._now_serving += 1
        while self._now_serving in self._abandoned:
            self._abandoned.discard(self._now_serving)
            self._now_serving += 1
        self._cond.notify_all()


@lru_cache(maxsize=1)
def get_default_pacer() -> Pacer:
    """Process-wide pacer shared by every configured endpoint client.

    Built lazily from settings on first use and kept for the process lifetime.
    """
    from PSC.services.shared.settings import get_settings

    settings = get_settings()
    return Pacer(min_interval=settings.pacer.min_interval_seconds)
