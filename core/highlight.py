import asyncio
from typing import Callable, Iterable, Optional, Set


class HighlightTracker:
    """Marks the most recent batch of deals as "NEW" for a fixed dwell time."""

    def __init__(self, dwell: float = 10.0, on_expire: Optional[Callable[[], None]] = None):
        self.dwell = dwell
        self.on_expire = on_expire
        self._ids: Set[int] = set()
        self._timer: Optional[asyncio.TimerHandle] = None

    def mark(self, ids: Iterable[int]) -> None:
        """Replace the highlighted batch with ``ids`` and restart the expiry timer."""
        ids = set(ids)
        if not ids:
            return

        self._ids = ids
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.dwell, self._expire)

    def is_highlighted(self, local_id: int) -> bool:
        return local_id in self._ids

    @property
    def ids(self) -> frozenset:
        return frozenset(self._ids)

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        """Drop the pending expiry without clearing the current set."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def clear(self) -> None:
        """Cancel the pending expiry and forget the highlighted batch."""
        self.cancel()
        self._ids = set()

    def _expire(self) -> None:
        self._timer = None
        self._ids = set()
        if self.on_expire:
            self.on_expire()
