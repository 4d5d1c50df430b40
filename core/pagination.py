"""Search cursor for the current keyword.

The session is a small state machine::

    IDLE -> FETCHING -> IDLE | EXHAUSTED

``EXHAUSTED`` only leaves through ``start()`` (a fresh search). Each fresh
search bumps ``generation``; a response tagged with an older generation
belongs to a superseded search and must not touch the session.
"""

from dataclasses import dataclass
from enum import Enum

from core.errors import KeywordValidationError


class PageState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"


@dataclass
class SearchSession:
    page_size: int = 30
    keyword: str = ""
    page: int = 1
    exhausted: bool = False
    in_flight: bool = False
    generation: int = 0

    def __post_init__(self):
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    @property
    def state(self) -> PageState:
        if self.in_flight:
            return PageState.FETCHING
        if self.exhausted:
            return PageState.EXHAUSTED
        return PageState.IDLE

    @property
    def can_fetch_next(self) -> bool:
        return bool(self.keyword) and not self.in_flight and not self.exhausted

    @property
    def next_page(self) -> int:
        return self.page + 1

    def start(self, keyword: str) -> int:
        """Reset the cursor for a fresh search and return its generation."""
        keyword = (keyword or "").strip()
        if not keyword:
            raise KeywordValidationError()

        self.generation += 1
        self.keyword = keyword
        self.page = 1
        self.exhausted = False
        self.in_flight = True
        return self.generation

    def begin_page(self) -> int:
        """Claim the single in-flight slot for a pagination fetch."""
        if not self.can_fetch_next:
            raise RuntimeError(f"cannot fetch next page in state {self.state.value}")
        self.in_flight = True
        return self.generation

    def finish(self, generation: int) -> bool:
        """
        Release the in-flight slot held by ``generation``.

        Returns False (and changes nothing) when the generation was superseded.
        Calling it twice for the current generation is harmless.
        """
        if generation != self.generation:
            return False
        self.in_flight = False
        return True

    def record_page(self, page: int, unique_count: int) -> None:
        """Advance to ``page``, or mark exhaustion when it brought nothing new."""
        if unique_count == 0:
            self.exhausted = True
            return
        self.page = page
