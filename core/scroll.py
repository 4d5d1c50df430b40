from typing import Optional

from config.logger import logger
from core.aggregator import DealAggregator, MergeResult


class ScrollTrigger:
    """
    Bridges the bottom-of-list sentinel to ``DealAggregator.fetch_page``.

    Every ``on_visibility`` call is one observation event. A visible sentinel
    asks for the next page when the projection holds more filtered deals than
    it displays. Events are dropped while the cursor cannot move (no keyword,
    request in flight, keyword exhausted) so no pointless fetch is started.
    """

    def __init__(self, aggregator: DealAggregator):
        self.aggregator = aggregator
        self.dispatched = 0

    def should_fetch(self) -> bool:
        if not self.aggregator.session.can_fetch_next:
            return False
        return self.aggregator.projection.has_hidden

    async def on_visibility(self, visible: bool) -> Optional[MergeResult]:
        if not visible or self.aggregator.disposed:
            return None
        if not self.should_fetch():
            return None

        self.dispatched += 1
        logger.debug(f"Sentinel visible, requesting page {self.aggregator.session.next_page}")
        return await self.aggregator.fetch_page()
