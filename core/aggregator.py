"""Incremental aggregation of paginated deal searches.

``DealAggregator`` owns the raw collection, the search cursor, the "NEW"
highlight and the current error line. Fresh searches prepend their unseen
deals; pagination appends them. All merges go through ``dedupe`` against the
whole collection, so a deal surfaced on page 1 never comes back on page 3.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from config import settings
from config.logger import logger
from core.errors import DealsFinderError, KeywordValidationError, ApplicationError
from core.highlight import HighlightTracker
from core.pagination import SearchSession
from core.projection import FilterCriteria, Projection, project
from models.api import SearchRequest, SearchResponse
from models.deal import Deal, next_local_id
from utils.deal_dedup import dedupe

# Assigned locally per arrival, never an identity
UNKEYED_FIELDS = frozenset(
    [name for name, info in Deal.model_fields.items() if info.exclude] + ["rewritten"]
)


@dataclass
class MergeResult:
    keyword: str
    page: int
    received: int
    added: List[Deal]
    exhausted: bool = False


class DealAggregator:
    def __init__(
        self,
        api,
        page_size: int = settings.PAGE_SIZE,
        dedupe_key: str = settings.DEFAULT_DEDUPE_KEY,
        criteria: Optional[FilterCriteria] = None,
        debug_promotions: bool = settings.DEBUG_PROMOTIONS,
        highlight_dwell: float = settings.HIGHLIGHT_DWELL_SECONDS,
    ):
        """
        Args:
            api: Search backend, anything with ``async search(SearchRequest) -> SearchResponse``
            page_size: Deals requested per page
            dedupe_key: Preferred identity field for future merges
            criteria: Initial filter criteria
            debug_promotions: Forwarded to the backend on every search
            highlight_dwell: Seconds a merged batch stays marked as new
        """
        self.api = api
        self.session = SearchSession(page_size=page_size)
        self.criteria = criteria or FilterCriteria(
            min_discount=settings.DEFAULT_MIN_DISCOUNT,
            max_results=settings.DEFAULT_MAX_RESULTS,
        )
        self.dedupe_key = settings.DEFAULT_DEDUPE_KEY
        self.set_dedupe_key(dedupe_key)
        self.debug_promotions = debug_promotions
        self.highlights = HighlightTracker(dwell=highlight_dwell, on_expire=self._on_highlight_expired)
        self.error = ""
        self._deals: List[Deal] = []
        self._searches_running = 0
        self._disposed = False

    # --- Read side ---

    @property
    def deals(self) -> Tuple[Deal, ...]:
        return tuple(self._deals)

    @property
    def projection(self) -> Projection:
        return project(self._deals, self.criteria)

    @property
    def loading(self) -> bool:
        return self._searches_running > 0

    @property
    def disposed(self) -> bool:
        return self._disposed

    def is_highlighted(self, local_id: int) -> bool:
        return self.highlights.is_highlighted(local_id)

    def find(self, local_id: int) -> Optional[Deal]:
        for deal in self._deals:
            if deal.local_id == local_id:
                return deal
        return None

    # --- Settings ---

    def set_filters(self, min_discount=None, require_code=None, max_results=None) -> FilterCriteria:
        current = self.criteria.model_dump()
        if min_discount is not None:
            current["min_discount"] = int(min_discount)
        if require_code is not None:
            current["require_code"] = bool(require_code)
        if max_results is not None:
            current["max_results"] = max(1, int(max_results))
        self.criteria = FilterCriteria(**current)
        return self.criteria

    def set_dedupe_key(self, key_field: str) -> None:
        """
        Only affects future merges; the current collection is left as is.

        Raises ValueError for an empty key or a locally assigned field.
        """
        key_field = (key_field or "").strip()
        if not key_field or key_field in UNKEYED_FIELDS:
            raise ValueError(f"'{key_field}' cannot be used as a dedupe key")
        self.dedupe_key = key_field

    # --- Search path ---

    async def search(self, keyword: str) -> Optional[MergeResult]:
        """
        Fresh search: reset the cursor and prepend unseen deals from page 1.

        Raises KeywordValidationError for an empty keyword. Transport and
        backend failures are recorded in ``error`` and return None.
        """
        if self._disposed:
            return None

        self.error = ""
        try:
            generation = self.session.start(keyword)
        except KeywordValidationError as e:
            self.error = e.user_message
            raise

        keyword = self.session.keyword
        logger.info(f"🔍 Searching for: {keyword}, minDiscount: {self.criteria.min_discount}")

        self._searches_running += 1
        try:
            response = await self._request(keyword, page=1)
        except DealsFinderError as e:
            if not self._disposed and generation == self.session.generation:
                self.error = e.user_message
            logger.error(f"❌ Search '{keyword}' failed: {e}")
            return None
        finally:
            self._searches_running -= 1
            self.session.finish(generation)

        if self._disposed:
            return None

        added = self._merge(response.deals, prepend=True)
        logger.info(f"✅ Found {len(response.deals)} deals for '{keyword}' ({len(added)} new)")
        return MergeResult(keyword=keyword, page=1, received=len(response.deals), added=added)

    async def fetch_page(self) -> Optional[MergeResult]:
        """
        Load the next page of the current keyword and append unseen deals.

        No-op while a request is in flight, once the keyword is exhausted, or
        before any search. A page with nothing new marks the keyword exhausted.
        """
        if self._disposed or not self.session.can_fetch_next:
            return None

        generation = self.session.begin_page()
        keyword = self.session.keyword
        page = self.session.next_page
        self.error = ""

        try:
            response = await self._request(keyword, page=page)
        except DealsFinderError as e:
            if self.session.finish(generation) and not self._disposed:
                self.error = e.user_message
            logger.error(f"Load more error ({keyword} p{page}): {e}")
            return None

        if not self.session.finish(generation) or self._disposed:
            logger.info(f"🗑️ Discarding stale page {page} for '{keyword}'")
            return None

        added = self._merge(response.deals, prepend=False)
        self.session.record_page(page, len(added))
        if self.session.exhausted:
            logger.info(f"🏁 No new deals on page {page} for '{keyword}', stopping pagination")
        else:
            logger.info(f"📄 Page {page} for '{keyword}': {len(added)} new of {len(response.deals)}")

        return MergeResult(
            keyword=keyword,
            page=page,
            received=len(response.deals),
            added=added,
            exhausted=self.session.exhausted,
        )

    async def _request(self, keyword: str, page: int) -> SearchResponse:
        request = SearchRequest(
            keyword=keyword,
            min_discount=self.criteria.min_discount,
            page=page,
            page_size=self.session.page_size,
            debug_promotions=self.debug_promotions,
        )
        response = await self.api.search(request)
        if not response.success:
            raise ApplicationError(response.error or response.message or "Failed to fetch deals")
        return response

    def _merge(self, incoming: List[Deal], prepend: bool) -> List[Deal]:
        # Fresh copies so every arrival gets its own id and the collection owns its records
        arrived = [deal.model_copy(update={"local_id": next_local_id()}) for deal in incoming]
        unique = dedupe(self._deals, arrived, self.dedupe_key)

        if prepend:
            self._deals[:0] = unique
        else:
            self._deals.extend(unique)

        self.highlights.mark(deal.local_id for deal in unique)
        return unique

    def _on_highlight_expired(self) -> None:
        logger.debug("NEW badge cleared")

    # --- Per-deal actions ---

    def remove(self, local_id: int) -> bool:
        if self._disposed:
            return False
        before = len(self._deals)
        self._deals = [d for d in self._deals if d.local_id != local_id]
        return len(self._deals) != before

    def patch_rewritten(self, local_id: int, text: str) -> Optional[Deal]:
        if self._disposed:
            return None
        for index, deal in enumerate(self._deals):
            if deal.local_id == local_id:
                patched = deal.model_copy(update={"rewritten": text})
                self._deals[index] = patched
                return patched
        return None

    # --- Lifecycle ---

    def dispose(self) -> None:
        """Clear the highlight, cancel its timer and make every later call a no-op."""
        if self._disposed:
            return
        self._disposed = True
        self.highlights.clear()
        logger.debug("Aggregator disposed")
