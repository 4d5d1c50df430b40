from typing import Optional

from config import settings
from config.logger import logger
from core.errors import DealsFinderError, RewriteError, RewriteRetryError
from models.deal import Deal
from services.post_builder import build_post


class Copywriter:
    """Rewrites a deal's post with the backend's paraphrasing model."""

    READY = "Ready"
    PROCESSING = "Processing…"
    DONE = "Done ✅"
    ERROR = "Error ❌"

    def __init__(self, api, model: Optional[str] = None):
        self.api = api
        self.model = model or settings.AI_MODEL
        self.status = self.READY

    @property
    def busy(self) -> bool:
        return self.status == self.PROCESSING

    async def rewrite(self, deal: Deal) -> str:
        """
        Rewrite the post generated for ``deal``.

        Raises RewriteRetryError while the model is warming up and
        RewriteError for any other failure; ``status`` reflects the outcome.
        """
        if self.busy:
            raise RewriteError("A rewrite is already in progress")

        self.status = self.PROCESSING
        text = build_post(deal)

        try:
            response = await self.api.rewrite(text, model=self.model)
        except DealsFinderError as e:
            self.status = self.ERROR
            logger.error(f"❌ AI rewrite failed: {e}")
            raise RewriteError(f"AI rewrite failed: {e}") from e
        except BaseException:
            # Cancelled or unexpected failure, never stay stuck in PROCESSING
            self.status = self.ERROR
            raise

        if response.retry:
            self.status = self.ERROR
            raise RewriteRetryError(response.error or "Model is loading, try again in a few seconds")

        if not response.success or not response.rewritten:
            self.status = self.ERROR
            raise RewriteError(f"Rewrite failed: {response.error or 'Unknown error'}")

        self.status = self.DONE
        logger.info(f"🤖 Rewrote post for: {deal.title[:30]}")
        return response.rewritten.strip()
