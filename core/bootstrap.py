import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from config.logger import logger


@dataclass
class BootstrapStep:
    keyword: str
    status: str = "pending"  # pending | done | failed | skipped
    error: Optional[str] = None


class BootstrapSequencer:
    """
    Loads the seed keywords once at startup.

    Steps run one at a time in list order, with a fixed pause after each step
    completes (successfully or not) before the next one starts. A failing step
    is logged and the sequence moves on. ``cancel()`` stops the sequence at
    the next step boundary.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[object]],
        keywords: List[str],
        delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.search = search
        self.steps = [BootstrapStep(keyword) for keyword in keywords]
        self.delay = delay
        self._sleep = sleep
        self._started = False
        self._cancelled = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    async def run(self) -> List[BootstrapStep]:
        if self._started:
            logger.debug("Bootstrap already ran, ignoring")
            return self.steps
        self._started = True

        logger.info("🔄 Auto-loading deals...")
        for index, step in enumerate(self.steps):
            if self._cancelled:
                step.status = "skipped"
                continue

            if index > 0:
                await self._sleep(self.delay)
                if self._cancelled:
                    step.status = "skipped"
                    continue

            logger.info(f"📍 Loading: {step.keyword}")
            try:
                result = await self.search(step.keyword)
            except Exception as e:
                step.status = "failed"
                step.error = str(e)
                logger.error(f"❌ Error loading {step.keyword}: {e}")
                continue

            if result is None:
                step.status = "failed"
                logger.warning(f"⚠️ Search for '{step.keyword}' did not complete")
            else:
                step.status = "done"

        done = sum(1 for s in self.steps if s.status == "done")
        logger.info(f"✅ Auto-load finished: {done}/{len(self.steps)} keywords loaded")
        return self.steps
