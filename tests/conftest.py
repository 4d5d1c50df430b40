import os
import tempfile

# Keep log files out of the working tree; must run before config.logger is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="deals-finder-logs-"))

import pytest

from core.aggregator import DealAggregator
from core.projection import FilterCriteria
from fakes import FakeSearchAPI


@pytest.fixture
def api():
    return FakeSearchAPI()


@pytest.fixture
def aggregator(api):
    agg = DealAggregator(
        api,
        page_size=30,
        dedupe_key="asin",
        criteria=FilterCriteria(min_discount=0, max_results=1000),
        highlight_dwell=0.05,
    )
    yield agg
    agg.dispose()
