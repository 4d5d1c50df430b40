"""Wire payloads exchanged with the deals backend."""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from models.deal import Deal


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    keyword: str
    min_discount: int = Field(default=0, alias="minDiscount")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=30, alias="pageSize", gt=0)
    debug_promotions: bool = Field(default=False, alias="debugPromotions")


class SearchResponse(BaseModel):
    success: bool = False
    deals: List[Deal] = Field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None


class ExternalMeta(BaseModel):
    """Metadata scraped by the backend for a non-catalog URL."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    success: bool = False
    title: str = ""
    description: str = ""
    image: str = ""
    original_price: Optional[str] = Field(default=None, alias="originalPrice")
    discounted_price: Optional[str] = Field(default=None, alias="discountedPrice")
    coupon_code: Optional[str] = Field(default=None, alias="couponCode")


class RewriteResponse(BaseModel):
    success: bool = False
    rewritten: Optional[str] = None
    error: Optional[str] = None
    # Set by the backend while the hosted model is still warming up
    retry: bool = False


class MonitorStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_count: int = Field(default=0, alias="dailyCount")
    daily_percent: float = Field(default=0, alias="dailyPercent")
    monthly_count: int = Field(default=0, alias="monthlyCount")
    monthly_percent: float = Field(default=0, alias="monthlyPercent")
    total_requests: int = Field(default=0, alias="totalRequests")
    success_count: int = Field(default=0, alias="successCount")
    error_count: int = Field(default=0, alias="errorCount")
    daily_warning: bool = Field(default=False, alias="dailyWarning")
    monthly_warning: bool = Field(default=False, alias="monthlyWarning")

    @property
    def success_rate(self) -> int:
        if self.total_requests <= 0:
            return 0
        return round(self.success_count / self.total_requests * 100)
