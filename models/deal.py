import itertools
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional

_local_ids = itertools.count(1)


def next_local_id() -> int:
    """Process-wide id for a deal arrival. Never reused."""
    return next(_local_ids)


class Deal(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    asin: Optional[str] = None
    url: Optional[str] = None
    title: str = ""
    discount: float = 0
    original_price: float = Field(default=0.0, alias="originalPrice")
    current_price: float = Field(default=0.0, alias="currentPrice")
    rating: Optional[float] = None
    review_count: int = Field(default=0, alias="reviewCount")

    # Coupon aliases, the backend is not consistent about which one it fills
    code: Optional[str] = None
    coupon_code: Optional[str] = Field(default=None, alias="couponCode")
    promo_code: Optional[str] = Field(default=None, alias="promoCode")
    coupon: Optional[str] = None

    promotions: Optional[Any] = None
    rewritten: Optional[str] = None
    local_id: int = Field(default_factory=next_local_id, exclude=True)

    def get(self, name: str, default=None):
        """Read a field by wire alias, attribute name or extra key."""
        attr = _ATTRIBUTE_BY_ALIAS.get(name, name)
        if attr in type(self).model_fields:
            value = getattr(self, attr)
        else:
            value = (self.model_extra or {}).get(name)
        return default if value is None else value


_ATTRIBUTE_BY_ALIAS = {
    (info.alias or name): name for name, info in Deal.model_fields.items()
}
