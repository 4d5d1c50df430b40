from dataclasses import dataclass
from pydantic import BaseModel, Field
from typing import Sequence, Tuple

from models.deal import Deal
from utils.field_aliases import deal_code


class FilterCriteria(BaseModel):
    min_discount: int = 20
    require_code: bool = False
    max_results: int = Field(default=1000, ge=1)


@dataclass(frozen=True)
class Projection:
    filtered: Tuple[Deal, ...]
    display: Tuple[Deal, ...]

    @property
    def has_hidden(self) -> bool:
        """More filtered deals exist than the display cap lets through."""
        return len(self.filtered) > len(self.display)


def matches(deal: Deal, criteria: FilterCriteria) -> bool:
    if deal.discount < criteria.min_discount:
        return False
    if criteria.require_code and not deal_code(deal):
        return False
    return True


def project(deals: Sequence[Deal], criteria: FilterCriteria) -> Projection:
    """Filter the raw collection and cap it for display, keeping collection order."""
    filtered = tuple(d for d in deals if matches(d, criteria))
    return Projection(filtered=filtered, display=filtered[:criteria.max_results])
