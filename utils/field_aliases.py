"""
Ordered field accessors for records whose fields come under several names.

A ``FieldChain`` tries each accessor in turn and returns the first non-empty
value. New aliases are added by extending the chain, not by editing callers.
"""

from typing import Any, Callable, Iterable, List

Accessor = Callable[[Any], Any]


def field_accessor(name: str) -> Accessor:
    """Accessor reading ``name`` from a Deal (alias aware) or a plain dict."""
    def read(record):
        return record.get(name)
    read.__name__ = f"read_{name}"
    return read


class FieldChain:
    def __init__(self, accessors: Iterable[Accessor]):
        self.accessors: List[Accessor] = list(accessors)

    @classmethod
    def of(cls, *names: str) -> "FieldChain":
        return cls(field_accessor(name) for name in names)

    def prepend(self, name: str) -> "FieldChain":
        """New chain that tries ``name`` before the existing accessors."""
        return FieldChain([field_accessor(name), *self.accessors])

    def resolve(self, record) -> str:
        for accessor in self.accessors:
            value = accessor(record)
            if value:
                return value if isinstance(value, str) else str(value)
        return ""


IDENTITY_FIELDS = FieldChain.of("asin", "url", "title")
COUPON_CODE_FIELDS = FieldChain.of("code", "couponCode", "promoCode", "coupon")


def identity_selector(key_field: str) -> Callable[[Any], str]:
    """Identity key: configured field first, then asin, url, title."""
    return IDENTITY_FIELDS.prepend(key_field).resolve


def deal_code(deal) -> str:
    """First non-empty coupon code of the deal, or an empty string."""
    return COUPON_CODE_FIELDS.resolve(deal)
