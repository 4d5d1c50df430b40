"""
Text for sharing deals: the Facebook post, its clipboard-safe form and the share link.
"""

import re
from typing import Optional
from urllib.parse import quote

from models.api import ExternalMeta
from models.deal import Deal
from utils.field_aliases import deal_code

FOOTER = "⚡Prices may change at any time.\n\n#AmazonDeals #AllAboutSavings"


def _fmt_number(value) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_post(deal: Deal) -> str:
    code = deal_code(deal)
    savings = deal.original_price - deal.current_price
    rating = _fmt_number(deal.rating) if deal.rating is not None else "N/A"
    code_line = f"Use code: {code}\n\n" if code else ""

    return (
        "#ad\n\n"
        f"🔥 DEAL ALERT! {_fmt_number(deal.discount)}% OFF! 🔥\n\n"
        f"{deal.title}\n\n"
        f"💰 Was: ${deal.original_price:.2f}\n"
        f"✨ Now: ${deal.current_price:.2f}\n"
        f"💵 Save: ${savings:.2f}!\n\n"
        f"⭐ {rating}/5 ({deal.review_count:,} reviews)\n\n"
        f"{code_line}"
        "Grab it now! 👇\n"
        f"{deal.url or ''}\n\n"
        f"{FOOTER}"
    )


def build_external_post(
    meta: ExternalMeta,
    url: str,
    original_price: str = "",
    current_price: str = "",
    discount: str = "",
    coupon_code: str = "",
) -> str:
    """Post for a link outside the catalog. Manual values win over scraped metadata."""
    orig = original_price or meta.original_price or ""
    curr = current_price or meta.discounted_price or ""
    code = coupon_code or meta.coupon_code or ""

    prices = ""
    if discount:
        prices = f"\n🔥 {discount}% OFF! 🔥\n\n"

    if orig and curr:
        prices += f"💰 Was: {orig}\n✨ Now: {curr}\n"
        savings = _savings(orig, curr)
        if savings:
            prices += f"💵 Save ${savings}!\n"
        prices += "\n"
    elif curr:
        prices += f"💰 Price: {curr}\n\n"

    if code:
        prices += f"Use code: {code}\n\n"

    description = f"{meta.description}\n\n" if meta.description else ""
    return f"#ad\n\n{prices}{meta.title or url}\n\n{description}Grab it now! 👇\n{url}\n\n{FOOTER}"


def _savings(orig: str, curr: str) -> Optional[str]:
    try:
        diff = _to_float(orig) - _to_float(curr)
    except ValueError:
        return None
    return f"{diff:.2f}" if diff > 0 else None


def _to_float(text: str) -> float:
    return float(re.sub(r"[^\d.\-]", "", text))


def clean_clipboard_text(text: str) -> str:
    """Normalise a post before it goes to the clipboard."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub("[\u200b-\u200d\ufeff]", "", text)
    text = re.sub("[\u201c\u201d]", '"', text)
    text = re.sub("[\u2018\u2019]", "'", text)
    return text.strip()


def facebook_share_url(url: str, post: str) -> str:
    return (
        "https://www.facebook.com/sharer/sharer.php"
        f"?u={quote(url, safe='')}&quote={quote(post, safe='')}"
    )
