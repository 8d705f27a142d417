# SMSYNC Order Correlation
# Embeds the marketplace order id in storefront order metadata

import re
from dataclasses import dataclass
from typing import Optional

NOTE_PREFIX = "Mirakl Order ID:"
TAG_PREFIX = "Order-"

_NOTE_PATTERN = re.compile(re.escape(NOTE_PREFIX) + r"\s*([^\s,]+)")
_TAG_PATTERN = re.compile(r"(?:^|,)\s*" + re.escape(TAG_PREFIX) + r"([^\s,]+)")


@dataclass(frozen=True)
class CorrelationMarkers:
    """Tag string and note written on a created storefront order."""

    tags: str
    note: str


def encode_correlation(order_id: str, origin_tag: str = "Mirakl") -> CorrelationMarkers:
    """
    Build the tag and note carrying a marketplace order id.

    The note is read first when decoding; the tag is the fallback.
    """
    return CorrelationMarkers(
        tags=f"{origin_tag},{TAG_PREFIX}{order_id}",
        note=f"{NOTE_PREFIX} {order_id}",
    )


def decode_correlation(note: Optional[str], tags: Optional[str]) -> Optional[str]:
    """
    Recover a marketplace order id from a storefront order.

    Returns:
        The order id, or None when neither note nor tags carry one.
    """
    if note:
        match = _NOTE_PATTERN.search(note)
        if match:
            return match.group(1)
    if tags:
        match = _TAG_PATTERN.search(tags)
        if match:
            return match.group(1)
    return None
