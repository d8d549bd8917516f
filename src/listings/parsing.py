"""Free-text parsing helpers for manually entered listings."""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from shared.validators import validate_amount

NUMBER_PATTERN = re.compile(r'\d+(?:\.\d+)?')

# Checked in order; first unit found in the text wins. Plain numbers are GB.
CAPACITY_UNITS_GB = (
    ('tb', 1024),
)


def take_number(text: Any) -> Optional[float]:
    """
    Extract the first integer or decimal number from a string.

    Returns:
        The number, or None for non-strings and strings without digits
    """
    if not text or not isinstance(text, str):
        return None

    match = NUMBER_PATTERN.search(text)
    return float(match.group(0)) if match else None


def parse_size_gb(text: Any) -> Optional[int]:
    """
    Parse a capacity such as ``"512GB"`` or ``"1TB"`` into whole gigabytes.

    Returns:
        Size in GB, or None when the text has no number
    """
    number = take_number(text)
    if number is None:
        return None

    lower = text.lower()
    multiplier = next((factor for unit, factor in CAPACITY_UNITS_GB if unit in lower), 1)
    return int(Decimal(str(number * multiplier)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def format_price(price: Any) -> str:
    """
    Validate a price and render it as the string stored on listings.

    ``799`` -> ``"799"``, ``"799.50"`` -> ``"799.5"``.

    Raises:
        ValidationError: If the price is missing, non-numeric or not positive
    """
    amount = validate_amount(price, field_name="Price")
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), 'f')


def slugify_prefix(title: Optional[str], default: str = 'manual') -> str:
    """Bucket key prefix derived from a listing title."""
    if not title:
        return default

    slug = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')
    return slug or default


def join_parts(*parts: Any) -> Optional[str]:
    """Join the non-empty parts with spaces; None when nothing is left."""
    joined = ' '.join(str(part) for part in parts if part).strip()
    return joined or None
