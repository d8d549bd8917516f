"""Sales analytics over listings and receipts."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, List, Optional
import logging

from shared.exceptions import ValidationError
from listings.service import ListingService
from receipts.service import ReceiptService

logger = logging.getLogger(__name__)

# Range name -> days before today's midnight
RANGE_DAYS = {
    'day': 0,
    '3days': 3,
    'week': 7,
}

DEFAULT_RANGE = 'week'


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def range_cutoff(range_name: str, now: datetime) -> datetime:
    """
    Start of a reporting range, aligned to midnight.

    Raises:
        ValidationError: If the range name is unknown
    """
    if range_name not in RANGE_DAYS:
        raise ValidationError(f"Invalid range. Must be one of: {', '.join(RANGE_DAYS)}")
    return _midnight(now - timedelta(days=RANGE_DAYS[range_name]))


def parse_sale_date(value: Any) -> Optional[datetime]:
    """Parse an ISO sale date; date-only and naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _price(value: Any) -> float:
    try:
        return float(str(value).replace(',', ''))
    except (TypeError, ValueError):
        return 0.0


def _revenue(receipts: List[Dict[str, Any]]) -> float:
    return sum(_price(receipt.get('purchase_price')) for receipt in receipts)


def _since(receipts: List[Dict[str, Any]], start: datetime) -> List[Dict[str, Any]]:
    selected = []
    for receipt in receipts:
        sale_date = parse_sale_date(receipt.get('sale_date'))
        if sale_date and sale_date >= start:
            selected.append(receipt)
    return selected


def calculate_sales_stats(
    listings: List[Dict[str, Any]],
    receipts: List[Dict[str, Any]],
    range_name: str = DEFAULT_RANGE,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Compute dashboard statistics.

    Every receipt counts as one sale regardless of listing status.

    Args:
        listings: Listing records
        receipts: Non-deleted receipts
        range_name: ``day``, ``3days`` or ``week``
        now: Reference time (defaults to current UTC time)

    Returns:
        Statistics keyed by metric name
    """
    now = now or datetime.now(timezone.utc)
    cutoff = range_cutoff(range_name, now)

    published = [listing for listing in listings if listing.get('status') == 'published']
    published_count = len(published)
    sold_count = len(receipts)

    total_revenue = _revenue(receipts)
    range_receipts = _since(receipts, cutoff)

    today = _midnight(now)
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = today.replace(day=1)
    today_receipts = [
        receipt for receipt in _since(receipts, today)
        if parse_sale_date(receipt.get('sale_date')) < today + timedelta(days=1)
    ]

    avg_sale_price = round(total_revenue / sold_count) if sold_count else 0
    avg_listing_price = (
        round(sum(_price(listing.get('price')) for listing in published) / published_count)
        if published_count else 0
    )

    return {
        'range': range_name,
        'range_start': cutoff.isoformat(),
        'published_count': published_count,
        'sold_count': sold_count,
        'total_receipts': len(receipts),
        'total_revenue': total_revenue,
        'range_revenue': _revenue(range_receipts),
        'range_sales_count': len(range_receipts),
        'avg_sale_price': avg_sale_price,
        'avg_listing_price': avg_listing_price,
        'revenue_per_sale': avg_sale_price,
        'today_revenue': _revenue(today_receipts),
        'week_revenue': _revenue(_since(receipts, week_start)),
        'month_revenue': _revenue(_since(receipts, month_start)),
        'available_listings': published_count - sold_count,
    }


class AnalyticsService:
    """Builds the sales dashboard from stored listings and receipts."""

    def __init__(
        self,
        listing_service: Optional[ListingService] = None,
        receipt_service: Optional[ReceiptService] = None
    ):
        """Initialize analytics service."""
        self.listing_service = listing_service or ListingService()
        self.receipt_service = receipt_service or ReceiptService(listing_service=self.listing_service)

    def get_sales_stats(self, range_name: str = DEFAULT_RANGE) -> Dict[str, Any]:
        """
        Compute statistics for the given range.

        Raises:
            ValidationError: If the range name is unknown
        """
        now = datetime.now(timezone.utc)
        range_cutoff(range_name, now)

        listings = self.listing_service.list_published()
        receipts = self.receipt_service.list_receipts()

        stats = calculate_sales_stats(listings, receipts, range_name, now=now)
        logger.info(
            f"Analytics ({range_name}): {stats['published_count']} published, "
            f"{stats['sold_count']} sold"
        )
        return stats
