"""Read and admin operations over published listings."""

import os
from typing import Dict, Any, List, Optional
import logging
from boto3.dynamodb.conditions import Attr

from shared.dynamodb import DynamoDBClient
from shared.exceptions import NotFoundError
from scans.store import STATUS_PUBLISHED

logger = logging.getLogger(__name__)

# Buyer-facing key -> listing field
BUYER_VIEW_FIELDS = {
    'id': 'id',
    'title': 'title',
    'price': 'price',
    'Brand': 'brand',
    'Model': 'model',
    'CPU': 'cpu',
    'RAM_GB': 'ram_gb',
    'RAM_Type': 'ram_type',
    'RAM_Speed_MHz': 'ram_speed_mhz',
    'Storage': 'storage',
    'GPU': 'gpu',
    'Display_Resolution': 'display_resolution',
    'Screen_Size_inch': 'screen_size_inch',
    'OS': 'os',
    'createdAt': 'created_at',
    'status': 'status',
    'images': 'images',
    'extras': 'extras',
}


def to_buyer_view(listing: Dict[str, Any]) -> Dict[str, Any]:
    """Project a listing onto the shape the storefront renders."""
    view = {key: listing.get(field) for key, field in BUYER_VIEW_FIELDS.items()}
    view['Storage'] = view['Storage'] or []
    view['images'] = view['images'] or []
    return view


class ListingService:
    """Service for reading and removing listings."""

    def __init__(self, listings_table: Optional[DynamoDBClient] = None):
        """Initialize listing service."""
        self.listings_table = listings_table or DynamoDBClient(
            os.environ.get('LISTINGS_TABLE', 'pc-marketplace-listings')
        )

    def get_listing(self, listing_id: str) -> Dict[str, Any]:
        """
        Get listing by ID.

        Args:
            listing_id: Listing ID

        Returns:
            Listing data

        Raises:
            NotFoundError: If listing not found
        """
        listing = self.listings_table.get_item({'id': listing_id})

        if not listing:
            raise NotFoundError("Listing not found")

        return listing

    def list_published(self) -> List[Dict[str, Any]]:
        """
        List every published listing, newest first.

        Returns:
            Listings sorted by ``created_at`` descending
        """
        listings = self.listings_table.scan_all(
            filter_expression=Attr('status').eq(STATUS_PUBLISHED)
        )
        listings.sort(key=lambda listing: listing.get('created_at') or '', reverse=True)
        return listings

    def delete_listing(self, listing_id: str) -> None:
        """
        Delete a listing. Receipts keep their own spec snapshot.

        Raises:
            NotFoundError: If listing not found
        """
        self.get_listing(listing_id)
        self.listings_table.delete_item({'id': listing_id})

        logger.info(f"Listing deleted: {listing_id}")
