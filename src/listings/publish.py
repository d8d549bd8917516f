"""Publish pipeline: turn a scan (or manually typed specs) into a listing."""

import copy
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
import logging

from pydantic import ValidationError as PydanticValidationError

from shared.dynamodb import DynamoDBClient
from shared.exceptions import ValidationError, NotFoundError, ConflictError
from shared.validators import sanitize_string
from scans.store import ScanStore, STATUS_PUBLISHED
from listings.images import ImageUploadService
from listings.models import ListingOverrides, ListingExtras, ManualListingFields
from listings.parsing import format_price, parse_size_gb, take_number, slugify_prefix, join_parts
from notifications.telegram import TelegramNotifier

logger = logging.getLogger(__name__)

# Listing field -> scan field
SCAN_FIELD_MAP = {
    'brand': 'Brand',
    'model': 'Model',
    'cpu': 'CPU',
    'cores': 'Cores',
    'threads': 'Threads',
    'base_speed_mhz': 'BaseSpeed_MHz',
    'ram_gb': 'RAM_GB',
    'ram_type': 'RAM_Type',
    'ram_speed_mhz': 'RAM_Speed_MHz',
    'storage': 'Storage',
    'gpu': 'GPU',
    'display_resolution': 'Display_Resolution',
    'screen_size_inch': 'Screen_Size_inch',
    'os': 'OS',
}

NO_IMAGES_MESSAGE = "Please upload at least one image"
MAX_TITLE_LENGTH = 200


def merge_scan_fields(scan: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Resolve every listing spec field, preferring the override over the scan.

    Args:
        scan: Scan record
        overrides: Listing-field overrides that carry a value

    Returns:
        Listing spec fields; storage is always a list
    """
    merged = {}
    for field, scan_key in SCAN_FIELD_MAP.items():
        if field in overrides:
            merged[field] = overrides[field]
        else:
            merged[field] = scan.get(scan_key)

    merged['storage'] = copy.deepcopy(merged['storage'] or [])
    return merged


class PublishService:
    """Creates published listings and consumes the scans they came from."""

    def __init__(
        self,
        listings_table: Optional[DynamoDBClient] = None,
        scan_store: Optional[ScanStore] = None,
        image_service: Optional[ImageUploadService] = None,
        notifier: Optional[TelegramNotifier] = None
    ):
        """Initialize publish service."""
        self.listings_table = listings_table or DynamoDBClient(
            os.environ.get('LISTINGS_TABLE', 'pc-marketplace-listings')
        )
        self.scan_store = scan_store or ScanStore()
        self.image_service = image_service or ImageUploadService()
        self.notifier = notifier or TelegramNotifier()

    def publish(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Publish a listing.

        A body with an ``id`` publishes that scan; without one the listing is
        built from the manually entered fields.

        Args:
            body: Publish request

        Returns:
            The stored listing

        Raises:
            NotFoundError: If the scan does not exist or was already published
            ValidationError: If price or images are invalid
            ConflictError: If the scan was consumed by a concurrent publish
        """
        if body.get('id'):
            return self.publish_from_scan(body)
        return self.publish_manual(body)

    def publish_from_scan(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Publish a stored scan, applying ``formData`` overrides field by field."""
        scan_id = str(body['id'])

        scan = self.scan_store.get_scan(scan_id)
        if not scan:
            raise NotFoundError("Scan not found")

        price = format_price(body.get('price'))
        overrides = self._parse_overrides(body.get('formData'))
        extras = ListingExtras.from_payload(body.get('extras')).model_dump()
        explicit_title = sanitize_string(body.get('title'), max_length=MAX_TITLE_LENGTH)

        image_urls = self.image_service.upload_images(scan_id, body.get('images'))
        if not image_urls:
            raise ValidationError(NO_IMAGES_MESSAGE)

        fields = merge_scan_fields(scan, overrides)
        title = explicit_title or join_parts(fields['brand'], fields['model'])

        listing = self._build_listing(
            scan_id=scan_id,
            title=title,
            price=price,
            fields=fields,
            images=image_urls,
            extras=extras
        )

        try:
            self._commit_scan_listing(listing)
        except ConflictError:
            self.image_service.remove_images(image_urls)
            logger.warning(f"Scan {scan_id} was published concurrently; listing discarded")
            raise ConflictError("Scan has already been published")
        except Exception:
            self.image_service.remove_images(image_urls)
            raise

        logger.info(f"Listing {listing['id']} published from scan {scan_id}")
        return listing

    def publish_manual(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Publish a listing typed in by hand; no scan is consumed."""
        try:
            manual = ManualListingFields.model_validate(body)
        except PydanticValidationError:
            raise ValidationError("Invalid listing fields")

        price = format_price(body.get('price'))
        extras = ListingExtras.from_payload(body.get('extras'))

        title = (
            sanitize_string(body.get('title'), max_length=MAX_TITLE_LENGTH)
            or join_parts(manual.brand, manual.series, manual.model)
        )

        image_urls = self.image_service.upload_images(slugify_prefix(title), body.get('images'))
        if not image_urls:
            raise ValidationError(NO_IMAGES_MESSAGE)

        ram_gb = parse_size_gb(manual.ram_capacity)
        storage_gb = parse_size_gb(manual.storage_capacity)
        storage = []
        if manual.storage_type or storage_gb is not None:
            storage.append({
                'Model': None,
                'Size_GB': storage_gb or 0,
                'Type': manual.storage_type or '',
                'BusType': None
            })

        fields = {
            'brand': manual.brand,
            'model': manual.model,
            'cpu': join_parts(manual.cpu_brand, manual.cpu_series, manual.cpu_generation, manual.cpu_model),
            'cores': None,
            'threads': None,
            'base_speed_mhz': None,
            'ram_gb': str(ram_gb) if ram_gb is not None else None,
            'ram_type': manual.ram_type,
            'ram_speed_mhz': None,
            'storage': storage,
            'gpu': join_parts(manual.gpu_type, manual.gpu_brand, manual.gpu_series, manual.gpu_vram),
            'display_resolution': manual.resolution,
            'screen_size_inch': take_number(manual.screen_size),
            'os': None,
        }

        listing = self._build_listing(
            scan_id=None,
            title=title,
            price=price,
            fields=fields,
            images=image_urls,
            extras={
                'condition': manual.condition if manual.condition is not None else extras.condition,
                'negotiable': manual.negotiable if manual.negotiable is not None else extras.negotiable,
                'battery': manual.battery if manual.battery is not None else extras.battery,
                'special_features': (
                    manual.extra_items if manual.extra_items is not None else extras.special_features
                ),
                'warranty': manual.warranty,
                'refresh_rate': manual.refresh_rate,
                'specs': manual.specs,
            }
        )

        try:
            self.listings_table.put_item(listing)
        except Exception:
            self.image_service.remove_images(image_urls)
            raise

        logger.info(f"Manual listing {listing['id']} published")
        return listing

    def notify_published(self, listing: Dict[str, Any]) -> bool:
        """Broadcast a listing; failures are logged and never raised."""
        try:
            return self.notifier.send_listing(listing)
        except Exception as e:
            logger.error(f"Notification for listing {listing.get('id')} failed: {e}", exc_info=True)
            return False

    def _parse_overrides(self, form_data: Any) -> Dict[str, Any]:
        if not isinstance(form_data, dict):
            return {}
        try:
            return ListingOverrides.model_validate(form_data).provided()
        except PydanticValidationError as e:
            fields = sorted({'.'.join(str(part) for part in err['loc']) for err in e.errors()})
            raise ValidationError(f"Invalid formData fields: {', '.join(fields)}")

    def _build_listing(
        self,
        scan_id: Optional[str],
        title: Optional[str],
        price: str,
        fields: Dict[str, Any],
        images: List[str],
        extras: Dict[str, Any]
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        listing = {
            'id': str(uuid.uuid4()),
            'scan_id': scan_id,
            'title': title,
            'price': price,
            'status': STATUS_PUBLISHED,
        }
        listing.update(fields)
        listing.update({
            'images': images,
            'extras': extras,
            'published_at': now,
            'created_at': now,
            'updated_at': now
        })
        return listing

    def _commit_scan_listing(self, listing: Dict[str, Any]) -> None:
        """Write the listing and mark its scan published in one transaction."""
        self.listings_table.transact_write([
            {
                'Put': {
                    'TableName': self.listings_table.table_name,
                    'Item': listing,
                    'ConditionExpression': 'attribute_not_exists(#pk)',
                    'ExpressionAttributeNames': {'#pk': 'id'}
                }
            },
            {
                'Update': {
                    'TableName': self.scan_store.table_name,
                    'Key': {'id': listing['scan_id']},
                    'UpdateExpression': (
                        'SET #status = :published, #title = :title, '
                        '#price = :price, #publishedAt = :published_at'
                    ),
                    'ConditionExpression': (
                        'attribute_exists(#pk) AND '
                        '(attribute_not_exists(#status) OR #status <> :published)'
                    ),
                    'ExpressionAttributeNames': {
                        '#pk': 'id',
                        '#status': 'status',
                        '#title': 'title',
                        '#price': 'price',
                        '#publishedAt': 'publishedAt'
                    },
                    'ExpressionAttributeValues': {
                        ':published': STATUS_PUBLISHED,
                        ':title': listing['title'],
                        ':price': listing['price'],
                        ':published_at': listing['published_at']
                    }
                }
            }
        ])
