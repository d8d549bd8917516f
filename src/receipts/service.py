"""Sales receipt service."""

import copy
import os
import random
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
import logging
from boto3.dynamodb.conditions import Attr
from pydantic import ValidationError as PydanticValidationError

from shared.dynamodb import DynamoDBClient
from shared.validators import validate_amount, validate_date, validate_required_fields
from shared.exceptions import ValidationError, NotFoundError, ConflictError
from listings.service import ListingService
from receipts.models import ReceiptCreateRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ['buyer_name', 'buyer_phone', 'purchase_price']

SNAPSHOT_FIELDS = [
    'brand',
    'model',
    'cpu',
    'ram_gb',
    'ram_type',
    'gpu',
    'display_resolution',
    'screen_size_inch',
    'os',
    'storage',
]


def generate_receipt_number(now: Optional[datetime] = None) -> str:
    """
    Human-readable receipt number, ``RCPT-YYYY-MMDD-NNN``.

    The suffix is random and not checked for collisions.
    """
    now = now or datetime.now(timezone.utc)
    return f"RCPT-{now:%Y}-{now:%m%d}-{random.randint(0, 999):03d}"


def build_specs_snapshot(listing: Dict[str, Any]) -> Dict[str, Any]:
    """
    Freeze the sold machine's specs so the receipt survives listing edits or deletion.

    Args:
        listing: Listing record

    Returns:
        Independent copy of the listed specs plus ``original_price``
    """
    snapshot = {field: copy.deepcopy(listing.get(field)) for field in SNAPSHOT_FIELDS}
    snapshot['original_price'] = listing.get('price')
    return snapshot


def _with_deleted_at(receipt: Dict[str, Any]) -> Dict[str, Any]:
    receipt.setdefault('deleted_at', None)
    return receipt


class ReceiptService:
    """Service for recording and retrieving sales receipts."""

    def __init__(
        self,
        receipts_table: Optional[DynamoDBClient] = None,
        listing_service: Optional[ListingService] = None
    ):
        """Initialize receipt service."""
        self.receipts_table = receipts_table or DynamoDBClient(
            os.environ.get('RECEIPTS_TABLE', 'pc-marketplace-receipts')
        )
        self.listing_service = listing_service or ListingService()

    def create_receipt(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Record a sale.

        Args:
            payload: Receipt data; either ``listing_id`` or ``pc_specs_snapshot``

        Returns:
            Created receipt

        Raises:
            ValidationError: If required fields are missing or invalid
            NotFoundError: If the referenced listing does not exist
        """
        validate_required_fields(payload, REQUIRED_FIELDS)

        try:
            request = ReceiptCreateRequest.model_validate(payload)
        except PydanticValidationError as e:
            fields = sorted({'.'.join(str(part) for part in err['loc']) for err in e.errors()})
            raise ValidationError(f"Invalid receipt fields: {', '.join(fields)}")

        purchase_price = validate_amount(request.purchase_price, field_name="Purchase price")
        now = datetime.now(timezone.utc)

        if request.listing_id:
            listing = self.listing_service.get_listing(request.listing_id)
            snapshot = build_specs_snapshot(listing)
        elif request.pc_specs_snapshot:
            snapshot = copy.deepcopy(request.pc_specs_snapshot)
        else:
            raise ValidationError("Either listing_id or pc_specs_snapshot is required")

        receipt = {
            'id': str(uuid.uuid4()),
            'listing_id': request.listing_id,
            'receipt_number': generate_receipt_number(now),
            'buyer_name': request.buyer_name,
            'buyer_phone': request.buyer_phone,
            'buyer_address': request.buyer_address,
            'sale_date': validate_date(request.sale_date) if request.sale_date else now.isoformat(),
            'purchase_price': purchase_price,
            'seller_signature': request.seller_signature,
            'notes': request.notes,
            'pc_specs_snapshot': snapshot,
            'created_at': now.isoformat(),
            'updated_at': now.isoformat()
        }

        self.receipts_table.put_item(receipt)

        logger.info(f"Receipt created: {receipt['receipt_number']} ({receipt['id']})")
        return _with_deleted_at(receipt)

    def get_receipt(self, receipt_id: str) -> Dict[str, Any]:
        """
        Get a receipt that has not been deleted.

        Raises:
            NotFoundError: If receipt is missing or soft-deleted
        """
        receipt = self.receipts_table.get_item({'id': receipt_id})

        if not receipt or receipt.get('deleted_at'):
            raise NotFoundError("Receipt not found")

        return _with_deleted_at(receipt)

    def list_receipts(self) -> List[Dict[str, Any]]:
        """
        List receipts that have not been deleted, most recent sale first.

        Returns:
            List of receipts
        """
        receipts = self.receipts_table.scan_all(
            filter_expression=Attr('deleted_at').not_exists()
        )
        receipts.sort(key=lambda receipt: receipt.get('sale_date') or '', reverse=True)
        return [_with_deleted_at(receipt) for receipt in receipts]

    def soft_delete_receipt(self, receipt_id: str) -> Dict[str, Any]:
        """
        Mark a receipt deleted. The row is kept for audit.

        Args:
            receipt_id: Receipt ID

        Returns:
            The receipt with ``deleted_at`` set

        Raises:
            NotFoundError: If receipt is missing or already deleted
        """
        now = datetime.now(timezone.utc).isoformat()

        try:
            receipt = self.receipts_table.update_item(
                key={'id': receipt_id},
                update_expression='SET deleted_at = :now, updated_at = :now',
                expression_values={':now': now},
                expression_names={'#pk': 'id'},
                condition_expression='attribute_exists(#pk) AND attribute_not_exists(deleted_at)'
            )
        except ConflictError:
            raise NotFoundError("Receipt not found or already deleted")

        logger.info(f"Receipt soft-deleted: {receipt_id}")
        return receipt
