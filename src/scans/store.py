"""Persistence for hardware scans produced by the external scanner tool."""

import os
import time
from typing import Dict, Any, List, Optional
import logging
from boto3.dynamodb.conditions import Attr

from shared.dynamodb import DynamoDBClient
from shared.exceptions import ConflictError

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_PUBLISHED = 'published'


def generate_scan_id() -> str:
    """Scan ids are ``scan_<epoch-ms>``; uniqueness relies on timestamp granularity."""
    return f"scan_{int(time.time() * 1000)}"


def _created_at(scan: Dict[str, Any]) -> str:
    return scan.get('createdAt') or ''


class ScanStore:
    """
    Key-value store over scan records.

    A scan whose status is ``published`` has been consumed by a listing and is
    treated as missing by ``get_scan`` and ``get_latest_pending``.
    ``get_all_scans`` is an admin view and returns every scan.
    """

    def __init__(self, table: Optional[DynamoDBClient] = None):
        """Initialize scan store."""
        self.scans_table = table or DynamoDBClient(os.environ.get('SCANS_TABLE', 'pc-marketplace-scans'))

    @property
    def table_name(self) -> str:
        return self.scans_table.table_name

    def get_scan(self, scan_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a scan that has not been published yet.

        Args:
            scan_id: Scan ID

        Returns:
            Scan data, or None if missing or already published
        """
        scan = self.scans_table.get_item({'id': scan_id})

        if not scan:
            return None

        if scan.get('status') == STATUS_PUBLISHED:
            logger.info(f"Scan {scan_id} already published; hiding it")
            return None

        return scan

    def get_latest_pending(self) -> Optional[Dict[str, Any]]:
        """Most recently created scan that is not published."""
        candidates = self.scans_table.scan_all(
            filter_expression=Attr('status').not_exists() | Attr('status').ne(STATUS_PUBLISHED)
        )
        if not candidates:
            return None

        return max(candidates, key=_created_at)

    def get_all_scans(self) -> List[Dict[str, Any]]:
        """Every scan, newest first, published ones included."""
        scans = self.scans_table.scan_all()
        return sorted(scans, key=_created_at, reverse=True)

    def set_scan(self, scan_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert a scan under the given id."""
        item = {**data, 'id': scan_id}
        item.setdefault('status', STATUS_PENDING)

        self.scans_table.put_item(item)
        logger.info(f"Scan saved: {scan_id}")
        return item

    def update_scan(self, scan_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Overwrite the given top-level attributes of an existing scan.

        Nested values such as Storage are replaced wholesale.

        Returns:
            Updated scan, or None if the scan does not exist
        """
        patch = {k: v for k, v in patch.items() if k != 'id'}
        if not patch:
            return self.scans_table.get_item({'id': scan_id})

        names = {'#pk': 'id'}
        values = {}
        parts = []
        for index, (key, value) in enumerate(patch.items()):
            names[f'#f{index}'] = key
            values[f':v{index}'] = value
            parts.append(f"#f{index} = :v{index}")

        try:
            return self.scans_table.update_item(
                key={'id': scan_id},
                update_expression="SET " + ", ".join(parts),
                expression_values=values,
                expression_names=names,
                condition_expression='attribute_exists(#pk)'
            )
        except ConflictError:
            logger.warning(f"Update skipped, scan not found: {scan_id}")
            return None

    def delete_scan(self, scan_id: str) -> None:
        """Hard delete a scan."""
        self.scans_table.delete_item({'id': scan_id})
        logger.info(f"Scan deleted: {scan_id}")
