"""Lambda handler for scan ingest and lookup."""

import os
import logging
from datetime import datetime, timezone
from typing import Dict, Any
import sys

from pydantic import ValidationError as PydanticValidationError

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.response import (
    success_response,
    error_response,
    validation_error_response,
    not_found_response,
    NO_STORE_HEADERS
)
from shared.operator import require_operator
from shared.validators import parse_json_body
from shared.exceptions import MarketplaceException, ValidationError
from scans.models import ScanSpec
from scans.store import ScanStore, generate_scan_id, STATUS_PENDING

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

REQUIRED_SPEC_FIELDS = ['Brand', 'Model', 'CPU']

# Initialize store
scan_store = ScanStore()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for scan operations.

    Handles:
    - POST /scans - Ingest a spec sheet from the scanner tool
    - GET /scans - List all scans (operator)
    - GET /scans/latest - Latest unpublished scan
    - GET /scans/{id} - Get an unpublished scan

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        # Log request
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        http_method = event.get('httpMethod')
        path = event.get('path') or ''

        # Route request
        if path == '/scans' and http_method == 'POST':
            return handle_ingest(event)
        elif path == '/scans' and http_method == 'GET':
            require_operator(event)
            return handle_list(event)
        elif path == '/scans/latest' and http_method == 'GET':
            return handle_latest(event)
        elif path.startswith('/scans/') and http_method == 'GET':
            return handle_get(event)
        else:
            return error_response("Route not found", status_code=404)

    except MarketplaceException as e:
        logger.error(f"Application error: {str(e)}")
        return error_response(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return error_response("Internal server error", status_code=500)


def handle_ingest(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle a spec sheet upload.

    Args:
        event: Lambda event

    Returns:
        API Gateway response with the generated ``pc_id``
    """
    try:
        body = parse_json_body(event)
    except ValidationError as e:
        return validation_error_response(str(e))

    missing = [field for field in REQUIRED_SPEC_FIELDS if not body.get(field)]
    if missing:
        logger.warning(f"Scan rejected, missing fields: {missing}")
        return validation_error_response(
            "Missing required fields",
            details={'required': REQUIRED_SPEC_FIELDS, 'missing': missing}
        )

    try:
        spec = ScanSpec.model_validate(body)
    except PydanticValidationError as e:
        return validation_error_response(
            "Invalid scan payload",
            details={'errors': e.errors(include_url=False, include_context=False, include_input=False)}
        )

    pc_id = generate_scan_id()
    now = datetime.now(timezone.utc).isoformat()

    item = spec.to_item()
    item.update({
        'createdAt': now,
        'status': STATUS_PENDING,
        'Scan_Time': item.get('Scan_Time') or now
    })
    scan_store.set_scan(pc_id, item)

    logger.info(f"Scan saved with ID: {pc_id}")

    return success_response(
        data={**body, 'pc_id': pc_id},
        message="PC specifications received successfully",
        headers={'X-Scan-ID': pc_id},
        extra={'pc_id': pc_id, 'timestamp': now}
    )


def handle_get(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle lookup of a single unpublished scan."""
    path_params = event.get('pathParameters') or {}
    scan_id = path_params.get('id')

    if not scan_id:
        return validation_error_response("No scan ID provided")

    scan = scan_store.get_scan(scan_id)
    if not scan:
        return not_found_response("Scan not found", headers=NO_STORE_HEADERS)

    return success_response(data=scan, headers=NO_STORE_HEADERS)


def handle_latest(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle the cross-device hand-off lookup of the newest pending scan."""
    scan = scan_store.get_latest_pending()
    if not scan:
        return not_found_response("No pending scan", headers=NO_STORE_HEADERS)

    return success_response(data=scan, headers=NO_STORE_HEADERS)


def handle_list(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle the admin view of all scans."""
    scans = scan_store.get_all_scans()
    return success_response(
        data={'scans': scans, 'count': len(scans)},
        headers=NO_STORE_HEADERS
    )
