"""Lambda handler for receipt operations."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.response import success_response, error_response, validation_error_response, not_found_response
from shared.operator import require_operator
from shared.validators import parse_json_body
from shared.exceptions import MarketplaceException, ValidationError, NotFoundError
from receipts.service import ReceiptService

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Initialize service
receipt_service = ReceiptService()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for receipt operations.

    All routes require the operator token.

    Handles:
    - POST /receipts - Record a sale
    - GET /receipts - List receipts
    - GET /receipts/{id} - Get receipt details
    - DELETE /receipts/{id} - Soft-delete receipt

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        # Log request
        logger.info(f"Request: {event.get('httpMethod')} {event.get('path')}")

        require_operator(event)

        # Get HTTP method and path
        http_method = event.get('httpMethod')
        path = event.get('path') or ''

        # Route request
        if path == '/receipts' and http_method == 'POST':
            return handle_create(event)
        elif path == '/receipts' and http_method == 'GET':
            return handle_list(event)
        elif path.startswith('/receipts/') and http_method == 'GET':
            return handle_get(event)
        elif path.startswith('/receipts/') and http_method == 'DELETE':
            return handle_delete(event)
        else:
            return error_response("Route not found", status_code=404)

    except MarketplaceException as e:
        logger.error(f"Application error: {str(e)}")
        return error_response(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return error_response("Internal server error", status_code=500)


def handle_create(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle receipt creation.

    Args:
        event: Lambda event

    Returns:
        API Gateway response
    """
    try:
        body = parse_json_body(event)
        receipt = receipt_service.create_receipt(body)
    except ValidationError as e:
        return validation_error_response(str(e))
    except NotFoundError as e:
        return not_found_response(str(e))

    return success_response(
        data=receipt,
        message="Receipt created successfully",
        status_code=201
    )


def handle_list(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle list receipts request."""
    receipts = receipt_service.list_receipts()
    return success_response(data={'receipts': receipts, 'count': len(receipts)})


def handle_get(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle get receipt request."""
    path_params = event.get('pathParameters') or {}
    receipt_id = path_params.get('id')

    if not receipt_id:
        return validation_error_response("No receipt ID provided")

    try:
        receipt = receipt_service.get_receipt(receipt_id)
    except NotFoundError as e:
        return not_found_response(str(e))

    return success_response(data=receipt)


def handle_delete(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle soft delete receipt request."""
    path_params = event.get('pathParameters') or {}
    receipt_id = path_params.get('id')

    if not receipt_id:
        return validation_error_response("No receipt ID provided")

    try:
        receipt = receipt_service.soft_delete_receipt(receipt_id)
    except NotFoundError as e:
        return not_found_response(str(e))

    return success_response(data=receipt, message="Receipt deleted successfully")
