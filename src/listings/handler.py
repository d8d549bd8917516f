"""Lambda handler for listing publish and storefront reads."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.response import (
    success_response,
    error_response,
    validation_error_response,
    not_found_response,
    conflict_response,
    NO_STORE_HEADERS
)
from shared.operator import require_operator
from shared.validators import parse_json_body
from shared.exceptions import MarketplaceException, ValidationError, NotFoundError, ConflictError
from listings.publish import PublishService
from listings.service import ListingService, to_buyer_view

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Initialize services
listing_service = ListingService()
publish_service = PublishService(listings_table=listing_service.listings_table)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for listing operations.

    Handles:
    - GET /listings - Storefront listing feed
    - POST /listings/publish - Publish a scan or a manual listing (operator)
    - GET /listings/{id} - Get a listing
    - DELETE /listings/{id} - Delete a listing (operator)

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
        if path == '/listings' and http_method == 'GET':
            return handle_list(event)
        elif path == '/listings/publish' and http_method == 'POST':
            require_operator(event)
            return handle_publish(event)
        elif path.startswith('/listings/') and http_method == 'GET':
            return handle_get(event)
        elif path.startswith('/listings/') and http_method == 'DELETE':
            require_operator(event)
            return handle_delete(event)
        else:
            return error_response("Route not found", status_code=404)

    except MarketplaceException as e:
        logger.error(f"Application error: {str(e)}")
        return error_response(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return error_response("Internal server error", status_code=500)


def handle_publish(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle listing publication.

    The Telegram broadcast runs after the response is built and cannot change it.

    Args:
        event: Lambda event

    Returns:
        API Gateway response with the stored listing
    """
    try:
        body = parse_json_body(event)
        listing = publish_service.publish(body)
    except ValidationError as e:
        return validation_error_response(str(e))
    except NotFoundError as e:
        return not_found_response(str(e))
    except ConflictError as e:
        return conflict_response(str(e))

    response = success_response(data=listing)
    publish_service.notify_published(listing)
    return response


def handle_list(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle the storefront feed of published listings."""
    listings = [to_buyer_view(listing) for listing in listing_service.list_published()]
    return success_response(data=listings, headers=NO_STORE_HEADERS)


def handle_get(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle get listing request."""
    path_params = event.get('pathParameters') or {}
    listing_id = path_params.get('id')

    if not listing_id:
        return validation_error_response("No listing ID provided")

    try:
        listing = listing_service.get_listing(listing_id)
    except NotFoundError as e:
        return not_found_response(str(e), headers=NO_STORE_HEADERS)

    return success_response(data=listing, headers=NO_STORE_HEADERS)


def handle_delete(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle delete listing request."""
    path_params = event.get('pathParameters') or {}
    listing_id = path_params.get('id')

    if not listing_id:
        return validation_error_response("No listing ID provided")

    try:
        listing_service.delete_listing(listing_id)
    except NotFoundError as e:
        return not_found_response(str(e))

    return success_response(message="Listing deleted successfully")
