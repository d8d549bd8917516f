"""Lambda handler for sales analytics."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.response import success_response, error_response, validation_error_response, NO_STORE_HEADERS
from shared.operator import require_operator
from shared.exceptions import MarketplaceException, ValidationError
from analytics.service import AnalyticsService, DEFAULT_RANGE

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Initialize service
analytics_service = AnalyticsService()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for analytics.

    Handles:
    - GET /analytics?range=day|3days|week - Sales dashboard (operator)

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
        path = event.get('path')

        if path == '/analytics' and http_method == 'GET':
            require_operator(event)
            return handle_get_stats(event)
        else:
            return error_response("Route not found", status_code=404)

    except MarketplaceException as e:
        logger.error(f"Application error: {str(e)}")
        return error_response(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return error_response("Internal server error", status_code=500)


def handle_get_stats(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle analytics request."""
    query_params = event.get('queryStringParameters') or {}
    range_name = query_params.get('range') or DEFAULT_RANGE

    try:
        stats = analytics_service.get_sales_stats(range_name)
    except ValidationError as e:
        return validation_error_response(str(e))

    return success_response(data=stats, headers=NO_STORE_HEADERS)
