"""Lambda handler for operator authentication."""

import os
import logging
from typing import Dict, Any
import sys

# Add parent directory to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from shared.response import success_response, error_response, validation_error_response, unauthorized_response
from shared.validators import parse_json_body
from shared.exceptions import MarketplaceException, ValidationError, AuthenticationError
from auth.service import UserService

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Initialize service
user_service = UserService()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for authentication operations.

    Handles:
    - POST /auth/seed-user - Create or reset an operator account
    - POST /auth/login - Check operator credentials

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

        # Route request
        if path == '/auth/seed-user' and http_method == 'POST':
            return handle_seed_user(event)
        elif path == '/auth/login' and http_method == 'POST':
            return handle_login(event)
        else:
            return error_response("Route not found", status_code=404)

    except MarketplaceException as e:
        logger.error(f"Application error: {str(e)}")
        return error_response(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}", exc_info=True)
        return error_response("Internal server error", status_code=500)


def handle_seed_user(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle operator account creation."""
    try:
        body = parse_json_body(event)
        user = user_service.seed_user(body.get('email'), body.get('password'))

        return success_response(data=user, message="Operator account saved", status_code=201)

    except ValidationError as e:
        return validation_error_response(str(e))


def handle_login(event: Dict[str, Any]) -> Dict[str, Any]:
    """Handle operator login."""
    try:
        body = parse_json_body(event)
        user = user_service.authenticate(body.get('email'), body.get('password'))

        logger.info(f"Operator logged in: {user['email']}")
        return success_response(data=user, message="Login successful")

    except ValidationError as e:
        return validation_error_response(str(e))
    except AuthenticationError as e:
        return unauthorized_response(str(e))
