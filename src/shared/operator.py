"""Shared operator token check for inventory-management endpoints."""

import hmac
import os
import logging
from typing import Any, Dict

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_warned_open_gate = False


def get_bearer_token(event: Dict[str, Any]) -> str:
    """Extract the bearer token from the Authorization header, if any."""
    headers = event.get('headers') or {}
    # API Gateway does not normalise header case
    authorization = next(
        (v for k, v in headers.items() if k.lower() == 'authorization'),
        ''
    ) or ''

    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer':
        return ''
    return token.strip()


def require_operator(event: Dict[str, Any]) -> None:
    """
    Ensure the request carries the operator token.

    The check is skipped when OPERATOR_API_TOKEN is not configured.

    Raises:
        AuthenticationError: If the token is missing or wrong
    """
    global _warned_open_gate

    expected = os.environ.get('OPERATOR_API_TOKEN')
    if not expected:
        if not _warned_open_gate:
            logger.warning("OPERATOR_API_TOKEN not set; operator endpoints are open")
            _warned_open_gate = True
        return

    supplied = get_bearer_token(event)
    if not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise AuthenticationError("Operator token missing or invalid")
