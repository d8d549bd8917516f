"""Validation utilities for the PC marketplace application."""

import json
import re
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError


# Operator passwords are short numeric codes
SIX_DIGIT_CODE = re.compile(r'^\d{6}$')

MAX_AMOUNT = Decimal('99999999.99')


def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse the JSON body of an API Gateway event.

    Args:
        event: Lambda event

    Returns:
        Parsed body (empty dict when no body was sent)

    Raises:
        ValidationError: If the body is not a JSON object
    """
    raw = event.get('body') or '{}'

    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON")

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    return body


def validate_email(email: str) -> str:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        Validated email

    Raises:
        ValidationError: If email is invalid
    """
    if not email or not isinstance(email, str):
        raise ValidationError("Email is required")

    email = email.strip()
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    if not re.match(pattern, email):
        raise ValidationError("Invalid email format")

    return email


def validate_six_digit_code(password: Any) -> str:
    """
    Validate an operator password, which must be a 6-digit code.

    Raises:
        ValidationError: If the code is missing or malformed
    """
    if not password or not isinstance(password, str):
        raise ValidationError("Password is required")

    if not SIX_DIGIT_CODE.match(password):
        raise ValidationError("Password must be a 6-digit code")

    return password


def validate_amount(amount: Any, field_name: str = "Amount") -> Decimal:
    """
    Validate monetary amount.

    Args:
        amount: Amount to validate
        field_name: Name used in error messages

    Returns:
        Validated amount as Decimal

    Raises:
        ValidationError: If amount is invalid
    """
    if amount is None or (isinstance(amount, str) and not amount.strip()):
        raise ValidationError(f"{field_name} is required")

    if isinstance(amount, bool):
        raise ValidationError(f"Invalid {field_name.lower()} format")

    try:
        decimal_amount = Decimal(str(amount).replace(',', '').strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name.lower()} format")

    if not decimal_amount.is_finite():
        raise ValidationError(f"Invalid {field_name.lower()} format")

    if decimal_amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")

    if decimal_amount > MAX_AMOUNT:
        raise ValidationError(f"{field_name} is too large")

    # Ensure at most 2 decimal places
    if decimal_amount.as_tuple().exponent < -2:
        raise ValidationError(f"{field_name} can have at most 2 decimal places")

    return decimal_amount


def validate_date(date_str: str) -> str:
    """
    Validate an ISO 8601 date or datetime string.

    Args:
        date_str: Date string to validate

    Returns:
        Validated date string

    Raises:
        ValidationError: If date is invalid
    """
    if not date_str or not isinstance(date_str, str):
        raise ValidationError("Date is required")

    try:
        datetime.fromisoformat(date_str.replace('Z', '+00:00'))
        return date_str
    except ValueError:
        raise ValidationError("Invalid date format. Use ISO 8601 (YYYY-MM-DD)")


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> None:
    """
    Validate that required fields are present in data.

    Args:
        data: Data dictionary to validate
        required_fields: List of required field names

    Raises:
        ValidationError: If any required field is missing
    """
    missing_fields = [
        field for field in required_fields
        if field not in data or data[field] is None
        or (isinstance(data[field], str) and not data[field].strip())
    ]

    if missing_fields:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing_fields)}"
        )


def sanitize_string(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    """
    Trim a free-text input; blank strings become None.

    Args:
        value: String to sanitize
        max_length: Optional maximum length

    Returns:
        Sanitized string or None

    Raises:
        ValidationError: If value is not a string or is too long
    """
    if value is None:
        return None

    if not isinstance(value, str):
        raise ValidationError("Value must be a string")

    value = value.strip()

    if max_length and len(value) > max_length:
        raise ValidationError(f"Value exceeds maximum length of {max_length}")

    return value or None
