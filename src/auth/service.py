"""Operator account service."""

import os
import uuid
from datetime import datetime, timezone
from typing import Dict, Any
import logging

from shared.dynamodb import DynamoDBClient
from shared.validators import validate_email, validate_six_digit_code
from shared.exceptions import AuthenticationError, ValidationError
from auth.password import hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """Creates operator accounts and checks their credentials."""

    def __init__(self):
        """Initialize user service."""
        self.users_table = DynamoDBClient(os.environ.get('USERS_TABLE', 'pc-marketplace-users'))

    def seed_user(self, email: Any, password: Any) -> Dict[str, Any]:
        """
        Create or reset an operator account.

        Args:
            email: Operator email
            password: 6-digit code

        Returns:
            Public user record

        Raises:
            ValidationError: If email or code is invalid
        """
        email = validate_email(email)
        password = validate_six_digit_code(password)

        existing = self.users_table.get_item({'email': email})
        now = datetime.now(timezone.utc).isoformat()

        record = {
            'email': email,
            'id': existing['id'] if existing else str(uuid.uuid4()),
            'password_hash': hash_password(password),
            'created_at': existing['created_at'] if existing else now,
            'updated_at': now
        }
        self.users_table.put_item(record)

        logger.info(f"Operator account {'updated' if existing else 'created'}: {email}")
        return {'id': record['id'], 'email': email}

    def authenticate(self, email: Any, password: Any) -> Dict[str, Any]:
        """
        Verify operator credentials.

        Raises:
            ValidationError: If email or password is missing
            AuthenticationError: If the credentials do not match
        """
        if not email or not isinstance(email, str):
            raise ValidationError("Email is required")
        if not password or not isinstance(password, str):
            raise ValidationError("Password is required")

        user = self.users_table.get_item({'email': email.strip()})
        if not user or not user.get('password_hash'):
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(password.strip(), user['password_hash']):
            logger.info(f"Rejected login for {email.strip()}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        return {'id': user.get('id'), 'email': user['email']}
