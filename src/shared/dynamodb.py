"""DynamoDB utilities and helper functions."""

import os
import boto3
from typing import Any, Dict, List, Optional
from decimal import Decimal
from botocore.exceptions import ClientError
import logging

from .exceptions import ConflictError, DatabaseError

logger = logging.getLogger(__name__)


class DynamoDBClient:
    """DynamoDB client wrapper with common operations."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name

        # Support for LocalStack
        endpoint_url = os.environ.get('LOCALSTACK_ENDPOINT')
        if endpoint_url and os.environ.get('USE_LOCALSTACK', 'false').lower() == 'true':
            self.dynamodb = boto3.resource('dynamodb', endpoint_url=endpoint_url)
        else:
            self.dynamodb = boto3.resource('dynamodb')

        self.table = self.dynamodb.Table(table_name)

    def put_item(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Put an item in the table.

        Args:
            item: Item to put
            condition_expression: Optional condition the write must satisfy

        Returns:
            The item that was put

        Raises:
            ConflictError: If the condition is not met
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {'Item': self._python_to_dynamodb(item)}
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression

            self.table.put_item(**kwargs)
            return item
        except ClientError as e:
            if self._error_code(e) == 'ConditionalCheckFailedException':
                raise ConflictError("Conditional write rejected")
            logger.error(f"Error putting item into {self.table_name}: {e}")
            raise DatabaseError(f"Failed to put item: {str(e)}")

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get an item from the table.

        Args:
            key: Primary key of the item

        Returns:
            The item if found, None otherwise

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            response = self.table.get_item(Key=key)
            item = response.get('Item')
            if item:
                return self._dynamodb_to_python(item)
            return None
        except ClientError as e:
            logger.error(f"Error getting item from {self.table_name}: {e}")
            raise DatabaseError(f"Failed to get item: {str(e)}")

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_values: Dict[str, Any],
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Primary key of the item
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Optional expression attribute names
            condition_expression: Optional condition the update must satisfy

        Returns:
            Updated item

        Raises:
            ConflictError: If the condition is not met
            DatabaseError: If the operation fails
        """
        try:
            expression_values = self._python_to_dynamodb(expression_values)

            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ExpressionAttributeValues': expression_values,
                'ReturnValues': 'ALL_NEW'
            }

            if expression_names:
                kwargs['ExpressionAttributeNames'] = expression_names
            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**kwargs)
            return self._dynamodb_to_python(response['Attributes'])
        except ClientError as e:
            if self._error_code(e) == 'ConditionalCheckFailedException':
                raise ConflictError("Conditional update rejected")
            logger.error(f"Error updating item in {self.table_name}: {e}")
            raise DatabaseError(f"Failed to update item: {str(e)}")

    def delete_item(self, key: Dict[str, Any]) -> None:
        """
        Delete an item from the table.

        Args:
            key: Primary key of the item

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            self.table.delete_item(Key=key)
        except ClientError as e:
            logger.error(f"Error deleting item from {self.table_name}: {e}")
            raise DatabaseError(f"Failed to delete item: {str(e)}")

    def scan(
        self,
        filter_expression: Optional[Any] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Scan items from the table.

        Args:
            filter_expression: Optional filter expression
            limit: Optional limit
            exclusive_start_key: Optional pagination key

        Returns:
            Dictionary with items and optional LastEvaluatedKey

        Raises:
            DatabaseError: If the operation fails
        """
        try:
            kwargs = {}

            if filter_expression is not None:
                kwargs['FilterExpression'] = filter_expression
            if limit:
                kwargs['Limit'] = limit
            if exclusive_start_key:
                kwargs['ExclusiveStartKey'] = exclusive_start_key

            response = self.table.scan(**kwargs)

            return {
                'items': [self._dynamodb_to_python(item) for item in response.get('Items', [])],
                'last_evaluated_key': response.get('LastEvaluatedKey')
            }
        except ClientError as e:
            logger.error(f"Error scanning {self.table_name}: {e}")
            raise DatabaseError(f"Failed to scan items: {str(e)}")

    def scan_all(self, filter_expression: Optional[Any] = None) -> List[Dict[str, Any]]:
        """Scan the whole table, following pagination keys."""
        items = []
        last_key = None

        while True:
            result = self.scan(
                filter_expression=filter_expression,
                exclusive_start_key=last_key
            )
            items.extend(result['items'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        return items

    def transact_write(self, transact_items: List[Dict[str, Any]]) -> None:
        """
        Apply several writes atomically, possibly across tables.

        Args:
            transact_items: TransactItems entries (Put/Update/Delete/ConditionCheck)

        Raises:
            ConflictError: If any condition in the transaction fails
            DatabaseError: If the operation fails
        """
        try:
            self.dynamodb.meta.client.transact_write_items(
                TransactItems=self._python_to_dynamodb(transact_items)
            )
        except ClientError as e:
            if self._error_code(e) == 'TransactionCanceledException':
                reasons = e.response.get('CancellationReasons', [])
                logger.warning(f"Transaction cancelled: {reasons}")
                raise ConflictError("Transaction cancelled by a failed condition")
            logger.error(f"Error writing transaction: {e}")
            raise DatabaseError(f"Failed to write transaction: {str(e)}")

    @staticmethod
    def _error_code(error: ClientError) -> str:
        return error.response.get('Error', {}).get('Code', '')

    @staticmethod
    def _python_to_dynamodb(obj: Any) -> Any:
        """Convert Python objects to DynamoDB compatible format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._python_to_dynamodb(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._python_to_dynamodb(item) for item in obj]
        elif isinstance(obj, float):
            return Decimal(str(obj))
        return obj

    @staticmethod
    def _dynamodb_to_python(obj: Any) -> Any:
        """Convert DynamoDB objects to Python format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._dynamodb_to_python(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DynamoDBClient._dynamodb_to_python(item) for item in obj]
        elif isinstance(obj, Decimal):
            if obj % 1 == 0:
                return int(obj)
            return float(obj)
        return obj
