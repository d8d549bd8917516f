"""S3 utilities and helper functions."""

import os
import boto3
from typing import Optional
from urllib.parse import quote, unquote
from botocore.exceptions import ClientError
import logging

from .exceptions import StorageError

logger = logging.getLogger(__name__)


class S3Client:
    """S3 client wrapper with common operations."""

    def __init__(self, bucket_name: str, public_base_url: Optional[str] = None):
        """
        Initialize S3 client.

        Args:
            bucket_name: Name of the S3 bucket
            public_base_url: Optional base URL objects are served from
        """
        self.bucket_name = bucket_name
        self.public_base_url = (
            public_base_url
            or os.environ.get('PUBLIC_ASSET_BASE_URL')
            or f"https://{bucket_name}.s3.amazonaws.com"
        ).rstrip('/')

        # Support for LocalStack
        endpoint_url = os.environ.get('LOCALSTACK_ENDPOINT')
        if endpoint_url and os.environ.get('USE_LOCALSTACK', 'false').lower() == 'true':
            self.s3 = boto3.client('s3', endpoint_url=endpoint_url)
        else:
            self.s3 = boto3.client('s3')

    def upload_file(
        self,
        file_content: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> str:
        """
        Upload a file to S3. Never overwrites an existing object.

        Args:
            file_content: File content as bytes
            key: S3 object key
            content_type: Optional content type

        Returns:
            S3 object key

        Raises:
            StorageError: If the upload fails or the key is already taken
        """
        try:
            kwargs = {
                'Bucket': self.bucket_name,
                'Key': key,
                'Body': file_content,
                'ServerSideEncryption': 'AES256',
                'IfNoneMatch': '*'
            }

            if content_type:
                kwargs['ContentType'] = content_type

            self.s3.put_object(**kwargs)
            logger.info(f"Successfully uploaded file to s3://{self.bucket_name}/{key}")
            return key
        except ClientError as e:
            logger.error(f"Error uploading file to S3: {e}")
            raise StorageError(f"Failed to upload file: {str(e)}")

    def delete_file(self, key: str) -> None:
        """
        Delete a file from S3.

        Args:
            key: S3 object key

        Raises:
            StorageError: If the deletion fails
        """
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info(f"Successfully deleted file s3://{self.bucket_name}/{key}")
        except ClientError as e:
            logger.error(f"Error deleting file from S3: {e}")
            raise StorageError(f"Failed to delete file: {str(e)}")

    def get_public_url(self, key: str) -> str:
        """Public URL an uploaded object is served from."""
        return f"{self.public_base_url}/{quote(key)}"

    def key_from_public_url(self, url: str) -> Optional[str]:
        """Inverse of get_public_url; None for URLs outside this bucket."""
        prefix = f"{self.public_base_url}/"
        if not url.startswith(prefix):
            return None
        return unquote(url[len(prefix):])
