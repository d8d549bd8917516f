"""Listing image uploads from base64 data URLs."""

import base64
import binascii
import os
import re
import time
import uuid
from typing import Any, List, Optional
import logging

from shared.s3 import S3Client
from shared.exceptions import StorageError

logger = logging.getLogger(__name__)

MAX_LISTING_IMAGES = 4

DEFAULT_CONTENT_TYPE = 'image/png'

DATA_URL_PATTERN = re.compile(r'^data:(.*?);base64,(.*)$', re.DOTALL)


def image_extension(content_type: str) -> str:
    """File extension for a MIME type: jpeg -> jpg, otherwise the subtype."""
    if 'jpeg' in content_type:
        return 'jpg'
    _, _, subtype = content_type.partition('/')
    return subtype or 'png'


def decode_data_url(data_url: Any) -> Optional[tuple]:
    """
    Split a data URL into its content type and decoded bytes.

    Returns:
        ``(content_type, payload)``, or None if the entry is not a usable
        base64 data URL
    """
    if not isinstance(data_url, str):
        return None

    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match:
        return None

    content_type = match.group(1) or DEFAULT_CONTENT_TYPE
    try:
        payload = base64.b64decode(re.sub(r'\s+', '', match.group(2)), validate=True)
    except (binascii.Error, ValueError):
        return None

    if not payload:
        return None

    return content_type, payload


class ImageUploadService:
    """Stores listing photos in the image bucket and returns their public URLs."""

    def __init__(self, s3_client: Optional[S3Client] = None):
        """Initialize upload service."""
        self.s3_client = s3_client or S3Client(
            os.environ.get('LISTING_IMAGES_BUCKET', 'listing-images')
        )

    def upload_images(self, key_prefix: str, images: Any) -> List[str]:
        """
        Upload up to four data-URL images.

        Malformed entries and failed uploads are skipped, so the result may be
        shorter than the input or empty.

        Keys carry a per-call token, so concurrent publishes of the same scan
        never share an object.

        Args:
            key_prefix: Folder in the bucket (scan id or slugified title)
            images: List of ``data:<mime>;base64,<payload>`` strings

        Returns:
            Public URLs in input order
        """
        if not isinstance(images, list) or not images:
            return []

        if len(images) > MAX_LISTING_IMAGES:
            logger.info(f"Received {len(images)} images; only the first {MAX_LISTING_IMAGES} are kept")

        batch = uuid.uuid4().hex[:8]
        urls = []
        for index, data_url in enumerate(images[:MAX_LISTING_IMAGES]):
            decoded = decode_data_url(data_url)
            if decoded is None:
                logger.warning(f"Skipping image {index} for {key_prefix}: not a base64 data URL")
                continue

            content_type, payload = decoded
            key = f"{key_prefix}/{int(time.time() * 1000)}_{batch}_{index}.{image_extension(content_type)}"

            try:
                self.s3_client.upload_file(payload, key, content_type=content_type)
            except StorageError as e:
                logger.warning(f"Skipping image {index} for {key_prefix}: {e.message}")
                continue

            urls.append(self.s3_client.get_public_url(key))

        return urls

    def remove_images(self, urls: List[str]) -> None:
        """Delete uploaded images, e.g. after the listing write failed."""
        for url in urls:
            key = self.s3_client.key_from_public_url(url)
            if not key:
                continue
            try:
                self.s3_client.delete_file(key)
            except StorageError as e:
                logger.warning(f"Could not clean up {key}: {e.message}")
