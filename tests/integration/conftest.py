"""Fixtures for integration tests against moto-backed AWS services."""

import pytest
from unittest.mock import Mock
from moto import mock_aws
import boto3
import os

BUCKET = 'test-listing-images'
PUBLIC_BASE_URL = 'https://cdn.example.com'


@pytest.fixture
def aws_credentials():
    """Mock AWS Credentials for moto."""
    os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
    os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
    os.environ['AWS_SECURITY_TOKEN'] = 'testing'
    os.environ['AWS_SESSION_TOKEN'] = 'testing'
    os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'


@pytest.fixture
def aws(aws_credentials):
    """Create mock tables and image bucket."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        for table_name in (os.environ['SCANS_TABLE'], os.environ['LISTINGS_TABLE'], os.environ['RECEIPTS_TABLE']):
            dynamodb.create_table(
                TableName=table_name,
                KeySchema=[{'AttributeName': 'id', 'KeyType': 'HASH'}],
                AttributeDefinitions=[{'AttributeName': 'id', 'AttributeType': 'S'}],
                BillingMode='PAY_PER_REQUEST'
            )

        dynamodb.create_table(
            TableName=os.environ['USERS_TABLE'],
            KeySchema=[{'AttributeName': 'email', 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': 'email', 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )

        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket=BUCKET)

        yield {'dynamodb': dynamodb, 's3': s3}


@pytest.fixture
def services(aws):
    """Real services wired to the mocked AWS resources."""
    from shared.s3 import S3Client
    from scans.store import ScanStore
    from listings.images import ImageUploadService
    from listings.publish import PublishService
    from listings.service import ListingService
    from receipts.service import ReceiptService

    scan_store = ScanStore()
    listing_service = ListingService()
    image_service = ImageUploadService(S3Client(BUCKET, public_base_url=PUBLIC_BASE_URL))
    notifier = Mock()
    notifier.send_listing.return_value = True

    return {
        'scan_store': scan_store,
        'listing_service': listing_service,
        'image_service': image_service,
        'notifier': notifier,
        'publish_service': PublishService(
            listings_table=listing_service.listings_table,
            scan_store=scan_store,
            image_service=image_service,
            notifier=notifier
        ),
        'receipt_service': ReceiptService(listing_service=listing_service)
    }
