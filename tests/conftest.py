"""Shared test configuration."""

import os
import sys

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Handler modules build their boto3 clients at import time
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_SECURITY_TOKEN', 'testing')
os.environ.setdefault('AWS_SESSION_TOKEN', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

os.environ.setdefault('SCANS_TABLE', 'test-scans')
os.environ.setdefault('LISTINGS_TABLE', 'test-listings')
os.environ.setdefault('RECEIPTS_TABLE', 'test-receipts')
os.environ.setdefault('USERS_TABLE', 'test-users')
os.environ.setdefault('LISTING_IMAGES_BUCKET', 'test-listing-images')

# Keep notifications and the operator gate off unless a test opts in
os.environ.pop('TELEGRAM_BOT_TOKEN', None)
os.environ.pop('TELEGRAM_CHANNEL_ID', None)
os.environ.pop('OPERATOR_API_TOKEN', None)
