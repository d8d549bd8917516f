"""Unit tests for listing image uploads."""

import base64
import pytest
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from listings.images import ImageUploadService, decode_data_url, image_extension, MAX_LISTING_IMAGES
from shared.s3 import S3Client
from shared.exceptions import StorageError


def make_data_url(content_type='image/jpeg', payload=b'fake-image-bytes'):
    return f"data:{content_type};base64,{base64.b64encode(payload).decode('ascii')}"


class TestDataUrls:
    """Test cases for data URL decoding."""

    def test_decode(self):
        """Test content type and bytes are extracted."""
        assert decode_data_url(make_data_url('image/webp', b'abc')) == ('image/webp', b'abc')

    def test_default_content_type(self):
        """Test a missing MIME type defaults to PNG."""
        data_url = f"data:;base64,{base64.b64encode(b'abc').decode('ascii')}"
        assert decode_data_url(data_url) == ('image/png', b'abc')

    @pytest.mark.parametrize('value', [
        None,
        42,
        'https://example.com/photo.jpg',
        'data:image/png;base64,@@@not-base64@@@',
        'data:image/png;base64,',
    ])
    def test_rejects_unusable_entries(self, value):
        """Test non-data-URL or undecodable entries yield None."""
        assert decode_data_url(value) is None

    def test_extensions(self):
        """Test MIME types map to file extensions."""
        assert image_extension('image/jpeg') == 'jpg'
        assert image_extension('image/png') == 'png'
        assert image_extension('image/webp') == 'webp'
        assert image_extension('weird') == 'png'


class TestImageUploadService:
    """Test cases for ImageUploadService."""

    @pytest.fixture
    def s3_client(self):
        """Mocked S3 client."""
        client = Mock()
        client.get_public_url.side_effect = lambda key: f"https://cdn.example.com/{key}"
        return client

    @pytest.fixture
    def upload_service(self, s3_client):
        """Create upload service with mocked S3."""
        return ImageUploadService(s3_client=s3_client)

    def test_upload_returns_urls_in_order(self, upload_service, s3_client):
        """Test each image is stored under the prefix and URLs keep input order."""
        urls = upload_service.upload_images('scan_1', [
            make_data_url('image/jpeg'),
            make_data_url('image/png')
        ])

        assert len(urls) == 2
        assert urls[0].startswith('https://cdn.example.com/scan_1/')
        assert urls[0].endswith('_0.jpg')
        assert urls[1].endswith('_1.png')

        first_call = s3_client.upload_file.call_args_list[0]
        assert first_call.kwargs['content_type'] == 'image/jpeg'
        assert first_call.args[0] == b'fake-image-bytes'

    def test_upload_caps_at_four(self, upload_service, s3_client):
        """Test only the first four images are uploaded."""
        urls = upload_service.upload_images('scan_1', [make_data_url() for _ in range(6)])

        assert len(urls) == MAX_LISTING_IMAGES
        assert s3_client.upload_file.call_count == MAX_LISTING_IMAGES

    def test_malformed_entries_skipped(self, upload_service, s3_client):
        """Test bad entries are skipped without failing the batch."""
        urls = upload_service.upload_images('scan_1', ['junk', 7, make_data_url()])

        assert len(urls) == 1
        assert urls[0].endswith('_2.jpg')

    def test_failed_upload_skipped(self, upload_service, s3_client):
        """Test a rejected upload drops that image only."""
        s3_client.upload_file.side_effect = [StorageError("denied"), 'key']

        urls = upload_service.upload_images('scan_1', [make_data_url(), make_data_url()])

        assert len(urls) == 1
        assert urls[0].endswith('_1.jpg')

    def test_keys_differ_between_calls_in_same_millisecond(self, upload_service, s3_client):
        """Test two uploads stamped at the same instant never share a key."""
        with patch('listings.images.time.time', return_value=1700000000.0):
            first = upload_service.upload_images('scan_1', [make_data_url()])
            second = upload_service.upload_images('scan_1', [make_data_url()])

        assert first[0].startswith('https://cdn.example.com/scan_1/1700000000000_')
        assert first != second

    @pytest.mark.parametrize('images', [None, [], 'data:image/png;base64,AAAA'])
    def test_no_images(self, upload_service, s3_client, images):
        """Test a missing or non-list images value uploads nothing."""
        assert upload_service.upload_images('scan_1', images) == []
        s3_client.upload_file.assert_not_called()

    def test_remove_images(self, upload_service, s3_client):
        """Test cleanup deletes each object and tolerates failures."""
        s3_client.key_from_public_url.side_effect = lambda url: url.replace('https://cdn.example.com/', '')
        s3_client.delete_file.side_effect = [StorageError("gone"), None]

        upload_service.remove_images([
            'https://cdn.example.com/scan_1/1_0.jpg',
            'https://cdn.example.com/scan_1/1_1.jpg'
        ])

        assert s3_client.delete_file.call_count == 2
        s3_client.delete_file.assert_called_with('scan_1/1_1.jpg')


class TestS3Client:
    """Test cases for the S3 wrapper's uploads."""

    @pytest.fixture
    def boto_client(self):
        """Mocked boto3 S3 client."""
        with patch('shared.s3.boto3') as boto3:
            yield boto3.client.return_value

    def test_upload_never_overwrites(self, boto_client):
        """Test uploads are conditional on the key being free."""
        client = S3Client('bucket', public_base_url='https://cdn.example.com')

        assert client.upload_file(b'data', 'scan_1/a.png', content_type='image/png') == 'scan_1/a.png'

        kwargs = boto_client.put_object.call_args.kwargs
        assert kwargs['IfNoneMatch'] == '*'
        assert kwargs['ContentType'] == 'image/png'
        assert 'Metadata' not in kwargs

    def test_taken_key_raises_storage_error(self, boto_client):
        """Test a failed precondition surfaces as a storage error."""
        boto_client.put_object.side_effect = ClientError(
            {'Error': {'Code': 'PreconditionFailed', 'Message': 'At least one of the pre-conditions you specified did not hold'}},
            'PutObject'
        )
        client = S3Client('bucket', public_base_url='https://cdn.example.com')

        with pytest.raises(StorageError):
            client.upload_file(b'data', 'scan_1/a.png')
