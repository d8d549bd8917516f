"""Unit tests for Lambda handler routing and response envelopes."""

import json
import pytest
from unittest.mock import patch
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from auth import handler as auth_handler
from scans import handler as scans_handler
from listings import handler as listings_handler
from receipts import handler as receipts_handler
from analytics import handler as analytics_handler
from shared.exceptions import ConflictError, NotFoundError, AuthenticationError, DatabaseError


def make_event(method, path, body=None, path_params=None, query=None, headers=None):
    return {
        'httpMethod': method,
        'path': path,
        'body': json.dumps(body) if body is not None else None,
        'pathParameters': path_params,
        'queryStringParameters': query,
        'headers': headers or {}
    }


def parse(response):
    return json.loads(response['body'])


class TestScansHandler:
    """Test cases for the scans handler."""

    def test_ingest(self):
        """Test a spec sheet is stored and its id returned."""
        spec = {'Brand': 'Dell', 'Model': 'XPS 13', 'CPU': 'i7', 'RAM_GB': 16}

        with patch.object(scans_handler, 'scan_store') as store:
            response = scans_handler.lambda_handler(make_event('POST', '/scans', spec), None)

        body = parse(response)
        assert response['statusCode'] == 200
        assert body['status'] == 'ok'
        assert body['pc_id'].startswith('scan_')
        assert body['data']['pc_id'] == body['pc_id']
        assert response['headers']['X-Scan-ID'] == body['pc_id']

        stored_id, stored = store.set_scan.call_args.args
        assert stored_id == body['pc_id']
        assert stored['status'] == 'pending'
        assert stored['Scan_Time'] == stored['createdAt']

    def test_ingest_missing_fields(self):
        """Test required spec fields are reported."""
        with patch.object(scans_handler, 'scan_store') as store:
            response = scans_handler.lambda_handler(
                make_event('POST', '/scans', {'Brand': 'Dell'}), None
            )

        body = parse(response)
        assert response['statusCode'] == 400
        assert body['status'] == 'error'
        assert body['details']['required'] == ['Brand', 'Model', 'CPU']
        assert body['details']['missing'] == ['Model', 'CPU']
        store.set_scan.assert_not_called()

    def test_ingest_invalid_json(self):
        """Test malformed bodies are a 400."""
        event = make_event('POST', '/scans')
        event['body'] = '{oops'

        response = scans_handler.lambda_handler(event, None)

        assert response['statusCode'] == 400

    def test_get_published_scan_is_404(self):
        """Test a consumed scan is not found and not cacheable."""
        with patch.object(scans_handler, 'scan_store') as store:
            store.get_scan.return_value = None
            response = scans_handler.lambda_handler(
                make_event('GET', '/scans/scan_1', path_params={'id': 'scan_1'}), None
            )

        assert response['statusCode'] == 404
        assert response['headers']['Cache-Control'].startswith('no-store')

    def test_latest(self):
        """Test the latest pending scan is returned."""
        with patch.object(scans_handler, 'scan_store') as store:
            store.get_latest_pending.return_value = {'id': 'scan_2', 'Brand': 'HP'}
            response = scans_handler.lambda_handler(make_event('GET', '/scans/latest'), None)

        assert response['statusCode'] == 200
        assert parse(response)['data']['id'] == 'scan_2'
        store.get_scan.assert_not_called()

    def test_list_requires_operator(self):
        """Test the admin scan list is gated when a token is configured."""
        with patch.dict(os.environ, {'OPERATOR_API_TOKEN': 'secret'}):
            with patch.object(scans_handler, 'scan_store') as store:
                denied = scans_handler.lambda_handler(make_event('GET', '/scans'), None)
                store.get_all_scans.return_value = []
                allowed = scans_handler.lambda_handler(
                    make_event('GET', '/scans', headers={'Authorization': 'Bearer secret'}), None
                )

        assert denied['statusCode'] == 401
        assert allowed['statusCode'] == 200
        assert parse(allowed)['data'] == {'scans': [], 'count': 0}


class TestListingsHandler:
    """Test cases for the listings handler."""

    def test_publish_notifies_after_success(self):
        """Test a published listing is returned and then broadcast."""
        listing = {'id': 'listing-1', 'price': '100', 'status': 'published'}

        with patch.object(listings_handler, 'publish_service') as service:
            service.publish.return_value = listing
            response = listings_handler.lambda_handler(
                make_event('POST', '/listings/publish', {'id': 'scan_1', 'price': 100}), None
            )

        body = parse(response)
        assert response['statusCode'] == 200
        assert body == {'status': 'ok', 'data': listing}
        service.notify_published.assert_called_once_with(listing)

    @pytest.mark.parametrize('error, status', [
        (NotFoundError("Scan not found"), 404),
        (ConflictError("Scan has already been published"), 409),
        (DatabaseError("Failed to write transaction"), 500),
    ])
    def test_publish_errors(self, error, status):
        """Test publish failures map to status codes and skip notification."""
        with patch.object(listings_handler, 'publish_service') as service:
            service.publish.side_effect = error
            response = listings_handler.lambda_handler(
                make_event('POST', '/listings/publish', {'id': 'scan_1', 'price': 100}), None
            )

        body = parse(response)
        assert response['statusCode'] == status
        assert body['status'] == 'error'
        assert body['error'] == error.message
        service.notify_published.assert_not_called()

    def test_list_is_buyer_view_and_no_store(self):
        """Test the storefront feed is projected and uncacheable."""
        with patch.object(listings_handler, 'listing_service') as service:
            service.list_published.return_value = [{
                'id': 'listing-1',
                'title': 'Dell XPS 13',
                'price': '45000',
                'brand': 'Dell',
                'created_at': '2024-01-15T10:00:00+00:00',
                'status': 'published',
                'images': ['https://cdn.example.com/a.jpg'],
                'scan_id': 'scan_1'
            }]
            response = listings_handler.lambda_handler(make_event('GET', '/listings'), None)

        data = parse(response)['data']
        assert response['headers']['Cache-Control'] == 'no-store, no-cache, must-revalidate, proxy-revalidate'
        assert response['headers']['Pragma'] == 'no-cache'
        assert data[0]['Brand'] == 'Dell'
        assert data[0]['createdAt'] == '2024-01-15T10:00:00+00:00'
        assert data[0]['Storage'] == []
        assert 'scan_id' not in data[0]

    def test_get_missing_listing(self):
        """Test an unknown listing is a 404."""
        with patch.object(listings_handler, 'listing_service') as service:
            service.get_listing.side_effect = NotFoundError("Listing not found")
            response = listings_handler.lambda_handler(
                make_event('GET', '/listings/nope', path_params={'id': 'nope'}), None
            )

        assert response['statusCode'] == 404

    def test_delete_requires_operator(self):
        """Test listing deletion is gated."""
        with patch.dict(os.environ, {'OPERATOR_API_TOKEN': 'secret'}):
            with patch.object(listings_handler, 'listing_service') as service:
                response = listings_handler.lambda_handler(
                    make_event('DELETE', '/listings/l1', path_params={'id': 'l1'}), None
                )

        assert response['statusCode'] == 401
        service.delete_listing.assert_not_called()

    def test_unknown_route(self):
        """Test unknown routes are a 404."""
        response = listings_handler.lambda_handler(make_event('PUT', '/listings'), None)

        assert response['statusCode'] == 404

    def test_unexpected_error_is_500(self):
        """Test unexpected exceptions are hidden behind a generic message."""
        with patch.object(listings_handler, 'listing_service') as service:
            service.list_published.side_effect = RuntimeError("kaboom")
            response = listings_handler.lambda_handler(make_event('GET', '/listings'), None)

        assert response['statusCode'] == 500
        assert parse(response)['error'] == 'Internal server error'


class TestReceiptsHandler:
    """Test cases for the receipts handler."""

    def test_create_returns_201(self):
        """Test receipt creation status and envelope."""
        with patch.object(receipts_handler, 'receipt_service') as service:
            service.create_receipt.return_value = {'id': 'r1', 'receipt_number': 'RCPT-2024-0115-007'}
            response = receipts_handler.lambda_handler(
                make_event('POST', '/receipts', {'buyer_name': 'Abebe'}), None
            )

        body = parse(response)
        assert response['statusCode'] == 201
        assert body['data']['receipt_number'] == 'RCPT-2024-0115-007'

    def test_delete_twice_is_404(self):
        """Test deleting an already deleted receipt is a 404."""
        with patch.object(receipts_handler, 'receipt_service') as service:
            service.soft_delete_receipt.side_effect = NotFoundError("Receipt not found or already deleted")
            response = receipts_handler.lambda_handler(
                make_event('DELETE', '/receipts/r1', path_params={'id': 'r1'}), None
            )

        assert response['statusCode'] == 404

    def test_all_routes_gated(self):
        """Test receipts require the operator token when configured."""
        with patch.dict(os.environ, {'OPERATOR_API_TOKEN': 'secret'}):
            with patch.object(receipts_handler, 'receipt_service') as service:
                response = receipts_handler.lambda_handler(make_event('GET', '/receipts'), None)

        assert response['statusCode'] == 401
        service.list_receipts.assert_not_called()


class TestAuthHandler:
    """Test cases for the auth handler."""

    def test_login_rejected(self):
        """Test bad credentials are a 401."""
        with patch.object(auth_handler, 'user_service') as service:
            service.authenticate.side_effect = AuthenticationError("Invalid email or password")
            response = auth_handler.lambda_handler(
                make_event('POST', '/auth/login', {'email': 'a@b.co', 'password': '000000'}), None
            )

        assert response['statusCode'] == 401
        assert parse(response)['error'] == 'Invalid email or password'

    def test_seed_user_created(self):
        """Test seeding returns 201 with the public user."""
        with patch.object(auth_handler, 'user_service') as service:
            service.seed_user.return_value = {'id': 'u1', 'email': 'a@b.co'}
            response = auth_handler.lambda_handler(
                make_event('POST', '/auth/seed-user', {'email': 'a@b.co', 'password': '123456'}), None
            )

        assert response['statusCode'] == 201
        assert parse(response)['data'] == {'id': 'u1', 'email': 'a@b.co'}


class TestAnalyticsHandler:
    """Test cases for the analytics handler."""

    def test_default_range(self):
        """Test the week range is used by default."""
        with patch.object(analytics_handler, 'analytics_service') as service:
            service.get_sales_stats.return_value = {'range': 'week'}
            response = analytics_handler.lambda_handler(make_event('GET', '/analytics'), None)

        assert response['statusCode'] == 200
        service.get_sales_stats.assert_called_once_with('week')

    def test_range_parameter(self):
        """Test the range query parameter is passed through."""
        with patch.object(analytics_handler, 'analytics_service') as service:
            service.get_sales_stats.return_value = {'range': 'day'}
            analytics_handler.lambda_handler(
                make_event('GET', '/analytics', query={'range': 'day'}), None
            )

        service.get_sales_stats.assert_called_once_with('day')
