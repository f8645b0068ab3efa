"""
Unit tests for SupportedVendorRepository and the shared SQL helpers

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch

from psycopg2.extras import Json

from bestprice.repositories.base import build_set_clause, build_insert
from bestprice.repositories.supported_vendor_repository import SupportedVendorRepository


def vendor_row(**overrides):
    row = {
        'id': 1,
        'name': "Lipsey's",
        'vendor_short_code': 'lipseys',
        'api_type': 'rest_api',
        'name_aliases': ["Lipsey's Inc."],
        'credential_fields': [{'name': 'email', 'label': 'Email', 'required': True}],
        'features': {'productCatalog': True},
        'is_enabled': True,
        'sort_order': 1,
        'product_record_priority': 1,
        'lipseys_catalog_sync_status': 'success',
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_db():
    with patch('bestprice.repositories.supported_vendor_repository.get_db_connection_dict') as mock_get_conn:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        yield mock_conn, mock_cursor


class TestSqlHelpers:

    def test_set_clause_whitelists_columns(self):
        clause, params = build_set_clause({'name': 'x', 'id': 5, 'features': {'a': True}}, ('name', 'features'), ('features',))

        assert clause == "name = %s, features = %s"
        assert params[0] == 'x'
        assert isinstance(params[1], Json)

    def test_insert(self):
        columns, placeholders, params = build_insert({'name': 'x', 'slug': 'y', 'other': 1}, ('name', 'slug'))

        assert columns == "name, slug"
        assert placeholders == "%s, %s"
        assert params == ['x', 'y']


class TestSupportedVendorRepository:

    def test_find_by_identifier_numeric_uses_id(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = vendor_row()

        vendor = SupportedVendorRepository().find_by_identifier(' 1 ')

        assert vendor.vendor_short_code == 'lipseys'
        assert mock_cursor.execute.call_args[0][1] == (1,)

    def test_find_by_identifier_text_matches_aliases(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = vendor_row()

        vendor = SupportedVendorRepository().find_by_identifier("Lipsey's Inc.")

        query, params = mock_cursor.execute.call_args[0]
        assert 'name_aliases' in query
        assert params == ("Lipsey's Inc.", "Lipsey's Inc.", "Lipsey's Inc.")
        # vendor-specific sync columns are kept as extra attributes
        assert vendor.lipseys_catalog_sync_status == 'success'

    def test_find_by_identifier_blank(self, mock_db):
        mock_conn, _ = mock_db
        assert SupportedVendorRepository().find_by_identifier('  ') is None
        mock_conn.cursor.assert_not_called()

    def test_claim_sync(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'id': 1}

        assert SupportedVendorRepository().claim_sync(1, 'lipseys_catalog_sync_status') is True
        assert "<> 'in_progress'" in mock_cursor.execute.call_args[0][0]
        mock_conn.commit.assert_called_once()

    def test_claim_sync_already_running(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = None

        assert SupportedVendorRepository().claim_sync(1, 'catalog_sync_status') is False

    def test_claim_sync_rejects_other_columns(self, mock_db):
        with pytest.raises(ValueError):
            SupportedVendorRepository().claim_sync(1, 'name')

    def test_set_record_priority_swaps_with_holder(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.side_effect = [
            {'id': 1, 'product_record_priority': 3},
            {'id': 2},
            vendor_row(product_record_priority=1),
        ]

        vendor = SupportedVendorRepository().set_record_priority(1, 1)

        assert vendor.product_record_priority == 1
        calls = mock_cursor.execute.call_args_list
        assert len(calls) == 5
        park_query, park_params = calls[2][0]
        assert 'product_record_priority = NULL' in park_query
        assert park_params == (2,)
        assert calls[3][0][1] == (1, 1)
        assert calls[4][0][1] == (3, 2)
        mock_conn.commit.assert_called_once()

    def test_set_record_priority_free_slot(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.side_effect = [
            {'id': 1, 'product_record_priority': 3},
            None,
            vendor_row(product_record_priority=4),
        ]

        SupportedVendorRepository().set_record_priority(1, 4)

        updates = [c for c in mock_cursor.execute.call_args_list if c[0][0].strip().startswith('UPDATE')]
        assert len(updates) == 1
        assert updates[0][0][1] == (4, 1)
        mock_conn.commit.assert_called_once()

    def test_set_record_priority_unknown_vendor(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = None

        assert SupportedVendorRepository().set_record_priority(99, 1) is None
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()
