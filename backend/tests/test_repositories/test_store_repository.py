"""
Unit tests for StoreRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch

from bestprice.repositories.store_repository import StoreRepository
from bestprice.domain.organization import Store


def store_row(**overrides):
    row = {
        'id': 7,
        'company_id': 3,
        'name': 'Main Street',
        'slug': 'main-street',
        'short_name': 'MAINSTRE',
        'store_number': '01',
        'address1': None,
        'address2': None,
        'city': 'Knoxville',
        'state': 'TN',
        'zip_code': '37902',
        'country': 'US',
        'phone': None,
        'ffl_number': None,
        'timezone': 'America/New_York',
        'currency': 'USD',
        'status': 'active',
        'is_active': True,
        'created_at': None,
        'updated_at': None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_db():
    with patch('bestprice.repositories.store_repository.get_db_connection_dict') as mock_get_conn:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()
        mock_get_conn.return_value = mock_conn
        mock_conn.cursor.return_value = mock_cursor
        yield mock_conn, mock_cursor


class TestStoreRepository:
    """Test StoreRepository methods"""

    def test_find_by_id_scoped_by_company(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = store_row()

        store = StoreRepository().find_by_id(3, 7)

        assert isinstance(store, Store)
        assert store.slug == 'main-street'
        assert mock_cursor.execute.call_args[0][1] == (3, 7)
        mock_cursor.close.assert_called_once()
        mock_conn.close.assert_called_once()

    def test_find_by_id_not_found(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = None

        assert StoreRepository().find_by_id(3, 999) is None

    def test_find_all_hides_archived(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchall.return_value = [store_row(), store_row(id=8, slug='west', store_number='02')]

        stores = StoreRepository().find_all(3)

        assert len(stores) == 2
        query = mock_cursor.execute.call_args[0][0]
        assert "status <> 'archived'" in query

    def test_find_slugs_matches_suffixes(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchall.return_value = [{'slug': 'main'}, {'slug': 'main-2'}]

        slugs = StoreRepository().find_slugs(3, 'main')

        assert slugs == ['main', 'main-2']
        assert mock_cursor.execute.call_args[0][1] == (3, 'main', 'main-%')

    def test_create_ignores_unknown_columns(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = store_row()

        StoreRepository().create(3, {'name': 'Main Street', 'slug': 'main-street', 'company_id': 99, 'bogus': 1})

        query, params = mock_cursor.execute.call_args[0]
        assert 'bogus' not in query
        assert params == [3, 'Main Street', 'main-street']
        mock_conn.commit.assert_called_once()

    def test_create_rolls_back_on_error(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.execute.side_effect = Exception("duplicate key")

        with pytest.raises(Exception):
            StoreRepository().create(3, {'name': 'Main Street', 'slug': 'main-street', 'store_number': '01'})

        mock_conn.rollback.assert_called_once()
        mock_conn.close.assert_called_once()

    def test_update_without_fields_reads_store(self, mock_db):
        _, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = store_row()

        store = StoreRepository().update(3, 7, {'bogus': 'x'})

        assert store.id == 7
        assert 'UPDATE' not in mock_cursor.execute.call_args[0][0]

    def test_delete(self, mock_db):
        mock_conn, mock_cursor = mock_db
        mock_cursor.fetchone.return_value = {'id': 7}

        assert StoreRepository().delete(3, 7) is True
        mock_conn.commit.assert_called_once()
