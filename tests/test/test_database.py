"""
database 모듈 테스트 (connection pool은 mock)
"""

from datetime import datetime, timezone

import psycopg2
import pytest

from janmap.db import database


@pytest.fixture
def mock_pool(mocker):
    pool = mocker.MagicMock()
    connection = mocker.MagicMock()
    cursor = mocker.MagicMock()
    pool.getconn.return_value = connection
    connection.cursor.return_value = cursor
    mocker.patch("janmap.db.database._connection_pool", pool)
    return pool, connection, cursor


class TestTransaction:
    def test_commit_on_success(self, mock_pool):
        pool, connection, cursor = mock_pool

        with database.get_db_cursor() as cur:
            cur.execute("SELECT 1")

        connection.commit.assert_called_once()
        connection.rollback.assert_not_called()
        cursor.close.assert_called_once()
        pool.putconn.assert_called_once_with(connection)

    def test_rollback_on_error(self, mock_pool):
        pool, connection, cursor = mock_pool

        with pytest.raises(ValueError):
            with database.get_db_cursor():
                raise ValueError("boom")

        connection.commit.assert_not_called()
        connection.rollback.assert_called()
        cursor.close.assert_called_once()
        pool.putconn.assert_called_once_with(connection)

    def test_database_error_propagates(self, mock_pool):
        _, connection, cursor = mock_pool
        cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

        with pytest.raises(psycopg2.OperationalError):
            database.fetch_all("SELECT 1", {})

        connection.rollback.assert_called()

    def test_pool_not_initialized(self, mocker):
        mocker.patch("janmap.db.database._connection_pool", None)

        with pytest.raises(RuntimeError):
            with database.get_db_cursor():
                pass


class TestQueries:
    def test_fetch_scalar(self, mock_pool):
        _, _, cursor = mock_pool
        cursor.fetchone.return_value = {"total": 7}

        assert database.fetch_scalar("SELECT COUNT(*) AS total", {}) == 7

    def test_fetch_scalar_no_row(self, mock_pool):
        _, _, cursor = mock_pool
        cursor.fetchone.return_value = None

        assert database.fetch_scalar("SELECT 1", {}) is None

    def test_empty_ids_skip_query(self, mock_pool):
        _, _, cursor = mock_pool

        assert database.get_stations_by_ids([]) == []
        assert database.get_verified_shop_links([]) == []
        cursor.execute.assert_not_called()

    def test_get_station_by_id(self, mock_pool):
        _, _, cursor = mock_pool
        cursor.fetchone.return_value = {"id": 101}

        assert database.get_station_by_id(101) == {"id": 101}
        assert cursor.execute.call_args[0][1] == {"station_id": 101}


class TestShopStationWrites:
    def test_lock(self, mocker):
        cursor = mocker.MagicMock()

        database.lock_shop_stations(cursor, 42)

        sql, params = cursor.execute.call_args[0]
        assert "pg_advisory_xact_lock(%(lock_key)s::bigint)" in sql
        assert params == {"lock_key": (7301 << 48) | 42}

    def test_lock_key_bigint_shop_id(self):
        """int4 범위를 넘는 BIGSERIAL ID도 bigint 키 1개로 표현"""
        shop_id = 2**31 + 5

        key = database.shop_station_lock_key(shop_id)

        assert key < 2**63
        assert key & (2**48 - 1) == shop_id
        assert key >> 48 == database.SHOP_STATION_LOCK_NAMESPACE

    def test_lock_key_distinct_per_shop(self):
        assert database.shop_station_lock_key(1) != database.shop_station_lock_key(2)

    @pytest.mark.parametrize("shop_id", [0, -1, 2**48])
    def test_lock_key_out_of_range(self, shop_id):
        with pytest.raises(ValueError):
            database.shop_station_lock_key(shop_id)

    def test_delete_returns_rowcount(self, mocker):
        cursor = mocker.MagicMock()
        cursor.rowcount = 3

        assert database.delete_shop_stations(cursor, 42) == 3
        assert "DELETE FROM shop_stations" in cursor.execute.call_args[0][0]

    def test_insert(self, mocker):
        mock_execute_values = mocker.patch("janmap.db.database.execute_values")
        cursor = mocker.MagicMock()
        now = datetime(2025, 10, 1, tzinfo=timezone.utc)
        rows = [
            {
                "shop_id": 1,
                "station_id": 301,
                "station_group_id": None,
                "distance_km": 0.024,
                "is_nearest": True,
                "walking_minutes": 0,
                "accuracy": "high",
            }
        ]

        assert database.insert_shop_stations(cursor, rows, now) == 1

        values = mock_execute_values.call_args[0][2]
        assert values == [(1, 301, None, 0.024, True, 0, "high", now, now)]

    def test_insert_nothing(self, mocker):
        mock_execute_values = mocker.patch("janmap.db.database.execute_values")

        assert database.insert_shop_stations(mocker.MagicMock(), [], datetime.now()) == 0
        mock_execute_values.assert_not_called()
