"""
StationRepository 테스트 (database 모듈은 mock)
"""

from contextlib import contextmanager

import pytest

from janmap.db.repository import StationRepository
from janmap.db.shop_filters import ShopSearchFilters
from janmap.models.domain import ShopStation

from conftest import FIXED_NOW


STATION_ROW = {
    "id": 101,
    "name": "新宿",
    "name_kana": "しんじゅく",
    "latitude": 35.690921,
    "longitude": 139.700258,
    "line_id": 1,
    "line_name": "JR山手線",
    "slug": "shinjuku",
    "prefecture_id": 13,
    "city_id": 1,
    "station_group_id": 1,
    "is_grouped": True,
}


@pytest.fixture
def repository():
    return StationRepository()


class TestReads:
    def test_find_stations(self, repository, mocker):
        mocker.patch("janmap.db.database.get_stations_by_ids", return_value=[STATION_ROW])

        stations = repository.find_stations([101, 999])

        assert list(stations) == [101]
        assert stations[101].line_name == "JR山手線"

    def test_find_station_missing(self, repository, mocker):
        mocker.patch("janmap.db.database.get_station_by_id", return_value=None)

        assert repository.find_station(999) is None

    def test_find_shop(self, repository, mocker):
        mocker.patch(
            "janmap.db.database.get_shop_by_id",
            return_value={"id": 1, "name": "雀荘", "lat": 35.0, "lng": 139.0, "is_verified": True},
        )

        shop = repository.find_shop(1)

        assert shop.coordinate.lat == 35.0
        assert shop.is_verified is True

    def test_verified_shop_ids_by_station(self, repository, mocker):
        mocker.patch(
            "janmap.db.database.get_verified_shop_links",
            return_value=[
                {"station_id": 101, "shop_id": 1},
                {"station_id": 101, "shop_id": 2},
                {"station_id": 102, "shop_id": 1},
            ],
        )

        assert repository.verified_shop_ids_by_station([101, 102]) == {101: {1, 2}, 102: {1}}
        assert repository.count_verified_shops([101, 102]) == 2

    def test_get_nearest_stations_keyed_by_shop(self, repository, mocker):
        mocker.patch(
            "janmap.db.database.get_nearest_station_rows",
            return_value=[{"shop_id": 5, "station_id": 105}],
        )

        assert repository.get_nearest_stations([5]) == {5: {"shop_id": 5, "station_id": 105}}


class TestSearchStationShops:
    def test_empty_station_ids(self, repository, mocker):
        mock_scalar = mocker.patch("janmap.db.database.fetch_scalar")

        assert repository.search_station_shops([], ShopSearchFilters()) == ([], 0)
        mock_scalar.assert_not_called()

    def test_zero_total_skips_select(self, repository, mocker):
        mocker.patch("janmap.db.database.fetch_scalar", return_value=0)
        mock_all = mocker.patch("janmap.db.database.fetch_all")

        assert repository.search_station_shops([101], ShopSearchFilters()) == ([], 0)
        mock_all.assert_not_called()

    def test_rows_and_total(self, repository, mocker):
        mocker.patch("janmap.db.database.fetch_scalar", return_value=2)
        mocker.patch("janmap.db.database.fetch_all", return_value=[{"id": 1}, {"id": 2}])

        rows, total = repository.search_station_shops([101], ShopSearchFilters())

        assert total == 2
        assert [r["id"] for r in rows] == [1, 2]


class TestReplaceShopStations:
    def test_lock_delete_insert_in_one_transaction(self, repository, mocker, sample_stations):
        calls = []
        cursor = mocker.MagicMock()

        @contextmanager
        def fake_cursor():
            calls.append("begin")
            yield cursor
            calls.append("commit")

        mocker.patch("janmap.db.database.get_db_cursor", fake_cursor)
        mocker.patch(
            "janmap.db.database.lock_shop_stations",
            side_effect=lambda cur, shop_id: calls.append(("lock", cur, shop_id)),
        )
        mocker.patch(
            "janmap.db.database.delete_shop_stations",
            side_effect=lambda cur, shop_id: calls.append(("delete", cur, shop_id)) or 2,
        )
        mocker.patch(
            "janmap.db.database.insert_shop_stations",
            side_effect=lambda cur, rows, now: calls.append(("insert", cur, rows, now)) or len(rows),
        )

        station = next(s for s in sample_stations if s.id == 301)
        row = ShopStation.build(1, station, 0.024, True)

        repository.replace_shop_stations(1, [row], FIXED_NOW)

        assert calls == [
            "begin",
            ("lock", cursor, 1),
            ("delete", cursor, 1),
            ("insert", cursor, [row.to_row()], FIXED_NOW),
            "commit",
        ]

    def test_failure_propagates(self, repository, mocker):
        @contextmanager
        def fake_cursor():
            yield mocker.MagicMock()

        mocker.patch("janmap.db.database.get_db_cursor", fake_cursor)
        mocker.patch("janmap.db.database.lock_shop_stations")
        mocker.patch("janmap.db.database.delete_shop_stations", return_value=1)
        mocker.patch(
            "janmap.db.database.insert_shop_stations", side_effect=RuntimeError("insert failed")
        )

        with pytest.raises(RuntimeError):
            repository.replace_shop_stations(1, [], FIXED_NOW)
