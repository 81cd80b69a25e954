"""
Pytest 설정 및 공통 Fixture

서비스 테스트는 DB 대신 in-memory FakeRepository 사용
(StationRepository와 같은 메서드 구성)
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import pytest

# 테스트 모드 환경 변수 설정 (모듈 임포트 전에 설정해야 함)
os.environ["TESTING"] = "true"

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from janmap.algorithms.station_index import StationIndex  # noqa: E402
from janmap.models.domain import Shop, ShopStation, Station, StationGroup  # noqa: E402


FIXED_NOW = datetime(2025, 10, 1, 12, 0, 0, tzinfo=timezone.utc)

# 검색 중심 (新宿駅 동쪽 출구 부근)
SHINJUKU_POINT = (35.6900, 139.7000)


class FakeRepository:
    """StationRepository in-memory 구현"""

    def __init__(
        self,
        stations: Sequence[Station],
        groups: Sequence[StationGroup],
        shops: Sequence[Shop],
        prefectures: Sequence[Dict] = (),
        cities: Sequence[Dict] = (),
    ):
        self.stations = {s.id: s for s in stations}
        self.groups = {g.id: g for g in groups}
        self.shops = {s.id: s for s in shops}
        self.prefectures = list(prefectures)
        self.cities = {c["id"]: c for c in cities}

        self.shop_stations: Dict[int, List[ShopStation]] = {}
        self.replace_calls = []
        self.search_calls = []

    # ----- 테스트 데이터 준비 -----

    def link(self, shop_id: int, station_id: int, distance_km: float, is_nearest: bool = False):
        row = ShopStation.build(shop_id, self.stations[station_id], distance_km, is_nearest)
        self.shop_stations.setdefault(shop_id, []).append(row)
        return row

    # ----- 역 / 역 그룹 -----

    def find_station(self, station_id: int) -> Optional[Station]:
        return self.stations.get(station_id)

    def find_stations(self, station_ids: Sequence[int]) -> Dict[int, Station]:
        return {i: self.stations[i] for i in station_ids if i in self.stations}

    def find_stations_by_group(self, station_group_id: int) -> List[Station]:
        return sorted(
            (s for s in self.stations.values() if s.station_group_id == station_group_id),
            key=lambda s: s.id,
        )

    def find_station_group(self, station_group_id: int) -> Optional[StationGroup]:
        return self.groups.get(station_group_id)

    def find_station_group_by_slug(self, prefecture_id: int, slug: str) -> Optional[StationGroup]:
        for group in self.groups.values():
            if group.slug == slug and group.prefecture_id == prefecture_id:
                return group
        return None

    def find_standalone_station_by_slug(self, prefecture_id: int, slug: str) -> Optional[Station]:
        for station in sorted(self.stations.values(), key=lambda s: s.id):
            if (
                station.slug == slug
                and station.prefecture_id == prefecture_id
                and station.station_group_id is None
            ):
                return station
        return None

    def search_stations_by_keyword(self, keyword: str) -> List[Station]:
        result = []
        for station in sorted(self.stations.values(), key=lambda s: s.id):
            group = self.groups.get(station.station_group_id)
            if (
                keyword in station.name
                or keyword in station.name_kana
                or (group is not None and keyword in group.name)
            ):
                result.append(station)
        return result

    # ----- 지역 -----

    def find_prefecture_by_slug(self, slug: str) -> Optional[Dict]:
        return next((p for p in self.prefectures if p["slug"] == slug), None)

    def find_city(self, city_id: int) -> Optional[Dict]:
        return self.cities.get(city_id)

    # ----- 점포 -----

    def find_shop(self, shop_id: int) -> Optional[Shop]:
        return self.shops.get(shop_id)

    def get_shop_stations(self, shop_id: int) -> List[Dict]:
        rows = []
        for link in self.shop_stations.get(shop_id, []):
            station = self.stations[link.station_id]
            group = self.groups.get(link.station_group_id)
            rows.append(
                dict(
                    link.to_row(),
                    station_name=station.name,
                    name_kana=station.name_kana,
                    is_grouped=station.is_grouped,
                    line_name=station.line_name,
                    station_group_name=group.name if group else None,
                )
            )
        rows.sort(key=lambda r: (not r["is_nearest"], r["distance_km"]))
        return rows

    def get_nearest_stations(self, shop_ids: Sequence[int]) -> Dict[int, Dict]:
        result = {}
        for shop_id in shop_ids:
            for link in self.shop_stations.get(shop_id, []):
                if not link.is_nearest:
                    continue
                station = self.stations[link.station_id]
                group = self.groups.get(station.station_group_id)
                result[shop_id] = {
                    "shop_id": shop_id,
                    "distance_km": link.distance_km,
                    "walking_minutes": link.walking_minutes,
                    "station_id": station.id,
                    "station_name": station.name,
                    "station_slug": station.slug,
                    "is_grouped": station.is_grouped,
                    "station_group_id": group.id if group else None,
                    "station_group_name": group.name if group else None,
                    "station_group_slug": group.slug if group else None,
                    "line_name": station.line_name,
                }
        return result

    def verified_shop_ids_by_station(self, station_ids: Sequence[int]) -> Dict[int, Set[int]]:
        result: Dict[int, Set[int]] = {}
        for shop_id, links in self.shop_stations.items():
            if not self.shops[shop_id].is_verified:
                continue
            for link in links:
                if link.station_id in station_ids:
                    result.setdefault(link.station_id, set()).add(shop_id)
        return result

    def count_verified_shops(self, station_ids: Sequence[int]) -> int:
        shop_ids: Set[int] = set()
        for ids in self.verified_shop_ids_by_station(station_ids).values():
            shop_ids |= ids
        return len(shop_ids)

    def search_station_shops(self, station_ids, filters):
        self.search_calls.append((list(station_ids), filters))

        rows = []
        for shop in sorted(self.shops.values(), key=lambda s: s.id):
            if not shop.is_verified:
                continue
            links = [
                link
                for link in self.shop_stations.get(shop.id, [])
                if link.station_id in station_ids
                and (filters.max_distance_km is None or link.distance_km <= filters.max_distance_km)
            ]
            if not links:
                continue
            best = min(links, key=lambda link: link.distance_km)
            rows.append(
                {
                    "id": shop.id,
                    "name": shop.name,
                    "distance_km": best.distance_km,
                    "walking_minutes": best.walking_minutes,
                }
            )

        rows.sort(key=lambda r: (r["distance_km"], r["id"]))
        return rows[filters.offset : filters.offset + filters.per_page], len(rows)

    # ----- 갱신 -----

    def replace_shop_stations(self, shop_id: int, rows: Sequence[ShopStation], now: datetime):
        self.replace_calls.append((shop_id, list(rows), now))
        self.shop_stations[shop_id] = list(rows)


def _station(id, name, kana, lat, lng, line_id, line_name, slug, group_id=None, is_grouped=False, city_id=1):
    return Station(
        id=id,
        name=name,
        name_kana=kana,
        lat=lat,
        lng=lng,
        line_id=line_id,
        line_name=line_name,
        slug=slug,
        prefecture_id=13,
        city_id=city_id,
        station_group_id=group_id,
        is_grouped=is_grouped,
    )


@pytest.fixture
def sample_stations() -> List[Station]:
    """
    테스트용 샘플 역 데이터 (東京都)

    新宿 그룹(id=1): 101, 102, 103 (is_grouped) + 108 (그룹 ID만 있고 is_grouped=False)
    SHINJUKU_POINT 기준 3km 이내: 101-108 / 밖: 201(渋谷), 301(東京)
    """
    return [
        _station(101, "新宿", "しんじゅく", 35.690921, 139.700258, 1, "JR山手線", "shinjuku", 1, True),
        _station(102, "新宿", "しんじゅく", 35.6924, 139.7006, 2, "東京メトロ丸ノ内線", "shinjuku", 1, True),
        _station(103, "新宿", "しんじゅく", 35.6887, 139.6990, 3, "都営新宿線", "shinjuku", 1, True),
        _station(104, "新宿三丁目", "しんじゅくさんちょうめ", 35.6906, 139.7048, 2, "東京メトロ丸ノ内線", "shinjuku-sanchome"),
        _station(105, "代々木", "よよぎ", 35.6830, 139.7020, 1, "JR山手線", "yoyogi", city_id=2),
        _station(106, "南新宿", "みなみしんじゅく", 35.6832, 139.6985, 4, "小田急小田原線", "minami-shinjuku", city_id=2),
        _station(107, "西新宿", "にししんじゅく", 35.6940, 139.6926, 2, "東京メトロ丸ノ内線", "nishi-shinjuku"),
        _station(108, "新宿西口", "しんじゅくにしぐち", 35.6932, 139.6989, 5, "都営大江戸線", "shinjuku-nishiguchi", 1, False),
        _station(201, "渋谷", "しぶや", 35.6580, 139.7016, 1, "JR山手線", "shibuya", city_id=3),
        _station(301, "東京", "とうきょう", 35.6812, 139.7671, 1, "JR山手線", "tokyo", city_id=4),
    ]


@pytest.fixture
def sample_groups() -> List[StationGroup]:
    return [
        StationGroup(
            id=1,
            name="新宿",
            name_kana="しんじゅく",
            slug="shinjuku",
            prefecture_id=13,
            primary_city_id=1,
        )
    ]


@pytest.fixture
def sample_shops() -> List[Shop]:
    return [
        Shop(id=1, name="雀荘 東京駅前", lat=35.681, lng=139.767, is_verified=True),
        Shop(id=2, name="雀荘 新宿東口", lat=SHINJUKU_POINT[0], lng=SHINJUKU_POINT[1], is_verified=True),
        Shop(id=3, name="雀荘 非公開", lat=35.6905, lng=139.7040, is_verified=False),
        Shop(id=4, name="雀荘 座標なし", lat=None, lng=None, is_verified=True),
        Shop(id=5, name="雀荘 代々木", lat=35.6835, lng=139.7015, is_verified=True),
    ]


@pytest.fixture
def sample_prefectures() -> List[Dict]:
    return [{"id": 13, "name": "東京都", "slug": "tokyo"}]


@pytest.fixture
def sample_cities() -> List[Dict]:
    return [
        {"id": 1, "name": "新宿区", "slug": "shinjuku-ku"},
        {"id": 2, "name": "渋谷区", "slug": "shibuya-ku"},
    ]


@pytest.fixture
def fake_repository(sample_stations, sample_groups, sample_shops, sample_prefectures, sample_cities):
    return FakeRepository(
        sample_stations, sample_groups, sample_shops, sample_prefectures, sample_cities
    )


@pytest.fixture
def station_index(sample_stations) -> StationIndex:
    return StationIndex(sample_stations)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def mock_redis_client(mocker):
    """Mock Redis 클라이언트"""
    mock = mocker.MagicMock()
    mock.get.return_value = None
    mock.setex.return_value = True
    return mock
