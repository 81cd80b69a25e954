"""
서비스 계층이 사용하는 영속성 인터페이스

database 모듈의 row(dict)를 domain 객체로 변환해서 돌려줌
테스트에서는 같은 메서드를 가진 in-memory 구현으로 대체
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set, Tuple

from janmap.db import database
from janmap.db.shop_filters import ShopSearchFilters, build_station_shop_query
from janmap.models.domain import Shop, ShopStation, Station, StationGroup

logger = logging.getLogger(__name__)


class StationRepository:
    # ========== 역 / 역 그룹 ==========

    def find_station(self, station_id: int) -> Optional[Station]:
        row = database.get_station_by_id(station_id)
        return Station.from_row(row) if row else None

    def find_stations(self, station_ids: Sequence[int]) -> Dict[int, Station]:
        rows = database.get_stations_by_ids(station_ids)
        return {row["id"]: Station.from_row(row) for row in rows}

    def find_stations_by_group(self, station_group_id: int) -> List[Station]:
        return [Station.from_row(row) for row in database.get_stations_by_group(station_group_id)]

    def find_station_group(self, station_group_id: int) -> Optional[StationGroup]:
        row = database.get_station_group_by_id(station_group_id)
        return StationGroup.from_row(row) if row else None

    def find_station_group_by_slug(self, prefecture_id: int, slug: str) -> Optional[StationGroup]:
        row = database.get_station_group_by_slug(prefecture_id, slug)
        return StationGroup.from_row(row) if row else None

    def find_standalone_station_by_slug(self, prefecture_id: int, slug: str) -> Optional[Station]:
        row = database.get_standalone_station_by_slug(prefecture_id, slug)
        return Station.from_row(row) if row else None

    def search_stations_by_keyword(self, keyword: str) -> List[Station]:
        return [Station.from_row(row) for row in database.search_stations_by_keyword(keyword)]

    # ========== 지역 ==========

    def find_prefecture_by_slug(self, slug: str) -> Optional[Dict]:
        return database.get_prefecture_by_slug(slug)

    def find_city(self, city_id: int) -> Optional[Dict]:
        return database.get_city_by_id(city_id)

    # ========== 점포 ==========

    def find_shop(self, shop_id: int) -> Optional[Shop]:
        row = database.get_shop_by_id(shop_id)
        return Shop.from_row(row) if row else None

    def get_shop_stations(self, shop_id: int) -> List[Dict]:
        """ShopStation 필드 + 역 이름/노선/그룹 이름 (최근접 우선, 거리 오름차순)"""
        return database.get_shop_station_rows(shop_id)

    def get_nearest_stations(self, shop_ids: Sequence[int]) -> Dict[int, Dict]:
        return {row["shop_id"]: row for row in database.get_nearest_station_rows(shop_ids)}

    def verified_shop_ids_by_station(self, station_ids: Sequence[int]) -> Dict[int, Set[int]]:
        result: Dict[int, Set[int]] = {}
        for row in database.get_verified_shop_links(station_ids):
            result.setdefault(row["station_id"], set()).add(row["shop_id"])
        return result

    def count_verified_shops(self, station_ids: Sequence[int]) -> int:
        """여러 역에 중복 연결된 점포는 1개로 계산"""
        shop_ids: Set[int] = set()
        for ids in self.verified_shop_ids_by_station(station_ids).values():
            shop_ids |= ids
        return len(shop_ids)

    def search_station_shops(
        self, station_ids: Sequence[int], filters: ShopSearchFilters
    ) -> Tuple[List[Dict], int]:
        if not station_ids:
            return [], 0

        select_sql, count_sql, params = build_station_shop_query(station_ids, filters)
        total = database.fetch_scalar(count_sql, params) or 0
        rows = database.fetch_all(select_sql, params) if total else []
        return rows, int(total)

    # ========== 점포-역 갱신 ==========

    def replace_shop_stations(
        self, shop_id: int, rows: Sequence[ShopStation], now: datetime
    ) -> None:
        """
        점포의 역 정보를 통째로 교체

        advisory lock + 삭제 + 일괄 등록이 하나의 transaction
        => 같은 점포에 대한 동시 갱신은 직렬화되고, 도중 실패 시 이전 상태 유지
        """
        with database.get_db_cursor() as cursor:
            database.lock_shop_stations(cursor, shop_id)
            deleted = database.delete_shop_stations(cursor, shop_id)
            inserted = database.insert_shop_stations(
                cursor, [row.to_row() for row in rows], now
            )

        logger.info(
            f"shop_stations 교체 완료: shop_id={shop_id}, deleted={deleted}, inserted={inserted}"
        )
