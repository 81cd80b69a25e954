import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from janmap.algorithms.distance_calculator import haversine_km
from janmap.algorithms.walking import format_distance, format_walking_time
from janmap.core.config import MAX_SUB_STATIONS, NEARBY_SEARCH_CONFIG
from janmap.core.exceptions import (
    InvalidLocationException,
    ShopNotFoundException,
    StationNotFoundException,
    ValidationException,
)
from janmap.models.domain import Coordinate, Shop, ShopStation
from janmap.services.station_group_resolver import StationGroupResolver, dedupe_by_group

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StationAssignmentService:
    """
    점포의 최근접 역(메인 1개) + 서브 역(최대 5개) 지정

    갱신은 항상 "전체 삭제 후 재등록"
    입력 검증이 모두 끝난 뒤에만 DB를 변경함
    """

    def __init__(
        self,
        repository,
        station_index=None,
        clock: Callable[[], datetime] = None,
    ):
        self.repository = repository
        self.station_index = station_index
        self.clock = clock or _utc_now

    def assign_stations(
        self,
        shop_id: int,
        main_station_id: Optional[int],
        sub_station_ids: Iterable[int] = (),
    ) -> List[ShopStation]:
        """
        점포의 역 정보를 교체

        Args:
            shop_id: 점포 ID
            main_station_id: 최근접 역 ID (None이면 최근접 역 없음)
            sub_station_ids: 서브 역 ID 목록 (메인과 같은 ID / 중복 ID는 건너뜀)

        Returns:
            저장된 ShopStation 목록 (메인 먼저)

        Raises:
            ValidationException: 서브 역이 MAX_SUB_STATIONS개 초과
            ShopNotFoundException: 점포 없음
            InvalidLocationException: 점포 좌표 미설정 / 범위 밖
            StationNotFoundException: 존재하지 않는 역 ID 포함
        """
        sub_station_ids = list(sub_station_ids or [])
        if len(sub_station_ids) > MAX_SUB_STATIONS:
            raise ValidationException(
                f"サブ駅は最大{MAX_SUB_STATIONS}つまで指定できます。"
            )

        shop = self._get_shop(shop_id)
        shop_coordinate = self._shop_coordinate(shop)

        sub_ids = []
        for station_id in sub_station_ids:
            if station_id == main_station_id or station_id in sub_ids:
                continue
            sub_ids.append(station_id)

        requested_ids = ([main_station_id] if main_station_id is not None else []) + sub_ids
        stations = self.repository.find_stations(requested_ids)

        missing = [i for i in requested_ids if i not in stations]
        if missing:
            logger.warning(f"존재하지 않는 역 ID: shop_id={shop_id}, missing={missing}")
            raise StationNotFoundException(
                f"指定された駅が存在しません: {', '.join(str(i) for i in missing)}"
            )

        rows = []
        for station_id in requested_ids:
            station = stations[station_id]
            rows.append(
                ShopStation.build(
                    shop_id=shop_id,
                    station=station,
                    distance_km=haversine_km(shop_coordinate, station.coordinate),
                    is_nearest=station_id == main_station_id,
                )
            )

        self.repository.replace_shop_stations(shop_id, rows, self.clock())

        logger.info(
            f"역 정보 갱신: shop_id={shop_id}, main={main_station_id}, subs={sub_ids}"
        )
        return rows

    def get_assignment(self, shop_id: int) -> Dict[str, Any]:
        """현재 지정된 역 정보 {main_station, sub_stations, total_count}"""
        self._get_shop(shop_id)

        rows = self.repository.get_shop_stations(shop_id)
        summaries = [self._summary(row) for row in rows]

        main_station = next((s for s in summaries if s["is_nearest"]), None)
        sub_stations = [s for s in summaries if not s["is_nearest"]]

        return {
            "main_station": main_station,
            "sub_stations": sub_stations,
            "total_count": len(summaries),
        }

    def auto_assign(
        self,
        shop_id: int,
        max_distance_km: float = NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        max_sub_stations: int = MAX_SUB_STATIONS,
    ) -> List[ShopStation]:
        """
        점포 좌표 기준 반경 검색으로 역 자동 지정

        가장 가까운 역(그룹 단위)이 메인, 그 다음부터 서브
        """
        if not 0 <= max_sub_stations <= MAX_SUB_STATIONS:
            raise ValidationException(
                f"サブ駅は最大{MAX_SUB_STATIONS}つまで指定できます。"
            )
        if self.station_index is None:
            raise RuntimeError("station_index가 설정되지 않았습니다")

        shop = self._get_shop(shop_id)
        shop_coordinate = self._shop_coordinate(shop)

        measured = []
        for station in self.station_index.candidates_within(shop_coordinate, max_distance_km):
            distance = haversine_km(shop_coordinate, station.coordinate)
            if distance <= max_distance_km:
                measured.append((distance, station))
        measured.sort(key=lambda m: (m[0], m[1].id))

        resolver = StationGroupResolver(self.repository)
        nearest = dedupe_by_group(
            measured, key_of=lambda m: resolver.resolve_group(m[1]).key
        )
        if not nearest:
            raise ValidationException(
                f"店舗から{max_distance_km}km以内に駅が見つかりません。"
            )

        main_station = nearest[0][1]
        sub_stations = [station for _, station in nearest[1 : max_sub_stations + 1]]

        logger.info(
            f"역 자동 지정: shop_id={shop_id}, candidates={len(measured)}, "
            f"main={main_station.id}, subs={[s.id for s in sub_stations]}"
        )
        return self.assign_stations(
            shop_id, main_station.id, [s.id for s in sub_stations]
        )

    def _get_shop(self, shop_id: int) -> Shop:
        shop = self.repository.find_shop(shop_id)
        if shop is None:
            raise ShopNotFoundException()
        return shop

    def _shop_coordinate(self, shop: Shop) -> Coordinate:
        coordinate = shop.coordinate
        if coordinate is None:
            raise InvalidLocationException("店舗の位置情報が設定されていません。")
        return coordinate.validate()

    def _summary(self, row: Dict[str, Any]) -> Dict[str, Any]:
        station_group = None
        if row.get("station_group_id") and row.get("is_grouped") and row.get("station_group_name"):
            station_group = {
                "id": row["station_group_id"],
                "name": row["station_group_name"],
            }

        distance_km = float(row["distance_km"])
        minutes = int(row["walking_minutes"])
        return {
            "id": row["station_id"],
            "name": row["station_name"],
            "name_kana": row.get("name_kana") or "",
            "line_name": row.get("line_name"),
            "distance_km": distance_km,
            "walking_minutes": minutes,
            "distance_text": format_distance(distance_km),
            "walking_time_text": format_walking_time(minutes),
            "is_nearest": bool(row["is_nearest"]),
            "station_group": station_group,
        }
