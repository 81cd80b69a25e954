import logging
from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Optional, Set, Tuple

from janmap.algorithms.distance_calculator import haversine_km
from janmap.algorithms.walking import format_distance, format_walking_time, walking_minutes
from janmap.algorithms.station_index import StationIndex
from janmap.core.config import NEARBY_SEARCH_CONFIG
from janmap.core.exceptions import (
    GeocodingFailedException,
    LocationNotFoundException,
)
from janmap.db.shop_filters import ShopSearchFilters
from janmap.models.domain import (
    Coordinate,
    GroupedStation,
    Station,
    StationIdentity,
)
from janmap.services.station_group_resolver import (
    StationGroupResolver,
    dedupe_by_group,
)

logger = logging.getLogger(__name__)


@dataclass
class NearbyStation:
    """주변 역 검색 결과 1건 (그룹이면 가장 가까운 멤버 기준 거리)"""

    identity: StationIdentity
    station: Station
    distance_km: float
    shop_count: Optional[int] = None

    @property
    def key(self) -> Tuple[str, int]:
        return self.identity.key

    def to_dict(self) -> Dict[str, Any]:
        is_group = isinstance(self.identity, GroupedStation)
        minutes = walking_minutes(self.distance_km)
        return {
            "type": self.identity.kind,
            "id": self.identity.id,
            "station_group_id": self.identity.id if is_group else None,
            "station_id": self.station.id,
            "name": self.identity.display_name,
            "name_kana": self.identity.name_kana,
            "slug": self.identity.slug,
            "line_name": self.station.line_name,
            "distance_km": self.distance_km,
            "walking_minutes": minutes,
            "distance_text": format_distance(self.distance_km),
            "walking_time_text": format_walking_time(minutes),
            "shop_count": self.shop_count,
            "coordinates": {"lat": self.station.lat, "lng": self.station.lng},
            "lines": _lines_of(self.identity),
        }


def _lines_of(identity: StationIdentity) -> List[Dict[str, Any]]:
    return [
        {"station_id": s.id, "line_id": s.line_id, "line_name": s.line_name}
        for s in identity.members
    ]


class ProximityService:
    """
    좌표 / 주소 / 역 기준 주변 검색

    - 반경 검색은 KD-Tree로 후보를 좁힌 뒤 haversine으로 최종 판정
    - 같은 그룹의 역은 가장 가까운 1건만
    """

    def __init__(
        self,
        repository,
        station_index: StationIndex,
        geocoder=None,
        resolver: StationGroupResolver = None,
    ):
        self.repository = repository
        self.station_index = station_index
        self.geocoder = geocoder
        self.resolver = resolver or StationGroupResolver(repository)

    # ========== 주변 역 ==========

    def nearby_stations(
        self,
        point: Coordinate,
        max_distance_km: float = NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        max_results: int = NEARBY_SEARCH_CONFIG["default_max_stations"],
        require_shops: bool = True,
        exclude_keys: Collection[Tuple[str, int]] = (),
        prefecture_id: Optional[int] = None,
    ) -> List[NearbyStation]:
        """
        point 기준 max_distance_km 이내의 역 (거리 오름차순)

        처리 순서: 거리 필터 -> 정렬 -> 그룹 중복 제거 -> 점포 0건 제외 -> 개수 제한

        Args:
            point: 검색 중심 좌표
            max_distance_km: 최대 거리 (이 값 포함)
            max_results: 최대 건수
            require_shops: True면 공개 점포가 없는 역/그룹 제외
            exclude_keys: 제외할 identity key 목록 (역 페이지의 자기 자신 등)
            prefecture_id: 지정 시 해당 都道府県의 역만
        """
        point.validate()
        if max_results <= 0:
            return []

        measured = []
        for station in self.station_index.candidates_within(point, max_distance_km):
            if prefecture_id is not None and station.prefecture_id != prefecture_id:
                continue
            distance = haversine_km(point, station.coordinate)
            if distance <= max_distance_km:
                measured.append((distance, station))

        # 거리가 같으면 역 ID 순
        measured.sort(key=lambda m: (m[0], m[1].id))

        # 그룹 row가 없는 역은 resolve 단계에서 단독역 => resolve 결과 기준으로 중복 제거
        resolved = [
            (distance, station, self.resolver.resolve_group(station))
            for distance, station in measured
        ]
        unique = dedupe_by_group(resolved, key_of=lambda m: m[2].key)

        results = []
        for distance, station, identity in unique:
            if identity.key in exclude_keys:
                continue
            results.append(NearbyStation(identity=identity, station=station, distance_km=distance))

        self._attach_shop_counts(results)
        if require_shops:
            results = [r for r in results if r.shop_count > 0]

        logger.debug(
            f"주변 역 검색: point=({point.lat}, {point.lng}), radius={max_distance_km}km, "
            f"candidates={len(measured)}, unique={len(unique)}, results={len(results)}"
        )
        return results[:max_results]

    def nearby_stations_by_address(
        self,
        address: str,
        max_distance_km: float = NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        max_results: int = NEARBY_SEARCH_CONFIG["default_max_stations"],
    ) -> Tuple[Coordinate, List[NearbyStation]]:
        if self.geocoder is None:
            raise RuntimeError("geocoder가 설정되지 않았습니다")

        point = self.geocoder.geocode(address)
        if point is None:
            raise GeocodingFailedException()

        return point, self.nearby_stations(point, max_distance_km, max_results)

    def nearby_stations_of_station(
        self,
        prefecture_slug: str,
        station_slug: str,
        max_distance_km: float = NEARBY_SEARCH_CONFIG["station_page_max_distance_km"],
        limit: int = NEARBY_SEARCH_CONFIG["station_page_limit"],
    ) -> Dict[str, Any]:
        """역 페이지의 주변 역 (같은 都道府県, 자기 자신 제외, 점포 있는 역만)"""
        prefecture, identity = self._resolve_location(prefecture_slug, station_slug)

        representative = identity.representative
        if representative is None or not representative.coordinate.is_valid:
            raise LocationNotFoundException("駅の位置情報が取得できません。")

        exclude = {identity.key} | {("station", sid) for sid in identity.station_ids}
        nearby = self.nearby_stations(
            representative.coordinate,
            max_distance_km=max_distance_km,
            max_results=limit,
            require_shops=True,
            exclude_keys=exclude,
            prefecture_id=prefecture["id"],
        )

        return {
            "current_station": {
                "id": identity.id,
                "name": identity.display_name,
                "slug": identity.slug,
            },
            "nearby_stations": [
                dict(n.to_dict(), prefecture_slug=prefecture["slug"]) for n in nearby
            ],
            "total": len(nearby),
        }

    # ========== 역 상세 / 검색 ==========

    def station_detail(self, prefecture_slug: str, station_slug: str) -> Dict[str, Any]:
        prefecture, identity = self._resolve_location(prefecture_slug, station_slug)

        if isinstance(identity, GroupedStation):
            city_id = identity.group.primary_city_id
        else:
            city_id = identity.station.city_id

        city = self.repository.find_city(city_id) if city_id else None

        return {
            "type": identity.kind,
            "id": identity.id,
            "name": identity.display_name,
            "name_kana": identity.name_kana,
            "slug": identity.slug,
            "prefecture": {
                "id": prefecture["id"],
                "name": prefecture["name"],
                "slug": prefecture["slug"],
            },
            "city": (
                {"id": city["id"], "name": city["name"], "slug": city["slug"]}
                if city
                else None
            ),
            "lines": _lines_of(identity),
            "shop_count": self.repository.count_verified_shops(identity.station_ids),
        }

    def search_stations(self, keyword: str, limit: int = 20) -> List[Dict[str, Any]]:
        """
        역 이름 검색 (그룹은 1건으로 묶고 소속 노선을 lines로)

        그룹 결과가 먼저, 단독역이 뒤
        """
        keyword = (keyword or "").strip()
        if not keyword:
            return []

        stations = self.repository.search_stations_by_keyword(keyword)

        groups: Dict[Tuple[str, int], Dict[str, Any]] = {}
        singles: List[Dict[str, Any]] = []

        for station in stations:
            identity = self.resolver.resolve_group(station)
            if isinstance(identity, GroupedStation):
                if identity.key in groups:
                    continue
                representative = identity.representative or station
                groups[identity.key] = {
                    "type": "group",
                    "station_group_id": identity.id,
                    "station_group_name": identity.display_name,
                    "station_id": None,
                    "name": identity.display_name,
                    "name_kana": identity.name_kana,
                    "coordinates": {"lat": representative.lat, "lng": representative.lng},
                    "lines": _lines_of(identity),
                }
            else:
                singles.append(
                    {
                        "type": "station",
                        "station_group_id": None,
                        "station_group_name": None,
                        "station_id": station.id,
                        "name": station.name,
                        "name_kana": station.name_kana,
                        "coordinates": {"lat": station.lat, "lng": station.lng},
                        "lines": _lines_of(identity),
                    }
                )

        return (list(groups.values()) + singles)[:limit]

    # ========== 역 주변 점포 ==========

    def shops_near_station(
        self,
        prefecture_slug: str,
        station_slug: str,
        filters: ShopSearchFilters = None,
    ) -> Dict[str, Any]:
        """
        역(그룹이면 멤버 전체)에 연결된 공개 점포 목록 + 페이지 정보

        각 점포에는 최근접 역 요약(nearest_station)을 붙임
        """
        filters = filters or ShopSearchFilters()
        _, identity = self._resolve_location(prefecture_slug, station_slug)

        if isinstance(identity, GroupedStation):
            station_ids = [s.id for s in self.resolver.expand_group(identity.id)]
        else:
            station_ids = identity.station_ids

        rows, total = self.repository.search_station_shops(station_ids, filters)
        nearest = self.repository.get_nearest_stations([row["id"] for row in rows])

        data = []
        for row in rows:
            shop = dict(row)
            shop["distance_km"] = float(shop["distance_km"])
            shop["walking_minutes"] = int(shop["walking_minutes"])
            shop["nearest_station"] = self._nearest_summary(nearest.get(row["id"]))
            data.append(shop)

        last_page = max(1, -(-total // filters.per_page))

        return {
            "data": data,
            "current_page": filters.page,
            "last_page": last_page,
            "per_page": filters.per_page,
            "total": total,
        }

    # ========== 내부 ==========

    def _resolve_location(
        self, prefecture_slug: str, station_slug: str
    ) -> Tuple[Dict[str, Any], StationIdentity]:
        prefecture = self.repository.find_prefecture_by_slug(prefecture_slug)
        if prefecture is None:
            raise LocationNotFoundException("指定された都道府県が見つかりません。")

        identity = self.resolver.resolve_slug(prefecture["id"], station_slug)
        if identity is None:
            raise LocationNotFoundException()

        return prefecture, identity

    def _attach_shop_counts(self, results: List[NearbyStation]) -> None:
        """그룹은 멤버 역 전체에 연결된 공개 점포 수 (중복 점포는 1개)"""
        station_ids = sorted({sid for r in results for sid in r.identity.station_ids})
        shops_by_station = self.repository.verified_shop_ids_by_station(station_ids)

        for result in results:
            shop_ids: Set[int] = set()
            for sid in result.identity.station_ids:
                shop_ids |= shops_by_station.get(sid, set())
            result.shop_count = len(shop_ids)

    @staticmethod
    def _nearest_summary(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not row:
            return None

        grouped = bool(row.get("is_grouped")) and row.get("station_group_id") is not None
        return {
            "id": row["station_id"],
            "name": row["station_group_name"] if grouped else row["station_name"],
            "slug": row["station_group_slug"] if grouped else row["station_slug"],
            "line_name": row.get("line_name"),
            "distance_km": float(row["distance_km"]),
            "walking_minutes": int(row["walking_minutes"]),
        }
