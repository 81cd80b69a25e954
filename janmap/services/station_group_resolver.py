import logging
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from janmap.core.exceptions import StationGroupNotFoundException
from janmap.models.domain import (
    GroupedStation,
    StandaloneStation,
    Station,
    StationIdentity,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def group_key(station: Station) -> Tuple[str, int]:
    """같은 그룹의 역이면 같은 키 => 중복 제거 기준"""
    if station.belongs_to_group:
        return ("group", station.station_group_id)
    return ("station", station.id)


def dedupe_by_group(
    items: Iterable[T],
    station_of: Callable[[T], Station] = None,
    key_of: Callable[[T], Tuple[str, int]] = None,
) -> List[T]:
    """
    그룹 단위 중복 제거 (입력 순서 유지, 그룹별 첫 번째만 남김)

    거리순으로 정렬된 목록을 넣으면 그룹마다 가장 가까운 멤버가 남음

    Args:
        items: Station 또는 Station을 포함한 임의의 항목
        station_of: 항목에서 Station을 꺼내는 함수 (기본값: 항목 자체)
        key_of: 항목의 중복 제거 키 함수 (기본값: group_key(station_of(item)))
            resolve 결과(StationIdentity.key)로 묶을 때 사용
    """
    station_of = station_of or (lambda item: item)
    key_of = key_of or (lambda item: group_key(station_of(item)))

    seen = set()
    result = []
    for item in items:
        key = key_of(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


class StationGroupResolver:
    """
    역 -> 표시 단위(단독역 / 역 그룹) 변환

    그룹 조회 결과는 인스턴스 단위로 memo => 요청 1건 안에서 같은 그룹 반복 조회 방지
    """

    def __init__(self, repository):
        self.repository = repository
        self._groups: Dict[int, GroupedStation] = {}

    def resolve_group(self, station: Station) -> StationIdentity:
        if not station.belongs_to_group:
            return StandaloneStation(station)

        identity = self._load_group(station.station_group_id)
        if identity is None:
            # 그룹 데이터 불일치 => 단독역으로 취급
            logger.warning(
                f"역 그룹을 찾을 수 없음: station_id={station.id}, "
                f"station_group_id={station.station_group_id}"
            )
            return StandaloneStation(station)
        return identity

    def expand_group(self, station_group_id: int) -> List[Station]:
        identity = self._load_group(station_group_id)
        if identity is None:
            raise StationGroupNotFoundException()
        return list(identity.members)

    def resolve_slug(self, prefecture_id: int, slug: str) -> Optional[StationIdentity]:
        """역 페이지 URL slug => 그룹 slug 우선, 없으면 그룹에 속하지 않은 단독역"""
        group = self.repository.find_station_group_by_slug(prefecture_id, slug)
        if group is not None:
            identity = self._load_group(group.id)
            if identity is not None:
                return identity

        station = self.repository.find_standalone_station_by_slug(prefecture_id, slug)
        if station is None:
            return None
        return StandaloneStation(station)

    def station_ids_for(self, identity: StationIdentity) -> List[int]:
        return identity.station_ids

    def _load_group(self, station_group_id: int) -> Optional[GroupedStation]:
        if station_group_id in self._groups:
            return self._groups[station_group_id]

        group = self.repository.find_station_group(station_group_id)
        if group is None:
            return None

        members = self.repository.find_stations_by_group(station_group_id)
        if not members:
            return None

        identity = GroupedStation(group=group, members=tuple(members))
        self._groups[station_group_id] = identity
        return identity
