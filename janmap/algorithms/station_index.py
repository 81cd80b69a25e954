import logging
import math
from typing import Iterable, List, TYPE_CHECKING

# NNS => KD-TREE 사용하기
from scipy.spatial import KDTree
import numpy as np

from janmap.algorithms.distance_calculator import DistanceCalculator

if TYPE_CHECKING:
    from janmap.models.domain import Coordinate, Station

logger = logging.getLogger(__name__)


def _to_unit_xyz(lat: np.ndarray, lng: np.ndarray) -> np.ndarray:
    """위경도 -> 단위 구 위의 3차원 좌표 (직선거리가 대권거리와 단조 관계)"""
    lat_r = np.radians(lat)
    lng_r = np.radians(lng)
    return np.column_stack(
        (
            np.cos(lat_r) * np.cos(lng_r),
            np.cos(lat_r) * np.sin(lng_r),
            np.sin(lat_r),
        )
    )


class StationIndex:
    """
    역 좌표 공간 인덱스

    반경 검색의 사전 필터 역할만 함, 최종 거리 판정은 haversine으로 다시 수행
    """

    # 거리 반올림(소수점 3자리) 오차만큼 후보를 넉넉히 잡음
    MARGIN_KM = 0.001

    def __init__(self, stations: Iterable["Station"]):
        self.stations: List["Station"] = [
            s for s in stations if s.coordinate.is_valid
        ]
        self.kdtree = None

        if self.stations:
            lat = np.array([s.lat for s in self.stations], dtype=float)
            lng = np.array([s.lng for s in self.stations], dtype=float)
            self.kdtree = KDTree(_to_unit_xyz(lat, lng))

        logger.info(f"StationIndex 초기화 완료: {len(self.stations)}개 역")

    def __len__(self) -> int:
        return len(self.stations)

    def candidates_within(self, point: "Coordinate", radius_km: float) -> List["Station"]:
        """point에서 radius_km 이내일 수 있는 역 후보 (순서 보장 X)"""
        if self.kdtree is None or radius_km < 0:
            return []

        central_angle = (radius_km + self.MARGIN_KM) / DistanceCalculator.EARTH_RADIUS_KM
        if central_angle >= math.pi:
            return list(self.stations)

        chord = 2 * math.sin(central_angle / 2)
        query = _to_unit_xyz(np.array([point.lat]), np.array([point.lng]))[0]
        indices = self.kdtree.query_ball_point(query, r=chord)

        return [self.stations[i] for i in sorted(indices)]
