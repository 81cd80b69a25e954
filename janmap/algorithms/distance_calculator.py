import math
from typing import Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from janmap.models.domain import Coordinate


class DistanceCalculator:
    EARTH_RADIUS_KM = 6371.0
    PRECISION = 3  # 소수점 3자리 => 미터 단위

    def calculate_distance(
        self, lat1: float, lon1: float, lat2: float, lon2: float
    ) -> float:
        """두 좌표 간 거리 계산(km)"""
        return self.haversine((lat1, lon1), (lat2, lon2))

    def haversine(
        self, coord1: Tuple[float, float], coord2: Tuple[float, float]
    ) -> float:
        """하버사인 공식으로 지구의 곡률 고려하여 두 좌표 간 거리 계산"""
        lat1, lon1 = coord1
        lat2, lon2 = coord2

        # radian convertion
        lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

        # haversine formula
        dlat = lat2 - lat1
        dlon = lon2 - lon1
        h = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        # 부동소수 오차로 h가 [0, 1]을 살짝 벗어나는 경우 보정
        h = min(1.0, max(0.0, h))
        c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

        return round(self.EARTH_RADIUS_KM * c, self.PRECISION)


_calculator = DistanceCalculator()


def haversine_km(a: "Coordinate", b: "Coordinate") -> float:
    """Coordinate 2개 간 거리(km, 소수점 3자리)"""
    return _calculator.haversine((a.lat, a.lng), (b.lat, b.lng))
