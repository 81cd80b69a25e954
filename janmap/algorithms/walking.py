"""
도보 시간 추정 및 거리 정밀도 구분
"""

import math
from enum import Enum

from janmap.core.config import WALKING_MINUTES_PER_KM, ACCURACY_THRESHOLDS_KM


class Accuracy(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def walking_minutes(distance_km: float) -> int:
    """
    도보 시간(분) 추정 - 4km/h 기준

    반올림은 half-up (0.5 -> 1), distance_km >= 0 전제
    """
    return int(math.floor(distance_km * WALKING_MINUTES_PER_KM + 0.5))


def accuracy_class(distance_km: float) -> Accuracy:
    """거리 크기만으로 정밀도 구분 (측정 방법과 무관)"""
    if distance_km <= ACCURACY_THRESHOLDS_KM["high"]:
        return Accuracy.HIGH
    if distance_km <= ACCURACY_THRESHOLDS_KM["medium"]:
        return Accuracy.MEDIUM
    return Accuracy.LOW


def format_distance(distance_km: float) -> str:
    """표시용 거리 문자열 (1km 미만은 m 단위)"""
    if distance_km < 1:
        return f"{int(math.floor(distance_km * 1000 + 0.5))}m"
    return f"{round(distance_km, 1)}km"


def format_walking_time(minutes: int) -> str:
    return f"{minutes}分"
