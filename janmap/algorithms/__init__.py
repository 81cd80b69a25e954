"""
거리 계산, 도보 시간 추정, 역 공간 인덱스
"""

from janmap.algorithms.distance_calculator import DistanceCalculator, haversine_km
from janmap.algorithms.walking import (
    Accuracy,
    walking_minutes,
    accuracy_class,
    format_distance,
    format_walking_time,
)
from janmap.algorithms.station_index import StationIndex

__all__ = [
    "DistanceCalculator",
    "haversine_km",
    "Accuracy",
    "walking_minutes",
    "accuracy_class",
    "format_distance",
    "format_walking_time",
    "StationIndex",
]
