"""
도보 시간 / 정밀도 구분 테스트
"""

import pytest

from janmap.algorithms.walking import (
    Accuracy,
    accuracy_class,
    format_distance,
    format_walking_time,
    walking_minutes,
)


class TestWalkingMinutes:
    @pytest.mark.parametrize(
        "distance_km, expected",
        [
            (0.0, 0),
            (0.024, 0),  # 東京駅前 점포
            (0.1, 2),  # 1.5분 => 반올림
            (0.5, 8),  # 7.5분 => half-up
            (1.0, 15),
            (2.0, 30),
        ],
    )
    def test_walking_minutes(self, distance_km, expected):
        assert walking_minutes(distance_km) == expected

    def test_walking_minutes_monotonic(self):
        """거리가 늘면 도보 시간은 줄지 않음"""
        distances = [i * 0.013 for i in range(0, 400)]
        minutes = [walking_minutes(d) for d in distances]

        assert minutes == sorted(minutes)

    def test_walking_minutes_returns_int(self):
        assert isinstance(walking_minutes(0.37), int)


class TestAccuracyClass:
    @pytest.mark.parametrize(
        "distance_km, expected",
        [
            (0.0, Accuracy.HIGH),
            (0.1, Accuracy.HIGH),  # 경계값 포함
            (0.1001, Accuracy.MEDIUM),
            (0.5, Accuracy.MEDIUM),  # 경계값 포함
            (0.5001, Accuracy.LOW),
            (12.0, Accuracy.LOW),
        ],
    )
    def test_accuracy_boundaries(self, distance_km, expected):
        assert accuracy_class(distance_km) == expected

    def test_accuracy_value_is_string(self):
        assert Accuracy.MEDIUM.value == "medium"
        assert Accuracy("low") is Accuracy.LOW


class TestFormat:
    def test_format_distance_meters(self):
        assert format_distance(0.35) == "350m"
        assert format_distance(0.024) == "24m"

    def test_format_distance_kilometers(self):
        assert format_distance(1.234) == "1.2km"
        assert format_distance(1.0) == "1.0km"

    def test_format_walking_time(self):
        assert format_walking_time(0) == "0分"
        assert format_walking_time(12) == "12分"
