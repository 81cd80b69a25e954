from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from janmap.algorithms.walking import Accuracy, walking_minutes, accuracy_class
from janmap.core.exceptions import InvalidLocationException, ValidationException

# domain 정의


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    @property
    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0

    def validate(self) -> "Coordinate":
        if not self.is_valid:
            raise InvalidLocationException(
                f"緯度は-90度から90度、経度は-180度から180度の間で指定してください: "
                f"({self.lat}, {self.lng})"
            )
        return self


@dataclass(frozen=True)
class Station:
    id: int
    name: str
    name_kana: str
    lat: float
    lng: float
    line_id: Optional[int] = None
    line_name: Optional[str] = None
    slug: Optional[str] = None
    prefecture_id: Optional[int] = None
    city_id: Optional[int] = None
    station_group_id: Optional[int] = None
    is_grouped: bool = False

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)

    @property
    def belongs_to_group(self) -> bool:
        # station_group_id만으로는 부족, is_grouped 플래그까지 확인
        return self.station_group_id is not None and self.is_grouped

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Station":
        return cls(
            id=row["id"],
            name=row["name"],
            name_kana=row.get("name_kana") or "",
            lat=float(row["latitude"]),
            lng=float(row["longitude"]),
            line_id=row.get("line_id"),
            line_name=row.get("line_name"),
            slug=row.get("slug"),
            prefecture_id=row.get("prefecture_id"),
            city_id=row.get("city_id"),
            station_group_id=row.get("station_group_id"),
            is_grouped=bool(row.get("is_grouped", False)),
        )


@dataclass(frozen=True)
class StationGroup:
    id: int
    name: str
    name_kana: str
    slug: Optional[str] = None
    prefecture_id: Optional[int] = None
    primary_city_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StationGroup":
        return cls(
            id=row["id"],
            name=row["name"],
            name_kana=row.get("name_kana") or "",
            slug=row.get("slug"),
            prefecture_id=row.get("prefecture_id"),
            primary_city_id=row.get("primary_city_id"),
        )


@dataclass(frozen=True)
class Shop:
    id: int
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_verified: bool = False

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate(float(self.lat), float(self.lng))

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Shop":
        return cls(
            id=row["id"],
            name=row["name"],
            lat=row.get("lat"),
            lng=row.get("lng"),
            is_verified=bool(row.get("is_verified", False)),
        )


@dataclass(frozen=True)
class ShopStation:
    """점포-역 연결 (거리/도보시간/정밀도 포함)"""

    shop_id: int
    station_id: int
    station_group_id: Optional[int]
    distance_km: float
    is_nearest: bool
    walking_minutes: int
    accuracy: Accuracy

    @classmethod
    def build(
        cls,
        shop_id: int,
        station: Station,
        distance_km: float,
        is_nearest: bool,
        walking_minutes_override: Optional[int] = None,
        accuracy_override: Optional[Accuracy] = None,
    ) -> "ShopStation":
        """
        ShopStation 생성은 반드시 여기를 통해서

        - station_group_id는 역 정보에서 파생 (직접 지정 불가)
        - walking_minutes / accuracy는 명시되지 않으면 distance_km에서 파생
        """
        if distance_km < 0:
            raise ValidationException(f"distance_km must be >= 0: {distance_km}")

        return cls(
            shop_id=shop_id,
            station_id=station.id,
            station_group_id=station.station_group_id,
            distance_km=distance_km,
            is_nearest=is_nearest,
            walking_minutes=(
                walking_minutes_override
                if walking_minutes_override is not None
                else walking_minutes(distance_km)
            ),
            accuracy=(
                accuracy_override
                if accuracy_override is not None
                else accuracy_class(distance_km)
            ),
        )

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ShopStation":
        distance_km = float(row["distance_km"])
        minutes = row.get("walking_minutes")
        accuracy = row.get("accuracy")
        return cls(
            shop_id=row["shop_id"],
            station_id=row["station_id"],
            station_group_id=row.get("station_group_id"),
            distance_km=distance_km,
            is_nearest=bool(row["is_nearest"]),
            walking_minutes=int(minutes) if minutes is not None else walking_minutes(distance_km),
            accuracy=Accuracy(accuracy) if accuracy else accuracy_class(distance_km),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "shop_id": self.shop_id,
            "station_id": self.station_id,
            "station_group_id": self.station_group_id,
            "distance_km": self.distance_km,
            "is_nearest": self.is_nearest,
            "walking_minutes": self.walking_minutes,
            "accuracy": self.accuracy.value,
        }


# 역 / 역 그룹 tagged union
# is_grouped 재확인 없이 호출부에서 동일하게 다룰 수 있도록


@dataclass(frozen=True)
class StandaloneStation:
    station: Station

    kind: str = field(default="station", init=False)

    @property
    def key(self) -> Tuple[str, int]:
        return ("station", self.station.id)

    @property
    def id(self) -> int:
        return self.station.id

    @property
    def display_name(self) -> str:
        return self.station.name

    @property
    def name_kana(self) -> str:
        return self.station.name_kana

    @property
    def slug(self) -> Optional[str]:
        return self.station.slug

    @property
    def members(self) -> Tuple[Station, ...]:
        return (self.station,)

    @property
    def station_ids(self) -> List[int]:
        return [self.station.id]

    @property
    def representative(self) -> Station:
        return self.station


@dataclass(frozen=True)
class GroupedStation:
    group: StationGroup
    members: Tuple[Station, ...]

    kind: str = field(default="group", init=False)

    @property
    def key(self) -> Tuple[str, int]:
        return ("group", self.group.id)

    @property
    def id(self) -> int:
        return self.group.id

    @property
    def display_name(self) -> str:
        return self.group.name

    @property
    def name_kana(self) -> str:
        return self.group.name_kana

    @property
    def slug(self) -> Optional[str]:
        return self.group.slug

    @property
    def station_ids(self) -> List[int]:
        return [s.id for s in self.members]

    @property
    def representative(self) -> Optional[Station]:
        """그룹 좌표 대표역 = 좌표가 유효한 첫 번째 멤버"""
        for station in self.members:
            if station.coordinate.is_valid:
                return station
        return None


StationIdentity = Union[StandaloneStation, GroupedStation]
