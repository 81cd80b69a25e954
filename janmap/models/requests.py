from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from janmap.core.config import MAX_SUB_STATIONS, NEARBY_SEARCH_CONFIG

# service별 requests 구조 정의


def _split_codes(value):
    """"A,B" 형식 문자열도 목록으로 허용"""
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return value


# 점포 역 정보 갱신
class StationAssignmentRequest(BaseModel):
    main_station_id: Optional[int] = Field(None, description="최근접 역 ID")
    sub_station_ids: List[int] = Field(
        default_factory=list,
        max_length=MAX_SUB_STATIONS,
        description=f"서브 역 ID 목록 (최대 {MAX_SUB_STATIONS}개)",
    )


# 점포 좌표 기준 역 자동 지정
class AutoAssignRequest(BaseModel):
    max_distance_km: float = Field(
        default=NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        ge=NEARBY_SEARCH_CONFIG["min_distance_km"],
        le=NEARBY_SEARCH_CONFIG["max_distance_km"],
        description="검색 반경 (km)",
    )
    max_sub_stations: int = Field(
        default=MAX_SUB_STATIONS, ge=0, le=MAX_SUB_STATIONS, description="서브 역 최대 개수"
    )


# 좌표 기준 주변 역
class NearbyStationsRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90, description="위도")
    lng: float = Field(..., ge=-180, le=180, description="경도")
    max_stations: int = Field(
        default=NEARBY_SEARCH_CONFIG["default_max_stations"],
        ge=1,
        le=NEARBY_SEARCH_CONFIG["max_stations_limit"],
        description="최대 건수",
    )
    max_distance: float = Field(
        default=NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        ge=NEARBY_SEARCH_CONFIG["min_distance_km"],
        le=NEARBY_SEARCH_CONFIG["max_distance_km"],
        description="검색 반경 (km)",
    )


# 주소 기준 주변 역
class NearbyByAddressRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=500, description="주소")
    max_stations: int = Field(
        default=NEARBY_SEARCH_CONFIG["default_max_stations"],
        ge=1,
        le=NEARBY_SEARCH_CONFIG["max_stations_limit"],
    )
    max_distance: float = Field(
        default=NEARBY_SEARCH_CONFIG["default_max_distance_km"],
        ge=NEARBY_SEARCH_CONFIG["min_distance_km"],
        le=NEARBY_SEARCH_CONFIG["max_distance_km"],
    )


# 역 주변 점포 검색 (필터 / 정렬 / 페이지)
class StationShopSearchRequest(BaseModel):
    max_distance_km: Optional[float] = Field(None, ge=0, description="역까지 최대 거리 (km)")
    has_three_player_free: bool = False
    has_four_player_free: bool = False
    has_set: bool = False
    auto_table: bool = False
    score_table: bool = False
    rules: List[str] = Field(default_factory=list, description="룰 코드 목록")
    features: List[str] = Field(default_factory=list, description="특징 코드 목록")
    sort_by: str = Field(
        default="distance_km",
        pattern="^(distance_km|walking_minutes|name|created_at|table_count)$",
    )
    sort_direction: str = Field(default="asc", pattern="^(asc|desc)$")
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=15, ge=1, le=100)

    @field_validator("rules", "features", mode="before")
    @classmethod
    def split_codes(cls, value):
        return _split_codes(value)
