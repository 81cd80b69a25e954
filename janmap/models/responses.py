from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

# service 별 응답 구조 정의


class StationGroupRef(BaseModel):
    id: int
    name: str


# 점포에 지정된 역 1건
class StationSummary(BaseModel):
    id: int = Field(..., description="역 ID")
    name: str = Field(..., description="역 이름")
    name_kana: str = Field("", description="역 이름 (kana)")
    line_name: Optional[str] = Field(None, description="노선 이름")
    distance_km: float = Field(..., description="점포-역 거리 (km)")
    walking_minutes: int = Field(..., description="도보 시간 (분)")
    distance_text: str = Field("", description="표시용 거리")
    walking_time_text: str = Field("", description="표시용 도보 시간")
    is_nearest: bool = Field(..., description="최근접 역 여부")
    station_group: Optional[StationGroupRef] = Field(None, description="소속 역 그룹")


class ShopStationsResponse(BaseModel):
    main_station: Optional[StationSummary] = None
    sub_stations: List[StationSummary] = Field(default_factory=list)
    total_count: int = 0


class StationAssignmentResponse(BaseModel):
    message: str
    stations_count: int = Field(..., description="저장된 역 수")
    stations: ShopStationsResponse


class Coordinates(BaseModel):
    lat: float
    lng: float


class LineInfo(BaseModel):
    station_id: int
    line_id: Optional[int] = None
    line_name: Optional[str] = None


# 주변 역 1건 (그룹이면 그룹 단위)
class NearbyStationItem(BaseModel):
    type: str = Field(..., description="group / station")
    id: int = Field(..., description="그룹 ID 또는 역 ID")
    station_group_id: Optional[int] = None
    station_id: int = Field(..., description="가장 가까운 멤버 역 ID")
    name: str
    name_kana: str = ""
    slug: Optional[str] = None
    line_name: Optional[str] = None
    distance_km: float
    walking_minutes: int
    distance_text: str = Field("", description="표시용 거리 (例: 350m, 1.2km)")
    walking_time_text: str = Field("", description="표시용 도보 시간 (例: 5分)")
    shop_count: Optional[int] = None
    coordinates: Coordinates
    lines: List[LineInfo] = Field(default_factory=list)
    prefecture_slug: Optional[str] = None


class NearbyStationsResponse(BaseModel):
    count: int
    search_location: Optional[Coordinates] = Field(None, description="검색 중심 좌표")
    results: List[NearbyStationItem] = Field(default_factory=list)


class CurrentStation(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None


class StationNearbyResponse(BaseModel):
    current_station: CurrentStation
    nearby_stations: List[NearbyStationItem] = Field(default_factory=list)
    total: int


class PlaceRef(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None


class StationDetailResponse(BaseModel):
    type: str
    id: int
    name: str
    name_kana: str = ""
    slug: Optional[str] = None
    prefecture: PlaceRef
    city: Optional[PlaceRef] = None
    lines: List[LineInfo] = Field(default_factory=list)
    shop_count: int


# 역 주변 점포 목록 (페이지)
class StationShopsResponse(BaseModel):
    data: List[Dict[str, Any]] = Field(default_factory=list, description="점포 목록")
    current_page: int
    last_page: int
    per_page: int
    total: int


# 역 검색 응답 (자동완성)
class StationSearchResponse(BaseModel):
    keyword: str = Field(..., description="검색 키워드")
    count: int = Field(..., description="검색 결과 수")
    results: List[Dict[str, Any]] = Field(default_factory=list, description="역 정보 리스트")


# 에러 응답
class ErrorResponse(BaseModel):
    message: str = Field(..., description="에러 메시지")
    code: Optional[str] = Field(None, description="에러 코드")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="요청 검증 실패 상세 (loc, msg)")
