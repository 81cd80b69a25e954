"""
역 검색 / 주변 역 / 역 주변 점포 REST API 엔드포인트
"""

from fastapi import APIRouter, Depends, Query
import logging

from janmap.api.deps import get_proximity_service
from janmap.core.config import NEARBY_SEARCH_CONFIG
from janmap.db.shop_filters import ShopSearchFilters
from janmap.models.domain import Coordinate
from janmap.models.requests import (
    NearbyByAddressRequest,
    NearbyStationsRequest,
    StationShopSearchRequest,
)
from janmap.models.responses import (
    NearbyStationsResponse,
    StationDetailResponse,
    StationNearbyResponse,
    StationSearchResponse,
    StationShopsResponse,
)
from janmap.services.proximity_service import ProximityService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/nearby", response_model=NearbyStationsResponse)
def get_nearby_stations(
    request: NearbyStationsRequest,
    service: ProximityService = Depends(get_proximity_service),
):
    """
    좌표 기준 주변 역 (가까운 순, 점포가 있는 역만)

    - **lat / lng**: 검색 중심 좌표
    - **max_stations**: 최대 건수 (1-50, 기본값 10)
    - **max_distance**: 검색 반경 km (0.1-10, 기본값 3.0)

    Example:
        POST /v1/stations/nearby
        {"lat": 35.6896, "lng": 139.7006, "max_stations": 5}
    """
    point = Coordinate(request.lat, request.lng)
    results = service.nearby_stations(
        point,
        max_distance_km=request.max_distance,
        max_results=request.max_stations,
    )

    return {
        "count": len(results),
        "search_location": {"lat": point.lat, "lng": point.lng},
        "results": [r.to_dict() for r in results],
    }


@router.post("/nearby-by-address", response_model=NearbyStationsResponse)
def get_nearby_stations_by_address(
    request: NearbyByAddressRequest,
    service: ProximityService = Depends(get_proximity_service),
):
    """주소를 지오코딩한 좌표 기준 주변 역"""
    logger.info(f"주소 기준 주변 역 검색: address={request.address[:50]}")
    point, results = service.nearby_stations_by_address(
        request.address,
        max_distance_km=request.max_distance,
        max_results=request.max_stations,
    )

    return {
        "count": len(results),
        "search_location": {"lat": point.lat, "lng": point.lng},
        "results": [r.to_dict() for r in results],
    }


@router.get("/search", response_model=StationSearchResponse)
def search_stations(
    keyword: str = Query(..., description="검색 키워드", min_length=1, max_length=100),
    limit: int = Query(20, ge=1, le=100, description="최대 결과 수"),
    service: ProximityService = Depends(get_proximity_service),
):
    """
    역 검색 (자동완성용, 역 그룹은 1건으로)

    Example:
        GET /v1/stations/search?keyword=新宿&limit=5
    """
    results = service.search_stations(keyword, limit)
    return {"keyword": keyword, "count": len(results), "results": results}


@router.get("/{prefecture_slug}/{station_slug}", response_model=StationDetailResponse)
def get_station_detail(
    prefecture_slug: str,
    station_slug: str,
    service: ProximityService = Depends(get_proximity_service),
):
    """역 상세 (역 그룹 / 단독역 공통)"""
    return service.station_detail(prefecture_slug, station_slug)


@router.get("/{prefecture_slug}/{station_slug}/nearby", response_model=StationNearbyResponse)
def get_station_nearby(
    prefecture_slug: str,
    station_slug: str,
    max_distance_km: float = Query(
        NEARBY_SEARCH_CONFIG["station_page_max_distance_km"],
        ge=NEARBY_SEARCH_CONFIG["min_distance_km"],
        le=NEARBY_SEARCH_CONFIG["max_distance_km"],
    ),
    limit: int = Query(
        NEARBY_SEARCH_CONFIG["station_page_limit"],
        ge=1,
        le=NEARBY_SEARCH_CONFIG["max_stations_limit"],
    ),
    service: ProximityService = Depends(get_proximity_service),
):
    """역 페이지의 주변 역 (같은 都道府県, 점포가 있는 역만)"""
    return service.nearby_stations_of_station(
        prefecture_slug, station_slug, max_distance_km=max_distance_km, limit=limit
    )


@router.post("/{prefecture_slug}/{station_slug}/shops", response_model=StationShopsResponse)
def get_station_shops(
    prefecture_slug: str,
    station_slug: str,
    request: StationShopSearchRequest,
    service: ProximityService = Depends(get_proximity_service),
):
    """
    역 주변 점포 목록 (역 그룹이면 멤버 역 전체 기준)

    - 영업 형태(has_three_player_free / has_four_player_free / has_set)는 OR
    - auto_table / score_table / rules / features는 AND (toggle 룰은 그룹 내 OR)
    """
    filters = ShopSearchFilters(**request.model_dump())
    return service.shops_near_station(prefecture_slug, station_slug, filters)
