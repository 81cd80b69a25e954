"""
점포-역 지정 REST API 엔드포인트
"""

from fastapi import APIRouter, Depends, Path
import logging

from janmap.api.deps import get_assignment_service
from janmap.models.requests import AutoAssignRequest, StationAssignmentRequest
from janmap.models.responses import ShopStationsResponse, StationAssignmentResponse
from janmap.services.station_assignment_service import StationAssignmentService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{shop_id}/stations", response_model=ShopStationsResponse)
def get_shop_stations(
    shop_id: int = Path(..., ge=1),
    service: StationAssignmentService = Depends(get_assignment_service),
):
    """
    점포에 지정된 역 정보 조회

    Returns:
        main_station (최근접 역), sub_stations (거리순), total_count
    """
    return service.get_assignment(shop_id)


@router.post("/{shop_id}/stations", response_model=StationAssignmentResponse)
def update_shop_stations(
    request: StationAssignmentRequest,
    shop_id: int = Path(..., ge=1),
    service: StationAssignmentService = Depends(get_assignment_service),
):
    """
    점포의 역 정보 갱신 (기존 정보는 전부 삭제 후 재등록)

    - **main_station_id**: 최근접 역 ID
    - **sub_station_ids**: 서브 역 ID 목록 (최대 5개, 메인과 같은 ID는 무시)

    Example:
        POST /v1/shops/12/stations
        {"main_station_id": 101, "sub_station_ids": [102, 205]}
    """
    logger.info(
        f"역 정보 갱신 요청: shop_id={shop_id}, main={request.main_station_id}, "
        f"subs={request.sub_station_ids}"
    )
    rows = service.assign_stations(
        shop_id, request.main_station_id, request.sub_station_ids
    )

    return {
        "message": "駅情報を更新しました",
        "stations_count": len(rows),
        "stations": service.get_assignment(shop_id),
    }


@router.post("/{shop_id}/stations/auto", response_model=StationAssignmentResponse)
def auto_assign_shop_stations(
    request: AutoAssignRequest,
    shop_id: int = Path(..., ge=1),
    service: StationAssignmentService = Depends(get_assignment_service),
):
    """점포 좌표에서 가까운 역을 자동 지정 (그룹 단위로 1건씩)"""
    rows = service.auto_assign(
        shop_id,
        max_distance_km=request.max_distance_km,
        max_sub_stations=request.max_sub_stations,
    )

    return {
        "message": "駅情報を自動設定しました",
        "stations_count": len(rows),
        "stations": service.get_assignment(shop_id),
    }
