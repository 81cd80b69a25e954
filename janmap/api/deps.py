"""
endpoint 의존성 주입

테스트에서는 app.dependency_overrides로 서비스 자체를 교체
"""

import logging
from functools import lru_cache

from fastapi import Depends

from janmap.db.cache import get_station_index
from janmap.db.redis_client import GeocodeCache, init_redis
from janmap.db.repository import StationRepository
from janmap.services.geocoding_client import GeocodingClient
from janmap.services.proximity_service import ProximityService
from janmap.services.station_assignment_service import StationAssignmentService

logger = logging.getLogger(__name__)


def get_repository() -> StationRepository:
    return StationRepository()


# lru_cache 사용하여 싱글톤 패턴과 유사한 효과
@lru_cache()
def get_geocode_cache() -> GeocodeCache:
    return init_redis()


@lru_cache()
def get_geocoding_client() -> GeocodingClient:
    return GeocodingClient(cache=get_geocode_cache())


def get_assignment_service(
    repository: StationRepository = Depends(get_repository),
) -> StationAssignmentService:
    return StationAssignmentService(repository, station_index=get_station_index())


def get_proximity_service(
    repository: StationRepository = Depends(get_repository),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
) -> ProximityService:
    return ProximityService(repository, get_station_index(), geocoder=geocoder)
