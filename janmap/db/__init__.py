"""
데이터베이스 연결, 역 데이터 캐시, 지오코딩 캐시
"""

from janmap.db.database import (
    initialize_pool,
    close_pool,
    get_db_connection,
    get_db_cursor,
)
from janmap.db.redis_client import GeocodeCache, init_redis
from janmap.db.repository import StationRepository
from janmap.db.shop_filters import ShopSearchFilters

__all__ = [
    "initialize_pool",
    "close_pool",
    "get_db_connection",
    "get_db_cursor",
    "GeocodeCache",
    "init_redis",
    "StationRepository",
    "ShopSearchFilters",
]
