"""
singleton caching 전략 사용
Thread Lock으로 서버 시작 시 한 번만 로드하여 메모리에 유지
=> 역 좌표는 시드 후 읽기 전용인 정적 데이터
=> 주변 역 검색의 KD-Tree 인덱스도 여기서 한 번만 생성
"""

import logging
from typing import Callable, Dict, List, Optional
from threading import Lock

from janmap.algorithms.station_index import StationIndex
from janmap.models.domain import Station

logger = logging.getLogger(__name__)

_cache_lock = Lock()
_cache_init = False

# cache data
_station_index: Optional[StationIndex] = None


def _load_station_rows() -> List[Dict]:
    from janmap.db.database import get_all_stations

    return get_all_stations()


def initialize_cache(loader: Callable[[], List[Dict]] = None):
    """
    서버 시작 시 역 데이터를 메모리에 로드하고 공간 인덱스 생성
    Thread-safe singleton pattern

    Args:
        loader: 역 row 목록을 반환하는 함수 (기본값: DB 조회)
    """
    global _cache_init, _station_index

    with _cache_lock:
        if _cache_init:
            logger.info("캐시가 이미 초기화되었습니다.")
            return

        logger.info("역 데이터 캐시 초기화 시작")

        rows = (loader or _load_station_rows)()
        stations = [Station.from_row(row) for row in rows]
        logger.info(f"✓ 역 데이터 로드 완료: {len(stations)}개")

        _station_index = StationIndex(stations)
        logger.info(f"✓ 역 공간 인덱스 생성 완료: {len(_station_index)}개")

        _cache_init = True
        logger.info("역 데이터 캐시 초기화 완료")


def get_station_index() -> StationIndex:
    if not _cache_init:
        initialize_cache()
    return _station_index


def clear_cache():
    global _cache_init, _station_index

    with _cache_lock:
        _station_index = None
        _cache_init = False

    logger.info("역 데이터 캐시 초기화됨")
