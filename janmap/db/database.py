import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor, execute_values
from typing import Any, Dict, List, Optional, Sequence
from contextlib import contextmanager
from datetime import datetime
import logging

from janmap.core.config import settings

logger = logging.getLogger(__name__)

_connection_pool = None

# pg_advisory_xact_lock(bigint) 키 = (namespace << 48) | shop_id
# => 상위 비트는 shop_stations 갱신 전용 namespace, 하위 48비트는 점포 ID (BIGSERIAL)
SHOP_STATION_LOCK_NAMESPACE = 7301
SHOP_STATION_LOCK_ID_BITS = 48

STATION_SELECT = """
SELECT
    geo_stations.id,
    geo_stations.name,
    geo_stations.name_kana,
    geo_stations.slug,
    geo_stations.latitude,
    geo_stations.longitude,
    geo_stations.prefecture_id,
    geo_stations.city_id,
    geo_stations.station_group_id,
    geo_stations.is_grouped,
    geo_station_lines.id AS line_id,
    geo_station_lines.name AS line_name
FROM geo_stations
JOIN geo_station_lines ON geo_stations.station_line_id = geo_station_lines.id
"""


def initialize_pool():
    global _connection_pool
    if _connection_pool is None:
        _connection_pool = pool.ThreadedConnectionPool(
            minconn=settings.DB_POOL_MIN,
            maxconn=settings.DB_POOL_MAX,
            **settings.DB_CONFIG,
        )
        logger.info("Database connection pool initialized")


def close_pool():
    global _connection_pool
    if _connection_pool:
        _connection_pool.closeall()
        _connection_pool = None
        logger.info("Database connection pool closed")


@contextmanager
def get_db_connection():
    if _connection_pool is None:
        raise RuntimeError("Connection pool이 초기화되지 않았습니다")

    connection = None
    try:
        connection = _connection_pool.getconn()
        yield connection
    except psycopg2.Error as e:
        logger.error(f"Database error: {e}")
        if connection:
            connection.rollback()
        raise
    finally:
        if connection:
            _connection_pool.putconn(connection)


@contextmanager
def get_db_cursor(cursor_factory=RealDictCursor):
    """cursor 1개 = transaction 1개 (정상 종료 시 commit, 예외 시 rollback)"""
    with get_db_connection() as connection:
        cursor = connection.cursor(cursor_factory=cursor_factory)
        try:
            yield cursor
            connection.commit()
        except Exception as e:
            connection.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            cursor.close()


# ========== 역 / 역 그룹 ==========


def get_all_stations() -> List[Dict]:
    query = STATION_SELECT + """
    WHERE geo_stations.latitude IS NOT NULL
      AND geo_stations.longitude IS NOT NULL
    ORDER BY geo_stations.id
    """

    with get_db_cursor() as cursor:
        cursor.execute(query)
        return cursor.fetchall()


def get_station_by_id(station_id: int) -> Optional[Dict]:
    query = STATION_SELECT + """
    WHERE geo_stations.id = %(station_id)s
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"station_id": station_id})
        return cursor.fetchone()


def get_stations_by_ids(station_ids: Sequence[int]) -> List[Dict]:
    if not station_ids:
        return []

    query = STATION_SELECT + """
    WHERE geo_stations.id = ANY(%(station_ids)s)
    ORDER BY geo_stations.id
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"station_ids": list(station_ids)})
        return cursor.fetchall()


def get_stations_by_group(station_group_id: int) -> List[Dict]:
    query = STATION_SELECT + """
    WHERE geo_stations.station_group_id = %(station_group_id)s
    ORDER BY geo_stations.id
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"station_group_id": station_group_id})
        return cursor.fetchall()


def get_station_group_by_id(station_group_id: int) -> Optional[Dict]:
    query = """
    SELECT id, name, name_kana, slug, prefecture_id, primary_city_id
    FROM geo_station_groups
    WHERE id = %(station_group_id)s
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"station_group_id": station_group_id})
        return cursor.fetchone()


def get_station_group_by_slug(prefecture_id: int, slug: str) -> Optional[Dict]:
    query = """
    SELECT id, name, name_kana, slug, prefecture_id, primary_city_id
    FROM geo_station_groups
    WHERE slug = %(slug)s AND prefecture_id = %(prefecture_id)s
    LIMIT 1
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"slug": slug, "prefecture_id": prefecture_id})
        return cursor.fetchone()


def get_standalone_station_by_slug(prefecture_id: int, slug: str) -> Optional[Dict]:
    """그룹에 속하지 않은 단독역만 slug로 조회"""
    query = STATION_SELECT + """
    WHERE geo_stations.slug = %(slug)s
      AND geo_stations.prefecture_id = %(prefecture_id)s
      AND geo_stations.station_group_id IS NULL
    LIMIT 1
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"slug": slug, "prefecture_id": prefecture_id})
        return cursor.fetchone()


def search_stations_by_keyword(keyword: str) -> List[Dict]:
    """
    역 이름 / 읽기(kana) / 역 그룹 이름 부분 일치 검색

    Example:
        >>> search_stations_by_keyword("新宿")
        [{"id": 101, "name": "新宿", "line_name": "JR山手線", ...}, ...]
    """
    keyword = keyword.strip()

    query = STATION_SELECT + """
    LEFT JOIN geo_station_groups ON geo_stations.station_group_id = geo_station_groups.id
    WHERE geo_stations.name LIKE %(pattern)s
       OR geo_stations.name_kana LIKE %(pattern)s
       OR geo_station_groups.name LIKE %(pattern)s
    ORDER BY
        CASE WHEN geo_stations.name = %(keyword)s THEN 1 ELSE 2 END,
        LENGTH(geo_stations.name) ASC,
        geo_stations.id ASC
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"pattern": f"%{keyword}%", "keyword": keyword})
        return cursor.fetchall()


# ========== 지역 ==========


def get_prefecture_by_slug(slug: str) -> Optional[Dict]:
    query = """
    SELECT id, name, slug
    FROM geo_prefectures
    WHERE slug = %(slug)s
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"slug": slug})
        return cursor.fetchone()


def get_city_by_id(city_id: int) -> Optional[Dict]:
    query = """
    SELECT id, name, slug
    FROM geo_cities
    WHERE id = %(city_id)s
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"city_id": city_id})
        return cursor.fetchone()


# ========== 점포 / 점포-역 ==========


def get_shop_by_id(shop_id: int) -> Optional[Dict]:
    query = """
    SELECT id, name, lat, lng, is_verified
    FROM shops
    WHERE id = %(shop_id)s
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"shop_id": shop_id})
        return cursor.fetchone()


def get_shop_station_rows(shop_id: int) -> List[Dict]:
    """점포의 역 정보 (최근접 우선, 거리 오름차순)"""
    query = """
    SELECT
        shop_stations.shop_id,
        shop_stations.station_id,
        shop_stations.station_group_id,
        shop_stations.distance_km,
        shop_stations.is_nearest,
        shop_stations.walking_minutes,
        shop_stations.accuracy,
        geo_stations.name AS station_name,
        geo_stations.name_kana,
        geo_stations.is_grouped,
        geo_station_lines.name AS line_name,
        geo_station_groups.name AS station_group_name
    FROM shop_stations
    JOIN geo_stations ON shop_stations.station_id = geo_stations.id
    JOIN geo_station_lines ON geo_stations.station_line_id = geo_station_lines.id
    LEFT JOIN geo_station_groups ON shop_stations.station_group_id = geo_station_groups.id
    WHERE shop_stations.shop_id = %(shop_id)s
    ORDER BY shop_stations.is_nearest DESC, shop_stations.distance_km ASC
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"shop_id": shop_id})
        return cursor.fetchall()


def get_nearest_station_rows(shop_ids: Sequence[int]) -> List[Dict]:
    """점포별 최근접 역 (is_nearest = TRUE) 일괄 조회"""
    if not shop_ids:
        return []

    query = """
    SELECT
        shop_stations.shop_id,
        shop_stations.distance_km,
        shop_stations.walking_minutes,
        geo_stations.id AS station_id,
        geo_stations.name AS station_name,
        geo_stations.slug AS station_slug,
        geo_stations.is_grouped,
        geo_station_groups.id AS station_group_id,
        geo_station_groups.name AS station_group_name,
        geo_station_groups.slug AS station_group_slug,
        geo_station_lines.name AS line_name
    FROM shop_stations
    JOIN geo_stations ON shop_stations.station_id = geo_stations.id
    LEFT JOIN geo_station_groups ON geo_stations.station_group_id = geo_station_groups.id
    JOIN geo_station_lines ON geo_stations.station_line_id = geo_station_lines.id
    WHERE shop_stations.shop_id = ANY(%(shop_ids)s)
      AND shop_stations.is_nearest = TRUE
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"shop_ids": list(shop_ids)})
        return cursor.fetchall()


def get_verified_shop_links(station_ids: Sequence[int]) -> List[Dict]:
    """역 ID별 공개(verified) 점포 ID 목록 => (station_id, shop_id) 쌍"""
    if not station_ids:
        return []

    query = """
    SELECT DISTINCT shop_stations.station_id, shop_stations.shop_id
    FROM shop_stations
    JOIN shops ON shop_stations.shop_id = shops.id
    WHERE shop_stations.station_id = ANY(%(station_ids)s)
      AND shops.is_verified = TRUE
    """

    with get_db_cursor() as cursor:
        cursor.execute(query, {"station_ids": list(station_ids)})
        return cursor.fetchall()


def fetch_all(query: str, params: Dict[str, Any]) -> List[Dict]:
    with get_db_cursor() as cursor:
        cursor.execute(query, params)
        return cursor.fetchall()


def fetch_scalar(query: str, params: Dict[str, Any]) -> Any:
    with get_db_cursor() as cursor:
        cursor.execute(query, params)
        row = cursor.fetchone()
        if not row:
            return None
        return next(iter(row.values()))


# ========== 점포-역 갱신 (transaction 내부에서 호출) ==========


def shop_station_lock_key(shop_id: int) -> int:
    if not 0 < shop_id < (1 << SHOP_STATION_LOCK_ID_BITS):
        raise ValueError(f"advisory lock 키 범위를 벗어난 shop_id: {shop_id}")
    return (SHOP_STATION_LOCK_NAMESPACE << SHOP_STATION_LOCK_ID_BITS) | shop_id


def lock_shop_stations(cursor, shop_id: int) -> None:
    """같은 점포의 역 갱신을 직렬화 (transaction 종료 시 자동 해제)"""
    cursor.execute(
        "SELECT pg_advisory_xact_lock(%(lock_key)s::bigint)",
        {"lock_key": shop_station_lock_key(shop_id)},
    )


def delete_shop_stations(cursor, shop_id: int) -> int:
    cursor.execute(
        "DELETE FROM shop_stations WHERE shop_id = %(shop_id)s",
        {"shop_id": shop_id},
    )
    return cursor.rowcount


def insert_shop_stations(cursor, rows: List[Dict], now: datetime) -> int:
    if not rows:
        return 0

    values = [
        (
            row["shop_id"],
            row["station_id"],
            row["station_group_id"],
            row["distance_km"],
            row["is_nearest"],
            row["walking_minutes"],
            row["accuracy"],
            now,
            now,
        )
        for row in rows
    ]

    execute_values(
        cursor,
        """
        INSERT INTO shop_stations (
            shop_id, station_id, station_group_id, distance_km, is_nearest,
            walking_minutes, accuracy, created_at, updated_at
        ) VALUES %s
        """,
        values,
    )
    return len(values)
