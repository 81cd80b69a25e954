"""
역 주변 점포 검색 SQL 조립

필터 규칙
- 영업 형태(3인 프리 / 4인 프리 / 세트): OR
- 자동탁 / 점수표시탁: AND
- 룰: toggle 그룹 내 OR, 그룹 간 AND / checkbox 룰은 개별 AND
- 특징: 전부 AND
- 정의되지 않은 룰 / 특징 코드는 무시
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from janmap.core.config import (
    BUSINESS_TYPES,
    FEATURE_CATEGORIES,
    RULE_GROUPS,
    SHOP_SORT_COLUMNS,
)
from janmap.core.exceptions import ValidationException

logger = logging.getLogger(__name__)


@dataclass
class ShopSearchFilters:
    max_distance_km: Optional[float] = None
    has_three_player_free: bool = False
    has_four_player_free: bool = False
    has_set: bool = False
    auto_table: bool = False
    score_table: bool = False
    rules: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    sort_by: str = "distance_km"
    sort_direction: str = "asc"
    page: int = 1
    per_page: int = 15

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def _exists(table: str, condition: str = "") -> str:
    sql = f"EXISTS (SELECT 1 FROM {table} WHERE {table}.shop_id = shops.id"
    if condition:
        sql += f" AND {condition}"
    return sql + ")"


def _business_type_clause(filters: ShopSearchFilters, params: Dict[str, Any]) -> str:
    conditions = []
    for flag, game_format in BUSINESS_TYPES.items():
        if not getattr(filters, flag):
            continue
        if game_format == "SET":
            conditions.append(_exists("shop_sets"))
        else:
            param = f"free_{game_format.lower()}"
            params[param] = game_format
            conditions.append(_exists("shop_frees", f"shop_frees.game_format = %({param})s"))

    if not conditions:
        return ""
    return "(" + " OR ".join(conditions) + ")"


def _rule_clauses(rules: Sequence[str], params: Dict[str, Any]) -> List[str]:
    clauses = []

    # toggle: 그룹별로 모아서 ANY(...) 하나로 => 그룹 내 OR
    for group_key, group_rules in RULE_GROUPS["toggle"].items():
        selected = [r for r in group_rules if r in rules]
        if selected:
            param = f"rules_{group_key}"
            params[param] = selected
            clauses.append(_exists("shop_rules", f"shop_rules.rule = ANY(%({param})s)"))

    checkbox_rules = [
        rule for group_rules in RULE_GROUPS["checkbox"].values() for rule in group_rules
    ]
    for i, rule in enumerate(r for r in rules if r in checkbox_rules):
        param = f"rule_checkbox_{i}"
        params[param] = rule
        clauses.append(_exists("shop_rules", f"shop_rules.rule = %({param})s"))

    return clauses


def _feature_clauses(features: Sequence[str], params: Dict[str, Any]) -> List[str]:
    known = [f for category in FEATURE_CATEGORIES.values() for f in category]
    clauses = []
    for i, feature in enumerate(f for f in features if f in known):
        param = f"feature_{i}"
        params[param] = feature
        clauses.append(_exists("shop_features", f"shop_features.feature = %({param})s"))
    return clauses


def build_filter_clauses(filters: ShopSearchFilters) -> Tuple[List[str], Dict[str, Any]]:
    """shops 테이블 기준 WHERE 조건 목록과 바인딩 파라미터"""
    params: Dict[str, Any] = {}
    clauses = ["shops.is_verified = TRUE"]

    business = _business_type_clause(filters, params)
    if business:
        clauses.append(business)

    if filters.auto_table:
        clauses.append("shops.auto_table_count > 0")
    if filters.score_table:
        clauses.append("shops.score_table_count > 0")

    clauses.extend(_rule_clauses(filters.rules, params))
    clauses.extend(_feature_clauses(filters.features, params))

    return clauses, params


def order_by_clause(filters: ShopSearchFilters) -> str:
    column = SHOP_SORT_COLUMNS.get(filters.sort_by)
    if column is None:
        raise ValidationException(f"並び替え項目が不正です: {filters.sort_by}")

    direction = (filters.sort_direction or "asc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationException(f"並び順が不正です: {filters.sort_direction}")

    # 같은 값끼리는 점포 ID 순으로 고정 => 페이지 간 중복/누락 방지
    return f"{column} {direction.upper()}, shops.id ASC"


def build_station_shop_query(
    station_ids: Sequence[int], filters: ShopSearchFilters
) -> Tuple[str, str, Dict[str, Any]]:
    """
    역 ID 목록(그룹이면 멤버 전체)에 연결된 점포 검색 쿼리

    점포가 여러 멤버 역에 연결돼 있어도 1행 => 가장 가까운 연결(nearest_link)만 사용

    Returns:
        (select_sql, count_sql, params)
    """
    clauses, params = build_filter_clauses(filters)
    params["station_ids"] = list(station_ids)

    link_condition = "shop_stations.shop_id = shops.id AND shop_stations.station_id = ANY(%(station_ids)s)"
    if filters.max_distance_km is not None:
        params["max_distance_km"] = filters.max_distance_km
        link_condition += " AND shop_stations.distance_km <= %(max_distance_km)s"

    where_sql = " AND ".join(clauses)

    select_sql = f"""
    SELECT
        shops.id,
        shops.name,
        shops.description,
        shops.phone,
        shops.website_url,
        shops.table_count,
        shops.score_table_count,
        shops.auto_table_count,
        shops.lat,
        shops.lng,
        shops.address_pref,
        shops.address_city,
        shops.address_town,
        shops.address_street,
        shops.address_building,
        shops.created_at,
        geo_prefectures.name AS prefecture_name,
        geo_prefectures.slug AS prefecture_slug,
        geo_cities.name AS city_name,
        geo_cities.slug AS city_slug,
        nearest_link.distance_km,
        nearest_link.walking_minutes,
        {_exists("shop_frees", "shop_frees.game_format = 'THREE_PLAYER'")} AS has_three_player_free,
        {_exists("shop_frees", "shop_frees.game_format = 'FOUR_PLAYER'")} AS has_four_player_free,
        {_exists("shop_sets")} AS has_set
    FROM shops
    JOIN LATERAL (
        SELECT shop_stations.distance_km, shop_stations.walking_minutes
        FROM shop_stations
        WHERE {link_condition}
        ORDER BY shop_stations.distance_km ASC
        LIMIT 1
    ) AS nearest_link ON TRUE
    LEFT JOIN geo_prefectures ON shops.prefecture_id = geo_prefectures.id
    LEFT JOIN geo_cities ON shops.city_id = geo_cities.id
    WHERE {where_sql}
    ORDER BY {order_by_clause(filters)}
    LIMIT %(limit)s OFFSET %(offset)s
    """

    count_sql = f"""
    SELECT COUNT(*) AS total
    FROM shops
    WHERE EXISTS (SELECT 1 FROM shop_stations WHERE {link_condition})
      AND {where_sql}
    """

    params["limit"] = filters.per_page
    params["offset"] = filters.offset

    logger.debug(f"station shop query: {len(clauses)} conditions, stations={params['station_ids']}")
    return select_sql, count_sql, params
