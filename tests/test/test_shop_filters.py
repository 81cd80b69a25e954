"""
역 주변 점포 검색 SQL 조립 테스트
"""

import pytest

from janmap.core.exceptions import ValidationException
from janmap.db.shop_filters import (
    ShopSearchFilters,
    build_filter_clauses,
    build_station_shop_query,
    order_by_clause,
)


class TestFilterClauses:
    def test_default_only_verified(self):
        clauses, params = build_filter_clauses(ShopSearchFilters())

        assert clauses == ["shops.is_verified = TRUE"]
        assert params == {}

    def test_business_types_are_or(self):
        clauses, params = build_filter_clauses(
            ShopSearchFilters(has_three_player_free=True, has_set=True)
        )

        assert len(clauses) == 2
        business = clauses[1]
        assert business.startswith("(") and " OR " in business
        assert "shop_frees.game_format = %(free_three_player)s" in business
        assert "shop_sets" in business
        assert params == {"free_three_player": "THREE_PLAYER"}

    def test_tables_are_and(self):
        clauses, _ = build_filter_clauses(ShopSearchFilters(auto_table=True, score_table=True))

        assert "shops.auto_table_count > 0" in clauses
        assert "shops.score_table_count > 0" in clauses

    def test_toggle_rules_or_within_group(self):
        clauses, params = build_filter_clauses(
            ShopSearchFilters(rules=["TONPU", "TONNAN", "KUITAN_ALLOWED"])
        )

        assert params["rules_game_format"] == ["TONPU", "TONNAN"]
        assert params["rules_kuitan"] == ["KUITAN_ALLOWED"]
        # 그룹마다 EXISTS 1개 => 그룹 간 AND
        assert len(clauses) == 3
        assert "shop_rules.rule = ANY(%(rules_game_format)s)" in clauses[1]

    def test_checkbox_rules_and(self):
        clauses, params = build_filter_clauses(
            ShopSearchFilters(rules=["RED_TILES", "NO_HAKOSHITA"])
        )

        assert params == {"rule_checkbox_0": "RED_TILES", "rule_checkbox_1": "NO_HAKOSHITA"}
        assert len(clauses) == 3

    def test_features_and(self):
        clauses, params = build_filter_clauses(
            ShopSearchFilters(features=["NO_RATE", "FEMALE_PRO"])
        )

        assert params == {"feature_0": "NO_RATE", "feature_1": "FEMALE_PRO"}
        assert all("shop_features" in c for c in clauses[1:])

    def test_unknown_codes_ignored(self):
        clauses, params = build_filter_clauses(
            ShopSearchFilters(rules=["UNKNOWN_RULE"], features=["UNKNOWN_FEATURE"])
        )

        assert clauses == ["shops.is_verified = TRUE"]
        assert params == {}


class TestOrderBy:
    def test_default(self):
        assert order_by_clause(ShopSearchFilters()) == "nearest_link.distance_km ASC, shops.id ASC"

    def test_desc(self):
        filters = ShopSearchFilters(sort_by="name", sort_direction="DESC")

        assert order_by_clause(filters) == "shops.name DESC, shops.id ASC"

    def test_invalid_column(self):
        with pytest.raises(ValidationException):
            order_by_clause(ShopSearchFilters(sort_by="id; DROP TABLE shops"))

    def test_invalid_direction(self):
        with pytest.raises(ValidationException):
            order_by_clause(ShopSearchFilters(sort_direction="sideways"))


class TestStationShopQuery:
    def test_params(self):
        select_sql, count_sql, params = build_station_shop_query(
            [101, 102], ShopSearchFilters(page=3, per_page=10)
        )

        assert params["station_ids"] == [101, 102]
        assert params["limit"] == 10
        assert params["offset"] == 20
        assert "max_distance_km" not in params
        assert "JOIN LATERAL" in select_sql
        assert "LIMIT %(limit)s OFFSET %(offset)s" in select_sql
        assert "COUNT(*)" in count_sql
        assert "LIMIT" not in count_sql

    def test_max_distance(self):
        select_sql, count_sql, params = build_station_shop_query(
            [101], ShopSearchFilters(max_distance_km=1.5)
        )

        assert params["max_distance_km"] == 1.5
        assert "shop_stations.distance_km <= %(max_distance_km)s" in select_sql
        assert "shop_stations.distance_km <= %(max_distance_km)s" in count_sql

    def test_filters_in_both_queries(self):
        select_sql, count_sql, _ = build_station_shop_query(
            [101], ShopSearchFilters(auto_table=True)
        )

        assert "shops.auto_table_count > 0" in select_sql
        assert "shops.auto_table_count > 0" in count_sql
        assert "shops.is_verified = TRUE" in count_sql

    def test_offset(self):
        assert ShopSearchFilters(page=1, per_page=15).offset == 0
        assert ShopSearchFilters(page=4, per_page=15).offset == 45
