import os
from typing import Dict, Any
from dotenv import load_dotenv

load_dotenv()  # 환경변수 읽어오기


class Settings:
    PROJECT_NAME: str = "JanMap Backend"
    VERSION: str = "1.2.0"

    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    PORT: int = int(os.getenv("PORT", 8001))

    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", 5432))
    DB_NAME: str = os.getenv("DB_NAME", "janmap")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "prefer")
    DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", 2))
    DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", 20))

    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", 6379))

    # 지오코딩 결과 캐시 TTL
    GEOCODE_CACHE_TTL_SECONDS: int = int(
        os.getenv("GEOCODE_CACHE_TTL_SECONDS", 604800)
    )  # 7일

    # 주소 API (Node 주소 정규화/지오코딩 서버)
    GEOCODING_API_URL: str = os.getenv("GEOCODING_API_URL", "http://address-api:3000")
    GEOCODING_TIMEOUT: float = float(os.getenv("GEOCODING_TIMEOUT", 10))

    ENABLE_PERFORMANCE_MONITORING: bool = (
        os.getenv("ENABLE_PERFORMANCE_MONITORING", "true").lower() == "true"
    )
    SLOW_REQUEST_THRESHOLD_MS: int = int(os.getenv("SLOW_REQUEST_THRESHOLD_MS", 1000))

    # CORS 설정
    ALLOWED_ORIGINS: list[str] = os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")

    @property
    def DB_CONFIG(self) -> Dict[str, Any]:
        return {
            "host": self.DB_HOST,
            "port": self.DB_PORT,
            "database": self.DB_NAME,
            "user": self.DB_USER,
            "password": self.DB_PASSWORD,
            "sslmode": self.DB_SSLMODE,
            "connect_timeout": 30,
        }


settings = Settings()  # 모듈화


# 서브 역 최대 개수 (메인 역 제외)
MAX_SUB_STATIONS = 5

# 도보 속도 4km/h => 1km당 15분, 시스템 전체에서 이 값 하나만 사용
WALKING_MINUTES_PER_KM = 15

# 거리 정밀도 구분 (km)
ACCURACY_THRESHOLDS_KM = {
    "high": 0.1,  # 100m 이내
    "medium": 0.5,  # 500m 이내
}

# 주변 역 검색 기본값 / 허용 범위
NEARBY_SEARCH_CONFIG = {
    "default_max_distance_km": 3.0,
    "default_max_stations": 10,
    "min_distance_km": 0.1,
    "max_distance_km": 10.0,
    "max_stations_limit": 50,
    # 역 페이지의 "주변 역" 기본값
    "station_page_max_distance_km": 10.0,
    "station_page_limit": 20,
}

# 영업 형태 필터 (그룹 내 OR)
BUSINESS_TYPES = {
    "has_three_player_free": "THREE_PLAYER",
    "has_four_player_free": "FOUR_PLAYER",
    "has_set": "SET",
}

# 룰 필터 정의
# toggle: 그룹 내 OR, 그룹 간 AND / checkbox: 개별 AND
RULE_GROUPS = {
    "toggle": {
        "game_format": ["TONPU", "TONNAN"],
        "kuitan": ["KUITAN_ALLOWED", "KUITAN_PROHIBITED"],
        "atozuke": ["ATODZUKE_ALLOWED", "SAKIZUKE_ONLY"],
        "renchan": ["TENPAI_RENCHAN", "AGARI_RENCHAN"],
        "keichou": ["KATA_TEN_ALLOWED"],
    },
    "checkbox": {
        "special_tiles": ["RED_TILES", "POTCHI_TILES", "SPECIAL_TILES"],
        "game_types": ["SPEED_BATTLE", "RANKING_MATCH"],
        "calculation": ["NO_HAKOSHITA", "NO_FU_CALCULATION"],
    },
}

# 특징 필터 (전부 AND)
FEATURE_CATEGORIES = {
    "game_style": ["HEALTH", "NO_RATE"],
    "staff": ["MALE_PRO", "FEMALE_PRO", "GIRL_MAHJONG"],
}

# 역 주변 점포 목록 정렬 가능 컬럼
SHOP_SORT_COLUMNS = {
    "distance_km": "nearest_link.distance_km",
    "walking_minutes": "nearest_link.walking_minutes",
    "name": "shops.name",
    "created_at": "shops.created_at",
    "table_count": "shops.table_count",
}
