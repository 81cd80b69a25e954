import redis
import json
import hashlib
from typing import Optional, Tuple
import logging

from janmap.core.config import settings

logger = logging.getLogger(__name__)


class GeocodeCache:
    """
    주소 -> 좌표 지오코딩 결과 캐시

    캐시 장애는 검색 실패로 이어지지 않음 => 오류는 로그만 남기고 miss 처리
    """

    KEY_PREFIX = "geocode"

    def __init__(self, redis_client: redis.Redis = None, ttl_seconds: int = None):
        self.redis_client = redis_client or redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=0,
            decode_responses=True,
        )
        self.ttl_seconds = ttl_seconds or settings.GEOCODE_CACHE_TTL_SECONDS

    @classmethod
    def make_key(cls, address: str) -> str:
        normalized = " ".join(address.split())
        digest = hashlib.sha1(normalized.encode("utf-8")).hexdigest()
        return f"{cls.KEY_PREFIX}:{digest}"

    def get(self, address: str) -> Optional[Tuple[float, float]]:
        try:
            data = self.redis_client.get(self.make_key(address))
            if not data:
                return None
            payload = json.loads(data)
            return float(payload["lat"]), float(payload["lng"])
        except redis.RedisError as e:
            logger.error(f"지오코딩 캐시 조회 실패: {e}")
            return None
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"지오코딩 캐시 데이터 손상: {e}")
            return None

    def set(self, address: str, lat: float, lng: float) -> bool:
        try:
            self.redis_client.setex(
                self.make_key(address),
                self.ttl_seconds,
                json.dumps({"lat": lat, "lng": lng}),
            )
            return True
        except redis.RedisError as e:
            logger.error(f"지오코딩 캐시 저장 실패: {e}")
            return False


def init_redis() -> GeocodeCache:
    return GeocodeCache()
