import logging
from typing import Optional

import httpx

from janmap.core.config import settings
from janmap.db.redis_client import GeocodeCache
from janmap.models.domain import Coordinate

logger = logging.getLogger(__name__)


class GeocodingClient:
    """
    주소 API(Node) 지오코딩 클라이언트

    POST {GEOCODING_API_URL}/api/geo/geocode
    요청: {"address": ..., "region": "JP"}
    응답: {"success": true, "data": {"lat": ..., "lng": ...}}

    실패는 예외 대신 None => 재시도 여부는 호출부 판단
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        cache: Optional[GeocodeCache] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or settings.GEOCODING_API_URL).rstrip("/")
        self.timeout = timeout or settings.GEOCODING_TIMEOUT
        self.cache = cache
        self.http_client = http_client or httpx.Client(timeout=self.timeout)

    def geocode(self, address: str) -> Optional[Coordinate]:
        address = (address or "").strip()
        if not address:
            return None

        if self.cache is not None:
            cached = self.cache.get(address)
            if cached:
                logger.debug(f"지오코딩 캐시 hit: {address[:50]}")
                return Coordinate(*cached)

        url = f"{self.base_url}/api/geo/geocode"
        logger.info(f"Geocoding API 호출: address={address[:50]}, url={url}")

        try:
            response = self.http_client.post(
                url, json={"address": address, "region": "JP"}
            )
        except httpx.HTTPError as e:
            logger.error(f"Geocoding API 호출 오류: address={address[:50]}, error={e}")
            return None

        if response.status_code != 200:
            logger.error(
                f"Geocoding API 호출 실패: status={response.status_code}, body={response.text[:200]}"
            )
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Geocoding API 응답 파싱 실패: {e}")
            return None

        coordinate = self._parse(payload)
        if coordinate is None:
            # 응답 body가 object가 아닐 수도 있음 (배열, 문자열 등)
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning(f"Geocoding 결과 없음: address={address[:50]}, error={error}")
            return None

        if self.cache is not None:
            self.cache.set(address, coordinate.lat, coordinate.lng)
        return coordinate

    @staticmethod
    def _parse(payload) -> Optional[Coordinate]:
        if not isinstance(payload, dict) or not payload.get("success"):
            return None

        data = payload.get("data") or {}
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("longitude"))
        if lat is None or lng is None:
            return None

        try:
            coordinate = Coordinate(float(lat), float(lng))
        except (TypeError, ValueError):
            return None
        return coordinate if coordinate.is_valid else None

    def close(self):
        self.http_client.close()
