"""
pydantic models for 요청, 응답 + 도메인 객체
"""


from janmap.models.requests import (
    StationAssignmentRequest,
    AutoAssignRequest,
    NearbyStationsRequest,
    NearbyByAddressRequest,
    StationShopSearchRequest,
)
from janmap.models.responses import (
    StationSummary,
    ShopStationsResponse,
    StationAssignmentResponse,
    NearbyStationsResponse,
    StationNearbyResponse,
    StationDetailResponse,
    StationShopsResponse,
    StationSearchResponse,
    ErrorResponse,
)
from janmap.models.domain import (
    Coordinate,
    Station,
    StationGroup,
    Shop,
    ShopStation,
    StandaloneStation,
    GroupedStation,
    StationIdentity,
)

__all__ = [
    "StationAssignmentRequest",
    "AutoAssignRequest",
    "NearbyStationsRequest",
    "NearbyByAddressRequest",
    "StationShopSearchRequest",
    "StationSummary",
    "ShopStationsResponse",
    "StationAssignmentResponse",
    "NearbyStationsResponse",
    "StationNearbyResponse",
    "StationDetailResponse",
    "StationShopsResponse",
    "StationSearchResponse",
    "ErrorResponse",
    "Coordinate",
    "Station",
    "StationGroup",
    "Shop",
    "ShopStation",
    "StandaloneStation",
    "GroupedStation",
    "StationIdentity",
]
