"""
Core 설정 및 utilities, 커스텀 예외
"""

from janmap.core.config import settings

from janmap.core.exceptions import (
    JanMapException,
    ValidationException,
    InvalidLocationException,
    StationNotFoundException,
    NotFoundException,
    ShopNotFoundException,
    StationGroupNotFoundException,
    LocationNotFoundException,
    GeocodingFailedException,
)

__all__ = [
    "settings",
    "JanMapException",
    "ValidationException",
    "InvalidLocationException",
    "StationNotFoundException",
    "NotFoundException",
    "ShopNotFoundException",
    "StationGroupNotFoundException",
    "LocationNotFoundException",
    "GeocodingFailedException",
]
