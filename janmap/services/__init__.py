"""
Business logic services
"""

from janmap.services.station_group_resolver import (
    StationGroupResolver,
    dedupe_by_group,
    group_key,
)
from janmap.services.station_assignment_service import StationAssignmentService
from janmap.services.proximity_service import NearbyStation, ProximityService
from janmap.services.geocoding_client import GeocodingClient

__all__ = [
    "StationGroupResolver",
    "dedupe_by_group",
    "group_key",
    "StationAssignmentService",
    "NearbyStation",
    "ProximityService",
    "GeocodingClient",
]
