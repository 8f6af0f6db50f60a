"""
parkfinder/models/__init__.py

モデルパッケージ

使用例:
    from parkfinder.models import ParkingLocation, LocationFilters, ApiResponse
"""
from .common import (
    ApiResponse,
    ErrorDetail,
    create_success_response,
    create_error_response,
)
from .location import (
    Coordinates,
    ParkingLocation,
    LocationWithDistance,
    LocationPackage,
    UserLocationPackage,
    AvailabilityStatus,
    LocationResult,
    LocationsData,
    PackagesData,
    AvailabilityUpdate,
)
from .search import (
    SortKey,
    Unbounded,
    Near,
    WithinRadius,
    LocationFilters,
)
from .geolocation import (
    PermissionState,
    PermissionStatus,
    WatchOptions,
)
__all__ = [
    # common
    "ApiResponse",
    "ErrorDetail",
    "create_success_response",
    "create_error_response",
    # location
    "Coordinates",
    "ParkingLocation",
    "LocationWithDistance",
    "LocationPackage",
    "UserLocationPackage",
    "AvailabilityStatus",
    "LocationResult",
    "LocationsData",
    "PackagesData",
    "AvailabilityUpdate",
    # search
    "SortKey",
    "Unbounded",
    "Near",
    "WithinRadius",
    "LocationFilters",
    # geolocation
    "PermissionState",
    "PermissionStatus",
    "WatchOptions",
]
