"""
parkfinder/services/__init__.py

サービスパッケージ
"""
from .geo import distance_km, format_distance
from .store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StoreDecodeError,
    StoreError,
)
from .repository import LocationRepository, JsonCollection, STORAGE_KEYS
from .search_engine import LocationSearchEngine
from .availability import AvailabilityUpdater, AvailabilityPolicy, SpotCountOutOfRange
from .geolocation import (
    GeolocationProvider,
    LocationPlatform,
    LocationSubscription,
    PlatformError,
    SimulatedLocationPlatform,
)
from .mapbox_client import MapboxGeocoder

__all__ = [
    "distance_km",
    "format_distance",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "StoreDecodeError",
    "StoreError",
    "LocationRepository",
    "JsonCollection",
    "STORAGE_KEYS",
    "LocationSearchEngine",
    "AvailabilityUpdater",
    "AvailabilityPolicy",
    "SpotCountOutOfRange",
    "GeolocationProvider",
    "LocationPlatform",
    "LocationSubscription",
    "PlatformError",
    "SimulatedLocationPlatform",
    "MapboxGeocoder",
]
