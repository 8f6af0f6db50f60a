"""
parkfinder/services/search_engine.py

駐車場検索エンジン

リポジトリの全駐車場に対して
1. 距離の付与（起点がある場合）
2. フィルタ（指定された条件のAND）
3. ソート（安定ソート）
を順に適用して結果を返す。途中結果が呼び出し側に見えることはない。
"""
import logging
from typing import Callable, Optional

from parkfinder.models.location import (
    AvailabilityStatus,
    Coordinates,
    LocationWithDistance,
    ParkingLocation,
)
from parkfinder.models.search import LocationFilters, SortKey, WithinRadius
from .geo import distance_km
from .repository import LocationRepository


logger = logging.getLogger(__name__)


# =============================================================================
# ソート
# =============================================================================

# Pythonのsortは安定なので、同値の要素は元の順序を保つ
SORT_KEYS: dict[SortKey, Callable[[LocationWithDistance], object]] = {
    SortKey.DISTANCE: lambda loc: loc.distance if loc.distance is not None else 0,
    SortKey.PRICE: lambda loc: loc.hourly_rate,
    SortKey.AVAILABILITY: lambda loc: -loc.available_spots,
    SortKey.NAME: lambda loc: loc.name,
}


def sort_locations(
    locations: list[LocationWithDistance],
    sort_by: SortKey,
) -> list[LocationWithDistance]:
    return sorted(locations, key=SORT_KEYS[sort_by])


def annotate_distance(
    locations: list[ParkingLocation],
    origin: Optional[Coordinates],
) -> list[LocationWithDistance]:
    """起点があれば各駐車場に distance（km）を付与"""
    annotated = []
    for location in locations:
        data = location.model_dump()
        if origin is not None:
            data["distance"] = distance_km(origin, location.coordinates)
        annotated.append(LocationWithDistance.model_validate(data))
    return annotated


# =============================================================================
# 検索エンジン
# =============================================================================

class LocationSearchEngine:
    """
    駐車場検索エンジン

    使用例:
        engine = LocationSearchEngine(repository)
        results = await engine.search(LocationFilters.from_query(
            search_text="hospital",
            sort_by=SortKey.PRICE,
        ))
    """

    def __init__(self, repository: LocationRepository):
        self.repository = repository

    async def search(
        self,
        filters: Optional[LocationFilters] = None,
    ) -> list[LocationWithDistance]:
        """
        条件に合う駐車場を検索

        Args:
            filters: 検索条件（None なら全件をそのままの順序で返す）

        Returns:
            フィルタ・ソート済みの駐車場リスト（0件も正常）
        """
        filters = filters or LocationFilters()

        locations = await self.repository.get_all_locations()
        results = annotate_distance(locations, filters.origin)
        results = [loc for loc in results if self._matches(loc, filters)]

        if filters.sort_by is not None:
            results = sort_locations(results, filters.sort_by)

        logger.debug("Search returned %d locations", len(results))
        return results

    @staticmethod
    def _matches(location: LocationWithDistance, filters: LocationFilters) -> bool:
        """指定された条件をすべて満たすか"""
        search_text = (filters.search_text or "").strip().lower()
        if search_text:
            if (search_text not in location.name.lower() and
                    search_text not in location.address.lower()):
                return False

        scope = filters.scope
        if isinstance(scope, WithinRadius):
            if location.distance is None or location.distance > scope.km:
                return False

        if filters.min_available_spots is not None:
            if location.available_spots < filters.min_available_spots:
                return False

        if filters.max_price is not None:
            if location.hourly_rate > filters.max_price:
                return False

        return True

    async def nearby(
        self,
        origin: Coordinates,
        radius_km: float = 5.0,
    ) -> list[LocationWithDistance]:
        """
        半径内の駐車場を近い順に返す

        距離の付与・半径フィルタ・距離ソートのみ行う。
        """
        locations = await self.repository.get_all_locations()
        annotated = annotate_distance(locations, origin)
        nearby = [loc for loc in annotated if loc.distance <= radius_km]
        nearby = sort_locations(nearby, SortKey.DISTANCE)

        logger.debug("Found %d locations within %s km", len(nearby), radius_km)
        return nearby

    async def availability_status(self) -> AvailabilityStatus:
        """全駐車場の空き状況を集計"""
        status = AvailabilityStatus()
        for location in await self.repository.get_all_locations():
            status.total += location.total_spots
            status.available += location.available_spots
            status.occupied += location.occupied_spots
            status.locations += 1
        return status
