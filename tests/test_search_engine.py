"""
tests/test_search_engine.py

LocationSearchEngine のユニットテスト
"""
import pytest

from parkfinder.data import SEED_LOCATIONS
from parkfinder.models.search import LocationFilters, Near, SortKey, Unbounded, WithinRadius
from parkfinder.services.repository import LocationRepository
from parkfinder.services.search_engine import LocationSearchEngine
from parkfinder.services.store import InMemoryKeyValueStore
from tests.conftest import MULTIPLAZA, SAN_PEDRO_SULA


def ids(locations):
    return [loc.id for loc in locations]


class TestFiltersFromQuery:
    """検索条件の組み立てのテスト"""

    def test_no_location_is_unbounded(self):
        filters = LocationFilters.from_query(max_distance=3)
        assert isinstance(filters.scope, Unbounded)
        assert filters.origin is None

    def test_location_without_radius_is_near(self):
        filters = LocationFilters.from_query(user_location=MULTIPLAZA)
        assert isinstance(filters.scope, Near)
        assert filters.origin == MULTIPLAZA

    def test_location_with_radius(self):
        filters = LocationFilters.from_query(max_distance=2.5, user_location=MULTIPLAZA)
        assert filters.scope == WithinRadius(origin=MULTIPLAZA, km=2.5)


class TestSearchFilters:
    """フィルタのテスト"""

    async def test_no_filters_returns_everything_in_store_order(self, search_engine):
        results = await search_engine.search()

        assert ids(results) == ["loc-1", "loc-2", "loc-3", "loc-4", "loc-5"]
        assert all(loc.distance is None for loc in results)

    @pytest.mark.parametrize("max_price, included", [(30, True), (25, True), (20, False)])
    async def test_max_price(self, search_engine, max_price, included):
        """loc-1（25/時間）は maxPrice 30 で含まれ、20 で除外"""
        results = await search_engine.search(LocationFilters(max_price=max_price))

        assert ("loc-1" in ids(results)) is included
        assert all(loc.hourly_rate <= max_price for loc in results)

    @pytest.mark.parametrize("min_spots, included", [(40, True), (45, True), (50, False)])
    async def test_min_available_spots(self, search_engine, min_spots, included):
        """loc-1（空き45）は minAvailableSpots 40 で含まれ、50 で除外"""
        results = await search_engine.search(LocationFilters(min_available_spots=min_spots))

        assert ("loc-1" in ids(results)) is included
        assert all(loc.available_spots >= min_spots for loc in results)

    async def test_search_text_matches_name_case_insensitive(self, search_engine):
        results = await search_engine.search(LocationFilters(search_text="HOSPITAL"))
        assert ids(results) == ["loc-2"]

    async def test_search_text_matches_address(self, search_engine):
        results = await search_engine.search(LocationFilters(search_text="universitaria"))
        assert ids(results) == ["loc-3"]

    async def test_search_text_ignores_description(self, search_engine):
        """説明文（"techado"）は検索対象外"""
        results = await search_engine.search(LocationFilters(search_text="techado"))
        assert results == []

    async def test_blank_search_text_is_ignored(self, search_engine):
        results = await search_engine.search(LocationFilters(search_text="   "))
        assert len(results) == 5

    async def test_search_text_is_trimmed(self, search_engine):
        results = await search_engine.search(LocationFilters(search_text="  unah "))
        assert ids(results) == ["loc-3"]

    async def test_within_radius(self, search_engine):
        filters = LocationFilters.from_query(max_distance=2.5, user_location=MULTIPLAZA)
        results = await search_engine.search(filters)

        assert ids(results) == ["loc-1", "loc-2"]
        assert all(loc.distance <= 2.5 for loc in results)

    async def test_max_distance_without_location_is_ignored(self, search_engine):
        results = await search_engine.search(LocationFilters.from_query(max_distance=0.1))
        assert len(results) == 5

    async def test_filters_are_combined(self, search_engine):
        """全条件を AND で適用"""
        filters = LocationFilters.from_query(
            search_text="tegucigalpa",
            max_distance=3.1,
            min_available_spots=20,
            max_price=30,
            user_location=MULTIPLAZA,
        )
        results = await search_engine.search(filters)

        assert ids(results) == ["loc-1"]

    async def test_no_match_is_empty_list(self, search_engine):
        results = await search_engine.search(LocationFilters(search_text="no existe"))
        assert results == []

    async def test_empty_repository(self):
        engine = LocationSearchEngine(LocationRepository(InMemoryKeyValueStore()))
        assert await engine.search(LocationFilters(sort_by=SortKey.NAME)) == []


class TestDistanceAnnotation:
    """距離付与のテスト"""

    async def test_origin_at_loc1(self, search_engine):
        """loc-1 の座標を起点にすると loc-1 は0、それ以外は正の距離"""
        results = await search_engine.search(LocationFilters.from_query(user_location=MULTIPLAZA))

        distances = {loc.id: loc.distance for loc in results}
        assert distances["loc-1"] == pytest.approx(0.0, abs=1e-9)
        assert all(d > 0 for loc_id, d in distances.items() if loc_id != "loc-1")

    async def test_distance_annotated_without_distance_sort(self, search_engine):
        """ソートキーに関係なく距離は付与される"""
        filters = LocationFilters.from_query(sort_by=SortKey.PRICE, user_location=MULTIPLAZA)
        results = await search_engine.search(filters)

        assert all(loc.distance is not None for loc in results)


class TestSorting:
    """ソートのテスト"""

    async def test_sort_by_name(self, search_engine):
        results = await search_engine.search(LocationFilters(sort_by=SortKey.NAME))

        names = [loc.name for loc in results]
        assert names == sorted(names)
        assert ids(results) == ["loc-4", "loc-5", "loc-2", "loc-1", "loc-3"]

    async def test_sort_by_price(self, search_engine):
        results = await search_engine.search(LocationFilters(sort_by=SortKey.PRICE))

        rates = [loc.hourly_rate for loc in results]
        assert rates == sorted(rates)
        assert ids(results) == ["loc-3", "loc-2", "loc-1", "loc-5", "loc-4"]

    async def test_sort_by_availability(self, search_engine):
        results = await search_engine.search(LocationFilters(sort_by=SortKey.AVAILABILITY))

        spots = [loc.available_spots for loc in results]
        assert spots == sorted(spots, reverse=True)
        assert ids(results) == ["loc-4", "loc-1", "loc-3", "loc-2", "loc-5"]

    async def test_sort_by_distance(self, search_engine):
        filters = LocationFilters.from_query(sort_by=SortKey.DISTANCE, user_location=MULTIPLAZA)
        results = await search_engine.search(filters)

        assert ids(results) == ["loc-1", "loc-2", "loc-4", "loc-3", "loc-5"]

    async def test_sort_by_distance_without_origin_keeps_order(self, search_engine):
        """距離なしはすべて0扱い → 安定ソートで元の順序"""
        results = await search_engine.search(LocationFilters(sort_by=SortKey.DISTANCE))
        assert ids(results) == ["loc-1", "loc-2", "loc-3", "loc-4", "loc-5"]

    async def test_name_sort_is_case_sensitive(self, store):
        """大文字は小文字より前（辞書順）"""
        seed = [
            SEED_LOCATIONS[0].model_copy(update={"id": "a", "name": "beta"}),
            SEED_LOCATIONS[1].model_copy(update={"id": "b", "name": "Zeta"}),
        ]
        repo = LocationRepository(store, seed_locations=seed, seed_packages=[])
        await repo.initialize()

        results = await LocationSearchEngine(repo).search(LocationFilters(sort_by=SortKey.NAME))
        assert ids(results) == ["b", "a"]

    async def test_ties_keep_store_order(self, store):
        """同値は元の順序を保つ（安定ソート）"""
        seed = [
            SEED_LOCATIONS[i].model_copy(update={"hourly_rate": 20, "available_spots": 10})
            for i in (3, 0, 4)
        ]
        repo = LocationRepository(store, seed_locations=seed, seed_packages=[])
        await repo.initialize()
        engine = LocationSearchEngine(repo)

        for sort_by in (SortKey.PRICE, SortKey.AVAILABILITY):
            results = await engine.search(LocationFilters(sort_by=sort_by))
            assert ids(results) == ["loc-4", "loc-1", "loc-5"]


class TestNearby:
    """周辺検索のテスト"""

    async def test_nearby_sorted_by_distance(self, search_engine):
        results = await search_engine.nearby(MULTIPLAZA, radius_km=3.1)

        assert ids(results) == ["loc-1", "loc-2", "loc-4"]
        distances = [loc.distance for loc in results]
        assert distances == sorted(distances)

    async def test_default_radius_covers_city(self, search_engine):
        results = await search_engine.nearby(MULTIPLAZA)
        assert len(results) == 5

    async def test_far_origin_finds_nothing(self, search_engine):
        assert await search_engine.nearby(SAN_PEDRO_SULA) == []


class TestAvailabilityStatus:
    """空き状況サマリーのテスト"""

    async def test_totals(self, search_engine):
        status = await search_engine.availability_status()

        assert status.total == 780
        assert status.available == 155
        assert status.occupied == 625
        assert status.locations == 5

    async def test_reflects_updates(self, search_engine, repository):
        await repository.set_available_spots("loc-1", 0)

        status = await search_engine.availability_status()
        assert status.available == 110
        assert status.occupied == 670

    async def test_empty_repository(self):
        engine = LocationSearchEngine(LocationRepository(InMemoryKeyValueStore()))
        status = await engine.availability_status()

        assert (status.total, status.available, status.occupied, status.locations) == (0, 0, 0, 0)
