"""
parkfinder/routers/locations.py

駐車場APIエンドポイント

GET  /api/locations                        - 条件検索
GET  /api/locations/nearby                 - 半径内の駐車場（近い順）
GET  /api/locations/availability           - 空き状況サマリー
GET  /api/locations/{id}                   - 駐車場1件
GET  /api/locations/{id}/packages          - 駐車場のパッケージ一覧
PUT  /api/locations/{id}/availability      - 空き台数の更新
POST /api/locations/reseed                 - シードデータで再初期化

座標パラメータはすべて "緯度,経度" の形式。

公式ドキュメント:
- FastAPI Query Parameters: https://fastapi.tiangolo.com/tutorial/query-params/
- FastAPI Dependencies: https://fastapi.tiangolo.com/tutorial/dependencies/
"""
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from parkfinder.models import (
    ApiResponse,
    AvailabilityStatus,
    AvailabilityUpdate,
    Coordinates,
    LocationFilters,
    LocationResult,
    LocationsData,
    LocationWithDistance,
    PackagesData,
    ParkingLocation,
    SortKey,
    create_error_response,
    create_success_response,
)
from parkfinder.models.common import (
    INVALID_COORDINATES,
    INVALID_SPOT_COUNT,
    LOCATION_NOT_FOUND,
)
from parkfinder.services.availability import AvailabilityUpdater, SpotCountOutOfRange
from parkfinder.services.geo import format_distance
from parkfinder.services.repository import LocationRepository
from parkfinder.services.search_engine import LocationSearchEngine


logger = logging.getLogger(__name__)


# =============================================================================
# ルーター定義
# =============================================================================

router = APIRouter(prefix="/api/locations", tags=["locations"])

COORDINATES_PATTERN = r"^\s*-?\d+(\.\d+)?\s*,\s*-?\d+(\.\d+)?\s*$"


# =============================================================================
# 依存性注入
# =============================================================================

def get_repository() -> LocationRepository:
    from parkfinder.main import app
    return app.state.repository


def get_search_engine() -> LocationSearchEngine:
    from parkfinder.main import app
    return app.state.search_engine


def get_availability_updater() -> AvailabilityUpdater:
    from parkfinder.main import app
    return app.state.availability_updater


# =============================================================================
# ヘルパー
# =============================================================================

def parse_coordinates(value: str) -> Coordinates:
    """
    "緯度,経度" をパース

    Raises:
        ValueError: 形式が不正
    """
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError(f"Invalid coordinates: {value}")
    return Coordinates(latitude=float(parts[0]), longitude=float(parts[1]))


def to_locations_data(locations: list[LocationWithDistance]) -> LocationsData:
    results = []
    for location in locations:
        label = format_distance(location.distance) if location.distance is not None else None
        results.append(LocationResult.model_validate({
            **location.model_dump(),
            "distance_label": label,
        }))
    return LocationsData(locations=results, total_count=len(results))


# =============================================================================
# エンドポイント
# =============================================================================

@router.get(
    "",
    response_model=ApiResponse[LocationsData],
    summary="駐車場検索",
    description="""
名称・住所のキーワード、距離、空き台数、料金で駐車場を検索。

## フィルタリング（すべて任意、AND条件）

- `searchText`: 名称または住所の部分一致（大文字小文字を区別しない）
- `maxDistance`: `near` からの半径（km）。`near` がない場合は無視
- `minAvailableSpots`: 空き台数の下限
- `maxPrice`: 1時間あたり料金の上限

## ソート

- `sortBy`: `distance` / `price` / `availability` / `name`

`near` を指定すると、すべての結果に距離が付与される。
    """,
)
async def search_locations(
    searchText: Annotated[Optional[str], Query(description="キーワード")] = None,
    maxDistance: Annotated[Optional[float], Query(ge=0, description="半径（km）")] = None,
    minAvailableSpots: Annotated[Optional[int], Query(ge=0, description="空き台数の下限")] = None,
    maxPrice: Annotated[Optional[float], Query(ge=0, description="料金の上限")] = None,
    sortBy: Annotated[Optional[SortKey], Query(description="ソートキー")] = None,
    near: Annotated[Optional[str], Query(
        pattern=COORDINATES_PATTERN,
        description="起点座標 '緯度,経度'",
        examples=["14.0723,-87.1921"],
    )] = None,
    search_engine: LocationSearchEngine = Depends(get_search_engine),
) -> ApiResponse[LocationsData]:
    user_location = None
    if near:
        try:
            user_location = parse_coordinates(near)
        except ValueError:
            return create_error_response(INVALID_COORDINATES, "near座標の形式が不正です")

    filters = LocationFilters.from_query(
        search_text=searchText,
        max_distance=maxDistance,
        min_available_spots=minAvailableSpots,
        max_price=maxPrice,
        sort_by=sortBy,
        user_location=user_location,
    )
    results = await search_engine.search(filters)
    return create_success_response(to_locations_data(results))


@router.get(
    "/nearby",
    response_model=ApiResponse[LocationsData],
    summary="周辺の駐車場",
)
async def get_nearby_locations(
    near: Annotated[str, Query(
        pattern=COORDINATES_PATTERN,
        description="起点座標 '緯度,経度'",
        examples=["14.0723,-87.1921"],
    )],
    radius: Annotated[float, Query(gt=0, le=100, description="半径（km）")] = 5.0,
    search_engine: LocationSearchEngine = Depends(get_search_engine),
) -> ApiResponse[LocationsData]:
    try:
        origin = parse_coordinates(near)
    except ValueError:
        return create_error_response(INVALID_COORDINATES, "near座標の形式が不正です")

    results = await search_engine.nearby(origin, radius_km=radius)
    return create_success_response(to_locations_data(results))


@router.get(
    "/availability",
    response_model=ApiResponse[AvailabilityStatus],
    summary="空き状況サマリー",
)
async def get_availability_status(
    search_engine: LocationSearchEngine = Depends(get_search_engine),
) -> ApiResponse[AvailabilityStatus]:
    return create_success_response(await search_engine.availability_status())


@router.post(
    "/reseed",
    response_model=ApiResponse[AvailabilityStatus],
    summary="シードデータで再初期化",
)
async def reseed_locations(
    updater: AvailabilityUpdater = Depends(get_availability_updater),
    search_engine: LocationSearchEngine = Depends(get_search_engine),
) -> ApiResponse[AvailabilityStatus]:
    # 空き台数の更新と同じロックで直列化
    await updater.reseed()
    return create_success_response(await search_engine.availability_status())


@router.get(
    "/{location_id}",
    response_model=ApiResponse[ParkingLocation],
    summary="駐車場詳細",
)
async def get_location(
    location_id: str,
    repository: LocationRepository = Depends(get_repository),
) -> ApiResponse[ParkingLocation]:
    location = await repository.get_location_by_id(location_id)
    if location is None:
        return create_error_response(LOCATION_NOT_FOUND, f"駐車場が見つかりませんでした: {location_id}")
    return create_success_response(location)


@router.get(
    "/{location_id}/packages",
    response_model=ApiResponse[PackagesData],
    summary="駐車場のパッケージ一覧",
)
async def get_location_packages(
    location_id: str,
    repository: LocationRepository = Depends(get_repository),
) -> ApiResponse[PackagesData]:
    packages = await repository.get_packages_by_location(location_id)
    return create_success_response(PackagesData(
        location_id=location_id,
        packages=packages,
        total_count=len(packages),
    ))


@router.put(
    "/{location_id}/availability",
    response_model=ApiResponse[ParkingLocation],
    summary="空き台数の更新",
)
async def update_availability(
    location_id: str,
    body: AvailabilityUpdate,
    repository: LocationRepository = Depends(get_repository),
    updater: AvailabilityUpdater = Depends(get_availability_updater),
) -> ApiResponse[ParkingLocation]:
    try:
        updated = await updater.set_available_spots(location_id, body.available_spots)
    except SpotCountOutOfRange as e:
        return create_error_response(INVALID_SPOT_COUNT, str(e))

    if not updated:
        return create_error_response(LOCATION_NOT_FOUND, f"駐車場が見つかりませんでした: {location_id}")

    return create_success_response(await repository.get_location_by_id(location_id))
