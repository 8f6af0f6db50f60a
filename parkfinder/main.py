"""
parkfinder/main.py

駐車場ロケーション検索 API - メインアプリケーション

起動コマンド:
  uvicorn parkfinder.main:app --reload --host 0.0.0.0 --port 8000

環境変数:
  STORE_BACKEND: ストア種別 "memory" / "file"（デフォルト: memory）
  STORE_PATH: ファイルストアのディレクトリ（デフォルト: data/store）
  AVAILABILITY_POLICY: 空き台数の範囲外の扱い "reject" / "clamp" / "permissive"
  DEVICE_LOCATION: シミュレーション端末の現在地 "緯度,経度"
  MAPBOX_ACCESS_TOKEN: Mapbox APIトークン（設定時のみジオコーディング有効）
  LOG_LEVEL: ログレベル（デフォルト: INFO）
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

# .envファイルを読み込む（os.getenvより前に実行）
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from parkfinder.models.location import Coordinates
from parkfinder.routers.locations import router as locations_router
from parkfinder.services.availability import AvailabilityPolicy, AvailabilityUpdater
from parkfinder.services.geo import format_distance
from parkfinder.services.geolocation import GeolocationProvider, SimulatedLocationPlatform
from parkfinder.services.mapbox_client import MapboxGeocoder
from parkfinder.services.repository import LocationRepository
from parkfinder.services.search_engine import LocationSearchEngine
from parkfinder.services.store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)


logger = logging.getLogger(__name__)


# =============================================================================
# 設定
# =============================================================================

class Settings:
    """アプリケーション設定"""
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")
    STORE_PATH: str = os.getenv("STORE_PATH", "data/store")
    AVAILABILITY_POLICY: str = os.getenv("AVAILABILITY_POLICY", AvailabilityPolicy.REJECT.value)
    DEVICE_LOCATION: str = os.getenv("DEVICE_LOCATION", "14.0723,-87.1921")
    MAPBOX_ACCESS_TOKEN: str = os.getenv("MAPBOX_ACCESS_TOKEN", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS設定
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006").split(",")
        if origin.strip()
    ]


settings = Settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# =============================================================================
# 構築ヘルパー
# =============================================================================

def create_store(backend: str, path: str) -> KeyValueStore:
    """設定に応じたストアを作成"""
    if backend == "file":
        logger.info("Using file store at %s", path)
        return JsonFileKeyValueStore(path)
    if backend != "memory":
        logger.warning("Unknown STORE_BACKEND %r, falling back to memory", backend)
    return InMemoryKeyValueStore()


def parse_device_location(value: str) -> Optional[Coordinates]:
    """ "緯度,経度" をパース（不正なら None） """
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError:
        logger.warning("Invalid DEVICE_LOCATION %r, device position disabled", value)
        return None
    return Coordinates(latitude=lat, longitude=lon)


# =============================================================================
# Lifespan（起動・終了処理）
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    アプリケーションライフサイクル管理

    Startup:
    1. ストア作成・リポジトリ初期化（シード）
    2. 検索エンジン・空き台数更新サービス作成
    3. 位置情報プロバイダー作成（トークンがあればジオコーダーも）

    Shutdown:
    1. ジオコーダーのクローズ
    """
    # === Startup ===
    logger.info("Starting ParkFinder API...")

    # 1. リポジトリ
    store = create_store(settings.STORE_BACKEND, settings.STORE_PATH)
    repository = LocationRepository(store)
    await repository.initialize()
    app.state.repository = repository

    # 2. 検索・更新
    app.state.search_engine = LocationSearchEngine(repository)
    try:
        policy = AvailabilityPolicy(settings.AVAILABILITY_POLICY.lower())
    except ValueError:
        logger.warning("Unknown AVAILABILITY_POLICY %r, using reject", settings.AVAILABILITY_POLICY)
        policy = AvailabilityPolicy.REJECT
    app.state.availability_updater = AvailabilityUpdater(repository, policy=policy)

    # 3. 位置情報
    geocoder = None
    if settings.MAPBOX_ACCESS_TOKEN:
        geocoder = MapboxGeocoder(settings.MAPBOX_ACCESS_TOKEN)
    platform = SimulatedLocationPlatform(
        position=parse_device_location(settings.DEVICE_LOCATION),
        granted=True,
    )
    app.state.geolocation = GeolocationProvider(platform, geocoder=geocoder)

    logger.info("API Ready (policy=%s)", policy.value)

    yield  # アプリケーション実行中

    # === Shutdown ===
    logger.info("Shutting down...")
    if geocoder is not None:
        await geocoder.close()
    logger.info("Shutdown complete.")


# =============================================================================
# FastAPIアプリケーション
# =============================================================================

app = FastAPI(
    title="ParkFinder API",
    description="""
駐車場の検索と空き状況の管理API

## 機能
- キーワード・距離・空き台数・料金による駐車場検索
- 現在地周辺の駐車場（近い順）
- 前払いパッケージの一覧
- 空き台数の更新とサマリー
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)

# ルーター登録
app.include_router(locations_router)


# =============================================================================
# ヘルスチェック・デバッグエンドポイント
# =============================================================================

@app.get("/health", tags=["system"])
async def health_check():
    """ヘルスチェック"""
    return {"status": "healthy"}


@app.get("/debug/config", tags=["debug"])
async def get_config():
    """設定確認（デバッグ用）"""
    return {
        "store_backend": settings.STORE_BACKEND,
        "store_path": settings.STORE_PATH,
        "availability_policy": app.state.availability_updater.policy.value,
        "geocoding_enabled": bool(settings.MAPBOX_ACCESS_TOKEN),
    }


@app.get("/debug/device-location", tags=["debug"])
async def get_device_location():
    """
    シミュレーション端末の現在地と最寄り駐車場（デバッグ用）

    位置が取得できない場合は location=None を返す。
    """
    geolocation: GeolocationProvider = app.state.geolocation
    location = await geolocation.get_current_location()
    if location is None:
        return {"location": None, "permission": geolocation.state.value}

    nearby = await app.state.search_engine.nearby(location, radius_km=5.0)
    return {
        "location": location.model_dump(),
        "permission": geolocation.state.value,
        "address": await geolocation.address_from_coordinates(location),
        "nearest": [
            {"id": loc.id, "name": loc.name, "distance": format_distance(loc.distance)}
            for loc in nearby[:3]
        ],
    }


# =============================================================================
# メイン（直接実行時）
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "parkfinder.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
