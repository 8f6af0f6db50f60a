"""
tests/conftest.py

pytest共通フィクスチャ

参照:
- pytest fixtures: https://docs.pytest.org/en/stable/fixture.html
- pytest-asyncio: https://pytest-asyncio.readthedocs.io/
- FastAPI Testing: https://fastapi.tiangolo.com/advanced/async-tests/
"""
import asyncio

import pytest
from httpx import AsyncClient, ASGITransport

from parkfinder.main import app
from parkfinder.models.location import Coordinates
from parkfinder.services.availability import AvailabilityPolicy, AvailabilityUpdater
from parkfinder.services.geolocation import GeolocationProvider, SimulatedLocationPlatform
from parkfinder.services.repository import LocationRepository
from parkfinder.services.search_engine import LocationSearchEngine
from parkfinder.services.store import InMemoryKeyValueStore


# =============================================================================
# テスト用定数
# =============================================================================

# シードデータの座標
MULTIPLAZA = Coordinates(latitude=14.0723, longitude=-87.1921)        # loc-1
HOSPITAL_VIERA = Coordinates(latitude=14.0840, longitude=-87.2069)    # loc-2
UNAH = Coordinates(latitude=14.0886, longitude=-87.1677)              # loc-3
AEROPUERTO = Coordinates(latitude=14.0608, longitude=-87.2172)        # loc-4
BANCO_CENTRAL = Coordinates(latitude=14.1020, longitude=-87.2070)     # loc-5

# 市外（サンペドロスーラ）
SAN_PEDRO_SULA = Coordinates(latitude=15.5042, longitude=-88.0250)


async def settle(seconds: float = 0.02):
    """バックグラウンドタスクを進める"""
    await asyncio.sleep(seconds)


# =============================================================================
# リポジトリ・サービス
# =============================================================================

@pytest.fixture
def store():
    """空のインメモリストア"""
    return InMemoryKeyValueStore()


@pytest.fixture
async def repository(store):
    """シード済みリポジトリ"""
    repo = LocationRepository(store)
    await repo.initialize()
    return repo


@pytest.fixture
def search_engine(repository):
    return LocationSearchEngine(repository)


@pytest.fixture
def updater(repository):
    """デフォルト（REJECT）ポリシーの更新サービス"""
    return AvailabilityUpdater(repository, policy=AvailabilityPolicy.REJECT)


# =============================================================================
# 位置情報
# =============================================================================

@pytest.fixture
def platform():
    """許可未確認・Multiplaza にいる端末"""
    return SimulatedLocationPlatform(position=MULTIPLAZA)


@pytest.fixture
def provider(platform):
    return GeolocationProvider(platform)


# =============================================================================
# FastAPIテストクライアント
# =============================================================================

@pytest.fixture
async def async_client(repository, search_engine, updater):
    """
    非同期HTTPテストクライアント

    app.stateに必要なオブジェクトを注入してテスト実行。
    """
    app.state.repository = repository
    app.state.search_engine = search_engine
    app.state.availability_updater = updater
    app.state.geolocation = GeolocationProvider(
        SimulatedLocationPlatform(position=MULTIPLAZA, granted=True)
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
