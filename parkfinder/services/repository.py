"""
parkfinder/services/repository.py

駐車場リポジトリ

駐車場・パッケージ・購入済みパッケージの3つのコレクションを
キー・バリューストア上に保持する、唯一の情報源。

ストアレイアウト（各値はJSON配列、フィールドはcamelCase）:
    locations:      ParkingLocation[]
    packages:       LocationPackage[]
    user_packages:  UserLocationPackage[]

エラー方針:
- ストアの読み書き失敗・JSON不正は例外を外に出さず、ログに残して
  空リスト / False / 何もしない に縮退する
- 存在しないIDは None / False で返す

公式ドキュメント:
- Pydantic TypeAdapter: https://docs.pydantic.dev/latest/concepts/type_adapter/
- asyncio.Lock: https://docs.python.org/3/library/asyncio-sync.html#asyncio.Lock
"""
import asyncio
import logging
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter

from parkfinder.data import SEED_LOCATIONS, SEED_PACKAGES
from parkfinder.models.location import (
    LocationPackage,
    ParkingLocation,
    UserLocationPackage,
)
from .store import KeyValueStore, StoreDecodeError, StoreError


logger = logging.getLogger(__name__)


# =============================================================================
# 定数定義
# =============================================================================

STORAGE_KEYS = {
    "locations": "locations",
    "packages": "packages",
    "user_packages": "user_packages",
}


M = TypeVar("M", bound=BaseModel)


# =============================================================================
# 型付きコレクション
# =============================================================================

class JsonCollection(Generic[M]):
    """
    ストアの1キーを list[M] として読み書きする型付きビュー

    load() / save() はストアの例外（StoreError）と
    デコード失敗（ValueError）をそのまま送出する。
    """

    def __init__(self, store: KeyValueStore, key: str, model: type[M]):
        self.store = store
        self.key = key
        self._adapter = TypeAdapter(list[model])

    def parse(self, raw: str) -> list[M]:
        return self._adapter.validate_json(raw)

    async def load(self) -> list[M]:
        raw = await self.store.get(self.key)
        if raw is None:
            return []
        return self.parse(raw)

    async def save(self, items: list[M]) -> None:
        payload = self._adapter.dump_json(items, by_alias=True).decode("utf-8")
        await self.store.set(self.key, payload)


# =============================================================================
# リポジトリ
# =============================================================================

class LocationRepository:
    """
    駐車場リポジトリ

    ストアは外から注入する（InMemory / ファイル / その他）。
    initialize() はプロセス起動時に1回呼ぶ想定で、プロセス内の同時呼び出しは
    ロックで直列化される。別プロセスとの競合は考慮しない（単一書き込み前提）。

    Attributes:
        locations: 駐車場コレクション
        packages: パッケージコレクション
        user_packages: 購入済みパッケージコレクション

    使用例:
        repository = LocationRepository(InMemoryKeyValueStore())
        await repository.initialize()
        locations = await repository.get_all_locations()
    """

    def __init__(
        self,
        store: KeyValueStore,
        seed_locations: Optional[list[ParkingLocation]] = None,
        seed_packages: Optional[list[LocationPackage]] = None,
    ):
        self.store = store
        self.locations: JsonCollection[ParkingLocation] = JsonCollection(
            store, STORAGE_KEYS["locations"], ParkingLocation
        )
        self.packages: JsonCollection[LocationPackage] = JsonCollection(
            store, STORAGE_KEYS["packages"], LocationPackage
        )
        self.user_packages: JsonCollection[UserLocationPackage] = JsonCollection(
            store, STORAGE_KEYS["user_packages"], UserLocationPackage
        )
        self._seed_locations = SEED_LOCATIONS if seed_locations is None else seed_locations
        self._seed_packages = SEED_PACKAGES if seed_packages is None else seed_packages
        self._init_lock = asyncio.Lock()

    # =========================================================================
    # 初期化
    # =========================================================================

    async def initialize(self) -> None:
        """
        初期化処理

        locations が未保存、空配列、またはデコードできない場合にシードを書き込む。
        既にデータがあれば何もしない（冪等）。
        """
        async with self._init_lock:
            try:
                raw = await self.store.get(self.locations.key)
            except StoreDecodeError:
                logger.warning("Stored locations are not valid text, reseeding")
                await self._write_seed()
                return
            except StoreError:
                logger.exception("Failed to read locations during initialization")
                return

            if raw is None:
                logger.info("Creating initial parking data")
                await self._write_seed()
                return

            try:
                existing = self.locations.parse(raw)
            except ValueError:
                logger.warning("Stored locations are unreadable, reseeding")
                await self._write_seed()
                return

            if not existing:
                logger.info("Found empty location data, reseeding")
                await self._write_seed()
                return

            logger.info("Parking data already exists (%d locations)", len(existing))

    async def force_reseed(self) -> None:
        """3つのコレクションすべてをシードで上書き"""
        logger.info("Force reseeding parking data with %d locations", len(self._seed_locations))
        await self._write_seed()

    async def _write_seed(self) -> None:
        try:
            await self.locations.save(list(self._seed_locations))
            await self.packages.save(list(self._seed_packages))
            await self.user_packages.save([])
        except StoreError:
            logger.exception("Failed to write seed data")

    # =========================================================================
    # 読み取り
    # =========================================================================

    async def get_all_locations(self) -> list[ParkingLocation]:
        """全駐車場（読み取り失敗時は空リスト）"""
        try:
            return await self.locations.load()
        except (StoreError, ValueError):
            logger.exception("Failed to load parking locations")
            return []

    async def get_location_by_id(self, location_id: str) -> Optional[ParkingLocation]:
        locations = await self.get_all_locations()
        return next((loc for loc in locations if loc.id == location_id), None)

    async def get_packages_by_location(self, location_id: str) -> list[LocationPackage]:
        """駐車場に紐づくパッケージ（なければ空リスト）"""
        try:
            packages = await self.packages.load()
        except (StoreError, ValueError):
            logger.exception("Failed to load packages")
            return []

        found = [pkg for pkg in packages if pkg.location_id == location_id]
        logger.debug("Found %d packages for location %s", len(found), location_id)
        return found

    async def get_user_packages(self, user_id: str) -> list[UserLocationPackage]:
        """ユーザーの購入済みパッケージ（読み取り専用）"""
        try:
            user_packages = await self.user_packages.load()
        except (StoreError, ValueError):
            logger.exception("Failed to load user packages")
            return []
        return [pkg for pkg in user_packages if pkg.user_id == user_id]

    # =========================================================================
    # 書き込み
    # =========================================================================

    async def set_available_spots(self, location_id: str, new_count: int) -> bool:
        """
        空き台数を上書き

        コレクション全体を読み込み → 更新 → 保存する。
        0..total_spots の範囲チェックはしない（呼び出し側の責任）。

        Returns:
            bool: 更新できたら True、IDが存在しない・保存失敗なら False
        """
        try:
            locations = await self.locations.load()
        except (StoreError, ValueError):
            logger.exception("Failed to load locations for availability update")
            return False

        index = next((i for i, loc in enumerate(locations) if loc.id == location_id), None)
        if index is None:
            logger.warning("Location not found: %s", location_id)
            return False

        locations[index] = locations[index].model_copy(update={"available_spots": new_count})

        try:
            await self.locations.save(locations)
        except StoreError:
            logger.exception("Failed to save availability for %s", location_id)
            return False

        logger.info("Updated availability for %s to %d", location_id, new_count)
        return True
