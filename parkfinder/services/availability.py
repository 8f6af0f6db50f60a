"""
parkfinder/services/availability.py

空き台数の更新

エンジン内で唯一の書き込み経路（シードでの再初期化も含む）。リポジトリの set_available_spots は
コレクション全体の read-modify-write なので、プロセス内の更新は
ロックで直列化する。

範囲外（0 未満・総台数超え）の値はポリシーで扱いを決める:
- PERMISSIVE: そのままリポジトリに渡す
- CLAMP: 0..総台数に丸める
- REJECT: SpotCountOutOfRange を送出（デフォルト）
"""
import asyncio
import logging
from enum import Enum

from .repository import LocationRepository


logger = logging.getLogger(__name__)


class AvailabilityPolicy(str, Enum):
    PERMISSIVE = "permissive"
    CLAMP = "clamp"
    REJECT = "reject"


class SpotCountOutOfRange(ValueError):
    """空き台数が 0..総台数 の範囲外"""

    def __init__(self, location_id: str, requested: int, total_spots: int):
        self.location_id = location_id
        self.requested = requested
        self.total_spots = total_spots
        super().__init__(
            f"availableSpots for {location_id} must be between 0 and {total_spots}, "
            f"got {requested}"
        )


class AvailabilityUpdater:
    """
    空き台数の更新サービス

    使用例:
        updater = AvailabilityUpdater(repository, policy=AvailabilityPolicy.CLAMP)
        updated = await updater.set_available_spots("loc-1", 30)
    """

    def __init__(
        self,
        repository: LocationRepository,
        policy: AvailabilityPolicy = AvailabilityPolicy.REJECT,
    ):
        self.repository = repository
        self.policy = policy
        self._lock = asyncio.Lock()

    async def set_available_spots(self, location_id: str, count: int) -> bool:
        """
        空き台数を更新

        Returns:
            bool: 更新できたら True、IDが存在しない・保存失敗なら False

        Raises:
            SpotCountOutOfRange: REJECT ポリシーで範囲外の値が渡された場合
        """
        async with self._lock:
            if self.policy is not AvailabilityPolicy.PERMISSIVE:
                location = await self.repository.get_location_by_id(location_id)
                if location is None:
                    logger.warning("Location not found: %s", location_id)
                    return False
                count = self._apply_policy(location_id, count, location.total_spots)

            return await self.repository.set_available_spots(location_id, count)

    async def reseed(self) -> None:
        """シードで再初期化（進行中の更新の書き込みと重ならない）"""
        async with self._lock:
            await self.repository.force_reseed()

    def _apply_policy(self, location_id: str, count: int, total_spots: int) -> int:
        if 0 <= count <= total_spots:
            return count
        if self.policy is AvailabilityPolicy.CLAMP:
            clamped = min(max(count, 0), total_spots)
            logger.info("Clamped availability for %s from %d to %d", location_id, count, clamped)
            return clamped
        raise SpotCountOutOfRange(location_id, count, total_spots)
