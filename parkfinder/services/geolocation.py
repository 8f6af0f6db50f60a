"""
parkfinder/services/geolocation.py

位置情報プロバイダー

端末の位置情報許可の状態管理、現在地の取得、位置の継続監視を行う。
プラットフォームの位置情報APIは LocationPlatform として外から注入する。

失敗方針:
- 許可が得られない・プラットフォームが失敗した場合は None を返す
  （呼び出し側は「位置情報なしで続行」と扱う）
- 監視のサブスクリプションは呼び出し側が stop() する。
  プロバイダーが勝手に止めることはない
"""
import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

from parkfinder.models.geolocation import PermissionState, PermissionStatus, WatchOptions
from parkfinder.models.location import Coordinates
from .geo import distance_km
from .mapbox_client import MapboxGeocoder


logger = logging.getLogger(__name__)


LocationCallback = Callable[[Coordinates], Union[None, Awaitable[None]]]


class PlatformError(Exception):
    """プラットフォームの位置情報APIの失敗"""


# =============================================================================
# サブスクリプション
# =============================================================================

class LocationSubscription:
    """
    位置監視のハンドル

    stop() で監視を止める。async with で使うとブロックを抜けた時点で止まる。

    使用例:
        subscription = await provider.watch_location(on_update)
        ...
        subscription.stop()
    """

    def __init__(self, task: asyncio.Task, on_stop: Optional[Callable[[], None]] = None):
        self._task = task
        self._on_stop = on_stop

    @property
    def active(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        if self._on_stop is not None:
            self._on_stop()
            self._on_stop = None
        self._task.cancel()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.stop()


# =============================================================================
# プラットフォーム
# =============================================================================

class LocationPlatform(ABC):
    """
    端末の位置情報APIのインターフェース

    実装は失敗時に PlatformError を送出する。
    """

    @abstractmethod
    async def request_permission(self) -> PermissionStatus:
        """許可ダイアログを表示して結果を返す"""

    @abstractmethod
    async def get_permission(self) -> PermissionStatus:
        """ダイアログを出さずに現在の許可状態を返す"""

    @abstractmethod
    async def get_current_position(self, options: WatchOptions) -> Coordinates:
        """現在地を1回取得"""

    @abstractmethod
    async def watch_position(
        self,
        options: WatchOptions,
        callback: LocationCallback,
    ) -> LocationSubscription:
        """位置の継続監視を開始"""

    @abstractmethod
    async def has_services_enabled(self) -> bool:
        """端末の位置情報サービスが有効か"""


class SimulatedLocationPlatform(LocationPlatform):
    """
    プロセス内で動くシミュレーション用プラットフォーム

    サーバープロセスやテストで使う。move_to() で端末の移動を再現する。
    監視は time_interval 秒ごと、または distance_interval メートル以上の
    移動のいずれか早い方で通知する。

    Args:
        position: 現在地（None なら位置が取得できない状態）
        permission_answer: request_permission() に対する応答
        granted: True なら最初から許可済み
        services_enabled: 位置情報サービスの有効/無効
    """

    def __init__(
        self,
        position: Optional[Coordinates] = None,
        permission_answer: Optional[PermissionStatus] = None,
        granted: bool = False,
        services_enabled: bool = True,
    ):
        self.position = position
        self.services_enabled = services_enabled
        self.permission_answer = permission_answer or PermissionStatus(
            granted=True, can_ask_again=True, status="granted"
        )
        if granted:
            self._permission = PermissionStatus(granted=True, can_ask_again=True, status="granted")
        else:
            self._permission = PermissionStatus(granted=False, can_ask_again=True, status="undetermined")
        self.permission_requests = 0
        self._watchers: set[asyncio.Event] = set()

    async def request_permission(self) -> PermissionStatus:
        self.permission_requests += 1
        self._permission = self.permission_answer
        return self._permission

    async def get_permission(self) -> PermissionStatus:
        return self._permission

    def _ensure_available(self) -> Coordinates:
        if not self.services_enabled:
            raise PlatformError("Location services are disabled")
        if not self._permission.granted:
            raise PlatformError("Location permission not granted")
        if self.position is None:
            raise PlatformError("Current position is unavailable")
        return self.position

    async def get_current_position(self, options: WatchOptions) -> Coordinates:
        return self._ensure_available()

    async def has_services_enabled(self) -> bool:
        return self.services_enabled

    def move_to(self, position: Coordinates) -> None:
        """端末を移動させ、監視中のタスクに通知"""
        self.position = position
        for moved in self._watchers:
            moved.set()

    async def watch_position(
        self,
        options: WatchOptions,
        callback: LocationCallback,
    ) -> LocationSubscription:
        self._ensure_available()
        moved = asyncio.Event()
        self._watchers.add(moved)

        task = asyncio.create_task(self._watch(options, callback, moved))
        return LocationSubscription(task, on_stop=lambda: self._watchers.discard(moved))

    async def _watch(
        self,
        options: WatchOptions,
        callback: LocationCallback,
        moved: asyncio.Event,
    ) -> None:
        loop = asyncio.get_running_loop()
        last_emitted = self.position
        await _invoke(callback, last_emitted)
        # 小さな移動では次回の時間通知を遅らせない
        deadline = loop.time() + options.time_interval

        while True:
            try:
                await asyncio.wait_for(moved.wait(), timeout=max(deadline - loop.time(), 0))
            except asyncio.TimeoutError:
                # 時間経過による通知
                last_emitted = self.position
                await _invoke(callback, last_emitted)
                deadline = loop.time() + options.time_interval
                continue

            moved.clear()
            meters = distance_km(last_emitted, self.position) * 1000
            if meters >= options.distance_interval:
                last_emitted = self.position
                await _invoke(callback, last_emitted)
                deadline = loop.time() + options.time_interval


async def _invoke(callback: LocationCallback, coordinates: Coordinates) -> None:
    result = callback(coordinates)
    if inspect.isawaitable(result):
        await result


# =============================================================================
# 位置情報プロバイダー
# =============================================================================

class GeolocationProvider:
    """
    位置情報プロバイダー

    Attributes:
        platform: 端末の位置情報API
        geocoder: 住所⇔座標変換（任意）
        state: 最後に確認した許可状態

    使用例:
        provider = GeolocationProvider(platform, geocoder=MapboxGeocoder(token))
        origin = await provider.get_current_location()
        if origin is None:
            ...  # 位置情報なしで続行
    """

    def __init__(self, platform: LocationPlatform, geocoder: Optional[MapboxGeocoder] = None):
        self.platform = platform
        self.geocoder = geocoder
        self.state = PermissionState.UNKNOWN

    # =========================================================================
    # 許可
    # =========================================================================

    async def request_permission(self) -> PermissionStatus:
        """
        許可ダイアログを表示

        二度と尋ねられない拒否の場合、設定画面への誘導は呼び出し側が行う。
        """
        logger.info("Requesting location permission...")
        try:
            status = await self.platform.request_permission()
        except PlatformError:
            logger.exception("Error requesting location permission")
            return PermissionStatus(granted=False, can_ask_again=False, status="error")

        self._update_state(status)
        if self.state is PermissionState.DENIED_PERMANENT:
            logger.warning("Location permission permanently denied; enable it in system settings")
        elif self.state is PermissionState.DENIED_RETRYABLE:
            logger.info("Location permission denied")
        return status

    async def check_permission(self) -> PermissionStatus:
        """ダイアログを出さずに許可状態を確認"""
        try:
            status = await self.platform.get_permission()
        except PlatformError:
            logger.exception("Error checking location permission")
            return PermissionStatus(granted=False, can_ask_again=False, status="error")

        self._update_state(status)
        return status

    def _update_state(self, status: PermissionStatus) -> None:
        if status.status != "error":
            self.state = status.state

    async def _ensure_permission(self) -> bool:
        permission = await self.check_permission()
        if permission.granted:
            return True
        logger.info("Location permission not granted, requesting...")
        permission = await self.request_permission()
        return permission.granted

    # =========================================================================
    # 位置取得
    # =========================================================================

    async def get_current_location(self) -> Optional[Coordinates]:
        """現在地を取得（許可なし・失敗時は None）"""
        if not await self._ensure_permission():
            return None

        try:
            position = await self.platform.get_current_position(WatchOptions(high_accuracy=True))
        except PlatformError:
            logger.exception("Error getting current location")
            return None

        logger.debug("Current location: %s", position)
        return position

    async def watch_location(
        self,
        callback: LocationCallback,
        options: Optional[WatchOptions] = None,
    ) -> Optional[LocationSubscription]:
        """
        位置の継続監視を開始

        デフォルトは10秒ごと、または50m移動ごとに callback を呼ぶ。

        Returns:
            LocationSubscription | None: 許可がない・失敗時は None
        """
        if not await self._ensure_permission():
            return None

        try:
            return await self.platform.watch_position(options or WatchOptions(), callback)
        except PlatformError:
            logger.exception("Error watching user location")
            return None

    async def is_location_enabled(self) -> bool:
        """端末の位置情報サービスが有効か（失敗時は False）"""
        try:
            enabled = await self.platform.has_services_enabled()
        except PlatformError:
            logger.exception("Error checking location services")
            return False

        if not enabled:
            logger.warning("Location services are disabled on the device")
        return enabled

    # =========================================================================
    # ジオコーディング
    # =========================================================================

    async def address_from_coordinates(self, coordinates: Coordinates) -> Optional[str]:
        if self.geocoder is None:
            return None
        return await self.geocoder.reverse(coordinates)

    async def coordinates_from_address(self, address: str) -> Optional[Coordinates]:
        if self.geocoder is None:
            return None
        return await self.geocoder.forward(address)
