"""
tests/test_geolocation.py

GeolocationProvider・SimulatedLocationPlatform のユニットテスト
"""
from unittest.mock import AsyncMock

import pytest

from parkfinder.models.geolocation import PermissionState, PermissionStatus, WatchOptions
from parkfinder.models.location import Coordinates
from parkfinder.services.geolocation import (
    GeolocationProvider,
    LocationPlatform,
    PlatformError,
    SimulatedLocationPlatform,
)
from tests.conftest import MULTIPLAZA, HOSPITAL_VIERA, settle


DENIED_RETRYABLE = PermissionStatus(granted=False, can_ask_again=True, status="denied")
DENIED_PERMANENT = PermissionStatus(granted=False, can_ask_again=False, status="denied")

# 約11m北
NEAR_MULTIPLAZA = Coordinates(latitude=14.0724, longitude=-87.1921)


class TestPermissionStatus:
    """許可状態の判定のテスト"""

    @pytest.mark.parametrize("status, expected", [
        (PermissionStatus(granted=True, status="granted"), PermissionState.GRANTED),
        (PermissionStatus(granted=False, status="undetermined"), PermissionState.UNKNOWN),
        (DENIED_RETRYABLE, PermissionState.DENIED_RETRYABLE),
        (DENIED_PERMANENT, PermissionState.DENIED_PERMANENT),
    ])
    def test_state(self, status, expected):
        assert status.state is expected


class TestPermission:
    """許可リクエストのテスト"""

    async def test_initial_state_is_unknown(self, provider):
        assert provider.state is PermissionState.UNKNOWN

    async def test_request_granted(self, provider):
        status = await provider.request_permission()

        assert status.granted is True
        assert provider.state is PermissionState.GRANTED

    async def test_request_denied_retryable(self):
        provider = GeolocationProvider(SimulatedLocationPlatform(permission_answer=DENIED_RETRYABLE))

        status = await provider.request_permission()

        assert status.can_ask_again is True
        assert provider.state is PermissionState.DENIED_RETRYABLE

    async def test_request_denied_permanent(self):
        provider = GeolocationProvider(SimulatedLocationPlatform(permission_answer=DENIED_PERMANENT))

        status = await provider.request_permission()

        assert status.can_ask_again is False
        assert provider.state is PermissionState.DENIED_PERMANENT

    async def test_check_does_not_prompt(self, provider, platform):
        status = await provider.check_permission()

        assert status.granted is False
        assert platform.permission_requests == 0

    async def test_platform_error_becomes_error_status(self):
        platform = AsyncMock(spec=LocationPlatform)
        platform.request_permission.side_effect = PlatformError("boom")
        provider = GeolocationProvider(platform)

        status = await provider.request_permission()

        assert status.granted is False
        assert status.status == "error"
        assert provider.state is PermissionState.UNKNOWN


class TestCurrentLocation:
    """現在地取得のテスト"""

    async def test_requests_permission_then_reads(self, provider, platform):
        location = await provider.get_current_location()

        assert location == MULTIPLAZA
        assert platform.permission_requests == 1

    async def test_already_granted_skips_request(self):
        platform = SimulatedLocationPlatform(position=MULTIPLAZA, granted=True)
        provider = GeolocationProvider(platform)

        assert await provider.get_current_location() == MULTIPLAZA
        assert platform.permission_requests == 0

    @pytest.mark.parametrize("answer", [DENIED_RETRYABLE, DENIED_PERMANENT])
    async def test_denied_returns_none(self, answer):
        provider = GeolocationProvider(
            SimulatedLocationPlatform(position=MULTIPLAZA, permission_answer=answer)
        )
        assert await provider.get_current_location() is None

    async def test_unavailable_position_returns_none(self):
        provider = GeolocationProvider(SimulatedLocationPlatform(position=None, granted=True))
        assert await provider.get_current_location() is None

    async def test_services_disabled_returns_none(self):
        provider = GeolocationProvider(
            SimulatedLocationPlatform(position=MULTIPLAZA, granted=True, services_enabled=False)
        )
        assert await provider.get_current_location() is None


class TestLocationServices:
    """位置情報サービスの有効確認のテスト"""

    async def test_enabled(self, provider):
        assert await provider.is_location_enabled() is True

    async def test_disabled(self):
        provider = GeolocationProvider(SimulatedLocationPlatform(services_enabled=False))
        assert await provider.is_location_enabled() is False

    async def test_platform_error_is_false(self):
        platform = AsyncMock(spec=LocationPlatform)
        platform.has_services_enabled.side_effect = PlatformError("boom")

        assert await GeolocationProvider(platform).is_location_enabled() is False


class TestWatchLocation:
    """位置監視のテスト"""

    async def test_default_cadence(self):
        options = WatchOptions()
        assert options.time_interval == 10
        assert options.distance_interval == 50

    async def test_emits_initial_position(self, provider):
        updates = []
        subscription = await provider.watch_location(updates.append)
        await settle()

        assert updates == [MULTIPLAZA]
        subscription.stop()

    async def test_emits_on_significant_movement_only(self, provider, platform):
        updates = []
        subscription = await provider.watch_location(
            updates.append, WatchOptions(time_interval=60, distance_interval=50)
        )
        await settle()

        platform.move_to(NEAR_MULTIPLAZA)
        await settle()
        assert updates == [MULTIPLAZA]

        platform.move_to(HOSPITAL_VIERA)
        await settle()
        assert updates == [MULTIPLAZA, HOSPITAL_VIERA]

        subscription.stop()

    async def test_emits_on_time_interval(self, provider):
        updates = []
        subscription = await provider.watch_location(
            updates.append, WatchOptions(time_interval=0.05, distance_interval=50)
        )
        await settle(0.3)
        subscription.stop()

        assert len(updates) >= 3
        assert all(update == MULTIPLAZA for update in updates)

    async def test_small_moves_do_not_delay_time_interval(self, provider, platform):
        """数メートルの揺れが続いても時間ごとの通知は届く"""
        updates = []
        subscription = await provider.watch_location(
            updates.append, WatchOptions(time_interval=0.1, distance_interval=50)
        )
        await settle()

        for i in range(10):
            platform.move_to(MULTIPLAZA if i % 2 else NEAR_MULTIPLAZA)
            await settle(0.05)
        subscription.stop()

        assert len(updates) >= 4

    async def test_async_callback(self, provider, platform):
        updates = []

        async def on_update(coordinates):
            updates.append(coordinates)

        subscription = await provider.watch_location(on_update, WatchOptions(time_interval=60))
        await settle()
        platform.move_to(HOSPITAL_VIERA)
        await settle()
        subscription.stop()

        assert updates == [MULTIPLAZA, HOSPITAL_VIERA]

    async def test_stop_ends_updates(self, provider, platform):
        updates = []
        subscription = await provider.watch_location(updates.append, WatchOptions(time_interval=60))
        await settle()

        subscription.stop()
        await settle()
        platform.move_to(HOSPITAL_VIERA)
        await settle()

        assert subscription.active is False
        assert updates == [MULTIPLAZA]

    async def test_context_manager_stops(self, provider):
        updates = []
        subscription = await provider.watch_location(updates.append, WatchOptions(time_interval=60))

        async with subscription:
            await settle()
        await settle()

        assert subscription.active is False

    async def test_denied_returns_none(self):
        provider = GeolocationProvider(
            SimulatedLocationPlatform(position=MULTIPLAZA, permission_answer=DENIED_PERMANENT)
        )
        assert await provider.watch_location(lambda c: None) is None

    async def test_platform_failure_returns_none(self):
        provider = GeolocationProvider(SimulatedLocationPlatform(position=None, granted=True))
        assert await provider.watch_location(lambda c: None) is None


class TestGeocoding:
    """ジオコーディング委譲のテスト"""

    async def test_without_geocoder(self, provider):
        assert await provider.address_from_coordinates(MULTIPLAZA) is None
        assert await provider.coordinates_from_address("Multiplaza") is None

    async def test_delegates_to_geocoder(self, platform):
        geocoder = AsyncMock()
        geocoder.reverse.return_value = "Blvd Morazán, Tegucigalpa"
        geocoder.forward.return_value = MULTIPLAZA
        provider = GeolocationProvider(platform, geocoder=geocoder)

        assert await provider.address_from_coordinates(MULTIPLAZA) == "Blvd Morazán, Tegucigalpa"
        assert await provider.coordinates_from_address("Multiplaza") == MULTIPLAZA
        geocoder.reverse.assert_awaited_once_with(MULTIPLAZA)
