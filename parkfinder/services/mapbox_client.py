"""
parkfinder/services/mapbox_client.py

Mapbox ジオコーディングクライアント

住所 ⇔ 座標の変換（正引き・逆引き）を行う。
検索アルゴリズムの本体ではなく、失敗時は None を返すベストエフォートのサービス。

公式ドキュメント:
- Mapbox Geocoding API (v5): https://docs.mapbox.com/api/search/geocoding-v5/
- httpx AsyncClient: https://www.python-httpx.org/async/
"""
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from parkfinder.models.location import Coordinates


logger = logging.getLogger(__name__)


# =============================================================================
# 定数定義
# =============================================================================

MAPBOX_API_BASE = "https://api.mapbox.com"

# 参照: https://docs.mapbox.com/api/search/geocoding-v5/#forward-geocoding
GEOCODING_PATH = "/geocoding/v5/mapbox.places"


# =============================================================================
# Mapboxジオコーダー
# =============================================================================

class MapboxGeocoder:
    """
    Mapbox ジオコーダー

    httpx.AsyncClient を1つ保持して使い回す。

    Attributes:
        _client (httpx.AsyncClient): HTTPクライアント
        _access_token (str): Mapbox アクセストークン

    使用例:
        async with MapboxGeocoder(access_token) as geocoder:
            address = await geocoder.reverse(Coordinates(latitude=14.0723, longitude=-87.1921))
            coords = await geocoder.forward("Blvd Morazán, Tegucigalpa")
    """

    def __init__(
        self,
        access_token: str,
        language: str = "es",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        初期化

        Args:
            access_token: Mapbox アクセストークン
            language: 結果の言語
            transport: httpx トランスポート（テスト時に MockTransport を渡す）
        """
        self._access_token = access_token
        self._language = language
        self._client = httpx.AsyncClient(
            base_url=MAPBOX_API_BASE,
            timeout=httpx.Timeout(connect=5.0, read=10.0, write=5.0, pool=10.0),
            headers={
                "User-Agent": "ParkFinder/1.0",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self._client.aclose()

    # =========================================================================
    # ジオコーディング
    # =========================================================================

    async def _first_feature(self, query: str) -> Optional[dict]:
        """検索クエリを投げて最初の feature を返す（失敗時 None）"""
        url = f"{GEOCODING_PATH}/{quote(query, safe=',-.')}.json"
        params = {
            "access_token": self._access_token,
            "language": self._language,
            "limit": 1,
        }

        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            features = response.json().get("features", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Mapbox geocoding failed for %r: %s", query, e)
            return None

        return features[0] if features else None

    async def reverse(self, coordinates: Coordinates) -> Optional[str]:
        """
        座標 → 住所（逆ジオコーディング）

        Mapbox のクエリは "経度,緯度" の順。
        """
        query = f"{coordinates.longitude},{coordinates.latitude}"
        feature = await self._first_feature(query)
        if feature is None:
            return None
        return feature.get("place_name") or None

    async def forward(self, address: str) -> Optional[Coordinates]:
        """住所 → 座標（正ジオコーディング）"""
        if not address.strip():
            return None

        feature = await self._first_feature(address)
        if feature is None:
            return None

        center = feature.get("center")
        if not center or len(center) != 2:
            return None
        lon, lat = center
        return Coordinates(latitude=lat, longitude=lon)
