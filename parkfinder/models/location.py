"""
parkfinder/models/location.py

駐車場・パッケージ関連のモデル定義

ストアには camelCase（エイリアス）で保存し、Python側では snake_case で扱う。

公式ドキュメント:
- Pydantic Models: https://docs.pydantic.dev/latest/concepts/models/
- Pydantic Aliases: https://docs.pydantic.dev/latest/concepts/alias/
- Pydantic Validators: https://docs.pydantic.dev/latest/concepts/validators/
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# 座標
# =============================================================================

class Coordinates(BaseModel):
    """
    座標（緯度・経度）

    独立したIDを持たない値オブジェクト。検索の起点や距離計算に使う。
    範囲チェックは行わない（不正な座標は呼び出し側の責任）。
    """
    latitude: float = Field(..., description="緯度", examples=[14.0723])
    longitude: float = Field(..., description="経度", examples=[-87.1921])

    model_config = {"frozen": True}


# =============================================================================
# 駐車場
# =============================================================================

class ParkingLocation(BaseModel):
    """
    駐車場

    Attributes:
        id (str): 駐車場ID（作成後は不変）
        name (str): 名称
        address (str): 住所
        description (str): 説明
        latitude (float): 緯度
        longitude (float): 経度
        total_spots (int): 総台数（1以上、不変）
        available_spots (int): 空き台数
        hourly_rate (float): 1時間あたり料金
        is_active (bool): 有効フラグ（論理無効化）

    available_spots はモデル側では範囲チェックしない。
    0..total_spots の保証は AvailabilityUpdater が受け持つ。

    使用例:
        ParkingLocation(
            id="loc-1",
            name="Multiplaza",
            address="Blvd Morazán, Tegucigalpa",
            latitude=14.0723,
            longitude=-87.1921,
            total_spots=150,
            available_spots=45,
            hourly_rate=25,
        )
    """
    id: str = Field(..., description="駐車場ID", examples=["loc-1"])
    name: str = Field(..., description="名称", examples=["Multiplaza"])
    address: str = Field(..., description="住所")
    description: str = Field(default="", description="説明")
    latitude: float = Field(..., description="緯度")
    longitude: float = Field(..., description="経度")
    total_spots: int = Field(
        ...,
        alias="totalSpots",
        ge=1,
        description="総台数",
        examples=[150]
    )
    available_spots: int = Field(
        ...,
        alias="availableSpots",
        description="空き台数",
        examples=[45]
    )
    hourly_rate: float = Field(
        ...,
        alias="hourlyRate",
        ge=0,
        description="1時間あたり料金",
        examples=[25]
    )
    is_active: bool = Field(default=True, alias="isActive", description="有効フラグ")

    model_config = {"populate_by_name": True}

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)

    @property
    def occupied_spots(self) -> int:
        return self.total_spots - self.available_spots


class LocationWithDistance(ParkingLocation):
    """
    距離付き駐車場

    検索の起点が指定された場合のみ distance（km）が付与される。
    """
    distance: Optional[float] = Field(
        default=None,
        ge=0,
        description="起点からの距離（km）"
    )


# =============================================================================
# パッケージ
# =============================================================================

class LocationPackage(BaseModel):
    """
    駐車場ごとの前払い時間パッケージ

    price = original_price × (1 − discount/100) を想定するが強制はしない。
    is_popular は表示用のヒントのみ（一意性の制約なし）。
    """
    id: str = Field(..., description="パッケージID", examples=["pkg-1-2"])
    location_id: str = Field(..., alias="locationId", description="駐車場ID")
    name: str = Field(..., description="名称", examples=["4 Horas"])
    minutes: int = Field(..., gt=0, description="利用可能時間（分）")
    price: float = Field(..., ge=0, description="販売価格")
    original_price: float = Field(..., alias="originalPrice", ge=0, description="定価")
    discount: float = Field(default=0, ge=0, le=100, description="割引率（%）")
    description: str = Field(default="", description="説明")
    is_popular: bool = Field(default=False, alias="isPopular", description="人気フラグ")

    model_config = {"populate_by_name": True}


class UserLocationPackage(BaseModel):
    """
    ユーザーが購入したパッケージ

    購入・消費・失効のロジックはこのエンジンの外側にある。
    ここでは保存形式のみを定義する。
    """
    id: str
    user_id: str = Field(..., alias="userId")
    location_id: str = Field(..., alias="locationId")
    package_id: str = Field(..., alias="packageId")
    remaining_minutes: int = Field(..., alias="remainingMinutes", ge=0)
    purchase_date: datetime = Field(..., alias="purchaseDate")
    expiration_date: datetime = Field(..., alias="expirationDate")
    is_active: bool = Field(default=True, alias="isActive")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_dates(self) -> "UserLocationPackage":
        if self.expiration_date <= self.purchase_date:
            raise ValueError("expirationDate must be after purchaseDate")
        return self


# =============================================================================
# 集計
# =============================================================================

class AvailabilityStatus(BaseModel):
    """
    全駐車場の空き状況サマリー

    Attributes:
        total (int): 総台数の合計
        available (int): 空き台数の合計
        occupied (int): 使用中台数の合計（total − available）
        locations (int): 駐車場数
    """
    total: int = 0
    available: int = 0
    occupied: int = 0
    locations: int = 0


# =============================================================================
# APIレスポンスデータ
# =============================================================================

class LocationResult(LocationWithDistance):
    """検索結果1件（距離の表示用文字列付き）"""
    distance_label: Optional[str] = Field(
        default=None,
        alias="distanceLabel",
        description="距離の表示用文字列",
        examples=["850 m", "2.3 km"]
    )


class LocationsData(BaseModel):
    """
    駐車場一覧レスポンスデータ

    GET /api/locations, GET /api/locations/nearby のレスポンスに含まれる。
    """
    locations: list[LocationResult] = Field(..., description="駐車場リスト")
    total_count: int = Field(..., alias="totalCount", ge=0, description="件数")

    model_config = {"populate_by_name": True}


class PackagesData(BaseModel):
    """駐車場ごとのパッケージ一覧レスポンスデータ"""
    location_id: str = Field(..., alias="locationId")
    packages: list[LocationPackage]
    total_count: int = Field(..., alias="totalCount", ge=0)

    model_config = {"populate_by_name": True}


class AvailabilityUpdate(BaseModel):
    """PUT /api/locations/{id}/availability のリクエストボディ"""
    available_spots: int = Field(..., alias="availableSpots", examples=[30])

    model_config = {"populate_by_name": True}
