"""
parkfinder/models/search.py

検索条件モデル

検索範囲（scope）は判別共用体で表現する:
- Unbounded: 起点なし（距離は付与しない）
- Near: 起点あり（距離を付与するだけで絞り込まない）
- WithinRadius: 起点あり + 半径（km）で絞り込む

「半径だけ指定されて起点がない」状態は型として存在しない。

公式ドキュメント:
- Discriminated Unions: https://docs.pydantic.dev/latest/concepts/unions/#discriminated-unions
"""
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .location import Coordinates


class SortKey(str, Enum):
    """
    ソートキー

    - distance: 距離の昇順（距離なしは0扱い）
    - price: hourly_rate の昇順
    - availability: available_spots の降順
    - name: 名称の昇順（大文字小文字を区別）
    """
    DISTANCE = "distance"
    PRICE = "price"
    AVAILABILITY = "availability"
    NAME = "name"


# =============================================================================
# 検索範囲
# =============================================================================

class Unbounded(BaseModel):
    kind: Literal["unbounded"] = "unbounded"


class Near(BaseModel):
    kind: Literal["near"] = "near"
    origin: Coordinates


class WithinRadius(BaseModel):
    kind: Literal["within_radius"] = "within_radius"
    origin: Coordinates
    km: float = Field(..., ge=0, description="半径（km）")


SearchScope = Annotated[
    Union[Unbounded, Near, WithinRadius],
    Field(discriminator="kind"),
]


# =============================================================================
# 検索条件
# =============================================================================

class LocationFilters(BaseModel):
    """
    検索条件

    すべての条件は任意で、指定されたものだけを AND で適用する。

    Attributes:
        search_text: 名称または住所の部分一致（大文字小文字を区別しない）
        min_available_spots: 空き台数の下限
        max_price: hourly_rate の上限
        sort_by: ソートキー（None なら並べ替えない）
        scope: 検索範囲
    """
    search_text: Optional[str] = None
    min_available_spots: Optional[int] = None
    max_price: Optional[float] = None
    sort_by: Optional[SortKey] = None
    scope: SearchScope = Field(default_factory=Unbounded)

    @property
    def origin(self) -> Optional[Coordinates]:
        """距離計算の起点（Unbounded なら None）"""
        return getattr(self.scope, "origin", None)

    @classmethod
    def from_query(
        cls,
        search_text: Optional[str] = None,
        max_distance: Optional[float] = None,
        min_available_spots: Optional[int] = None,
        max_price: Optional[float] = None,
        sort_by: Optional[SortKey] = None,
        user_location: Optional[Coordinates] = None,
    ) -> "LocationFilters":
        """
        個別の任意フィールドから検索条件を組み立てる

        user_location なしの max_distance はエラーにせず無視する。

        使用例:
            filters = LocationFilters.from_query(
                max_price=30,
                sort_by=SortKey.DISTANCE,
                user_location=Coordinates(latitude=14.0723, longitude=-87.1921),
            )
        """
        if user_location is None:
            scope = Unbounded()
        elif max_distance is None:
            scope = Near(origin=user_location)
        else:
            scope = WithinRadius(origin=user_location, km=max_distance)

        return cls(
            search_text=search_text,
            min_available_spots=min_available_spots,
            max_price=max_price,
            sort_by=sort_by,
            scope=scope,
        )
