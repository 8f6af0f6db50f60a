"""
parkfinder/models/geolocation.py

位置情報の許可・監視に関するモデル
"""
from enum import Enum

from pydantic import BaseModel, Field


class PermissionState(str, Enum):
    """
    位置情報許可の状態

    unknown → {granted, denied_retryable, denied_permanent}
    """
    UNKNOWN = "unknown"
    GRANTED = "granted"
    DENIED_RETRYABLE = "denied_retryable"
    DENIED_PERMANENT = "denied_permanent"


class PermissionStatus(BaseModel):
    """
    プラットフォームから返される許可状態

    Attributes:
        granted (bool): 許可済みかどうか
        can_ask_again (bool): 再度ダイアログを出せるかどうか
        status (str): プラットフォーム側のステータス文字列
            （"granted" / "denied" / "undetermined" / "error"）
    """
    granted: bool
    can_ask_again: bool = Field(default=True, alias="canAskAgain")
    status: str = "undetermined"

    model_config = {"populate_by_name": True}

    @property
    def state(self) -> PermissionState:
        if self.granted:
            return PermissionState.GRANTED
        if self.status in ("undetermined", "error"):
            return PermissionState.UNKNOWN
        if self.can_ask_again:
            return PermissionState.DENIED_RETRYABLE
        return PermissionState.DENIED_PERMANENT


class WatchOptions(BaseModel):
    """
    位置監視の設定

    time_interval 秒ごと、または distance_interval メートル移動した時点の
    いずれか早い方で通知する。
    """
    time_interval: float = Field(default=10.0, gt=0, description="通知間隔（秒）")
    distance_interval: float = Field(default=50.0, ge=0, description="通知距離（メートル）")
    high_accuracy: bool = True
