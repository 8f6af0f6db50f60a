"""
parkfinder/models/common.py

共通モデル定義

APIレスポンスの統一エンベロープとエラー詳細モデル。
UI・管理画面レイヤーはこの形式だけを前提にする。

公式ドキュメント:
- Pydantic V2: https://docs.pydantic.dev/latest/
- Generic Models: https://docs.pydantic.dev/latest/concepts/models/#generic-models
"""
from typing import TypeVar, Generic, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


# =============================================================================
# エラーコード
# =============================================================================

INVALID_COORDINATES = "INVALID_COORDINATES"
LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
INVALID_SPOT_COUNT = "INVALID_SPOT_COUNT"
INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# エラーモデル
# =============================================================================

class ErrorDetail(BaseModel):
    """
    エラー詳細モデル

    Attributes:
        code (str): エラーコード
        message (str): 表示用メッセージ

    エラーコード一覧:
        - INVALID_COORDINATES: 座標 "緯度,経度" の形式が不正
        - LOCATION_NOT_FOUND: 指定IDの駐車場が存在しない
        - INVALID_SPOT_COUNT: 空き台数が 0..総台数 の範囲外
        - INTERNAL_ERROR: 内部エラー
    """
    code: str = Field(
        ...,
        description="エラーコード",
        examples=[LOCATION_NOT_FOUND, INVALID_SPOT_COUNT]
    )
    message: str = Field(
        ...,
        description="表示用メッセージ",
        examples=["駐車場が見つかりませんでした"]
    )


# =============================================================================
# 統一APIレスポンスモデル
# =============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """
    統一APIレスポンスモデル（ジェネリック型）

    成功時は data、失敗時は error を格納する。
    検索結果が0件の場合も success=True（空リスト）で返す。

    Attributes:
        success (bool): 成功フラグ
        data (Optional[T]): 成功時のデータ
        error (Optional[ErrorDetail]): 失敗時のエラー詳細
    """
    success: bool = Field(..., description="リクエスト成功フラグ")
    data: Optional[T] = Field(default=None, description="成功時のレスポンスデータ")
    error: Optional[ErrorDetail] = Field(default=None, description="失敗時のエラー詳細")


# =============================================================================
# ヘルパー関数
# =============================================================================

def create_success_response(data: T) -> ApiResponse[T]:
    """成功レスポンスを作成"""
    return ApiResponse(success=True, data=data)


def create_error_response(code: str, message: str) -> ApiResponse:
    """エラーレスポンスを作成"""
    return ApiResponse(
        success=False,
        error=ErrorDetail(code=code, message=message)
    )
