"""
parkfinder/services/store.py

キー・バリューストア

リポジトリが依存する永続ストアの抽象と実装。
文字列キーに対して文字列（JSON）を読み書きするだけの最小インターフェース。

- InMemoryKeyValueStore: テスト・開発用（プロセス内のdict）
- JsonFileKeyValueStore: キーごとに <key>.json を保存するファイルストア

I/O失敗はすべて StoreError として送出する。

公式ドキュメント:
- abc: https://docs.python.org/3/library/abc.html
- asyncio.to_thread: https://docs.python.org/3/library/asyncio-task.html#asyncio.to_thread
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """ストアの読み書き失敗"""


class StoreDecodeError(StoreError):
    """保存済みの値を文字列として読めない（不正なUTF-8など）"""


class KeyValueStore(ABC):
    """非同期キー・バリューストアのインターフェース"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """キーの値を返す（未保存なら None）"""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """キーに値を保存する"""


class InMemoryKeyValueStore(KeyValueStore):
    """プロセス内メモリのストア"""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        """現在の内容のコピー（テスト用）"""
        return dict(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    ファイルストア

    base_directory/<key>.json に値をそのまま書き込む。
    書き込みは一時ファイル経由で置き換えるため、途中で失敗しても
    既存ファイルが半端な内容になることはない。

    使用例:
        store = JsonFileKeyValueStore("data/store")
        await store.set("locations", "[]")
        raw = await store.get("locations")
    """

    def __init__(self, base_directory: Union[str, Path]):
        self.base_directory = Path(base_directory)

    def _path(self, key: str) -> Path:
        return self.base_directory / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except UnicodeError as e:
            raise StoreDecodeError(f"Failed to decode '{key}': {e}") from e
        except OSError as e:
            raise StoreError(f"Failed to read '{key}': {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except (OSError, UnicodeError) as e:
            raise StoreError(f"Failed to write '{key}': {e}") from e
        logger.debug("Stored %d bytes under '%s'", len(value), key)
