"""JsonEventStore - 保留中タスクレコードの永続化

プロセスをまたいでタスク開始時のメタデータを受け渡す唯一の手段。
単一のJSONオブジェクトファイル（キー: 相関キー、値: PendingTaskRecord）で構成する。

書き込みは常に「ファイル全体を読む → メモリ上で更新 → ファイル全体を書く」。
別キーへの同時書き込みが時間的に重ならなければ両方とも残る。
重なった場合は後勝ちになり得る（ロックファイルは使わない）。
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from domain.models.records import PendingTaskRecord
from shared.exceptions import EventStoreError

logger = logging.getLogger(__name__)


class EventStore(ABC):
    """相関キー → PendingTaskRecord のキーバリューストア"""

    @abstractmethod
    def put(self, key: str, record: PendingTaskRecord) -> None:
        """レコードを登録（同一キーは上書き）"""

    @abstractmethod
    def get(self, key: str) -> Optional[PendingTaskRecord]:
        """レコードを取得（存在しない場合None）"""

    @abstractmethod
    def remove(self, key: str) -> None:
        """レコードを削除（存在しなくてもエラーにしない）"""


class JsonEventStore(EventStore):
    """単一JSONファイルをバックエンドとするEvent Store"""

    def __init__(self, path: Path):
        """初期化

        Args:
            path: ストアファイルのパス（親ディレクトリは初回putで作成）
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def put(self, key: str, record: PendingTaskRecord) -> None:
        """レコードを登録

        ファイルが存在しない場合は親ディレクトリごと作成する。
        ファイルが壊れている場合は、このput分だけを含む新しいオブジェクトで置き換える。

        Raises:
            EventStoreError: 書き込みに失敗した場合
        """
        entries = self._load()
        entries[key] = record.to_dict()
        self._save(entries)
        logger.debug(f"put: key={key}, entries={len(entries)}")

    def get(self, key: str) -> Optional[PendingTaskRecord]:
        """レコードを取得

        ファイル不在・破損時は空のマップとして扱う。
        """
        value = self._load().get(key)
        if not isinstance(value, dict):
            return None
        return PendingTaskRecord.from_dict(key, value)

    def remove(self, key: str) -> None:
        """レコードを削除

        ファイル不在時、またはキーが無い場合はファイルに触れない。
        破損時は空オブジェクトで置き換える。

        Raises:
            EventStoreError: 書き込みに失敗した場合
        """
        if not self._path.exists():
            return
        entries, intact = self._read()
        if key not in entries and intact:
            logger.debug(f"remove: key={key} not found, store untouched")
            return
        entries.pop(key, None)
        self._save(entries)
        logger.debug(f"remove: key={key}, entries={len(entries)}")

    def _load(self) -> Dict[str, Any]:
        """ストアファイル全体を読み込む（不在・破損時は空dict）"""
        entries, _ = self._read()
        return entries

    def _read(self) -> Tuple[Dict[str, Any], bool]:
        """ストアファイルを読み込み、(エントリ, 破損していないか) を返す

        ファイル不在は破損扱いにしない。
        """
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}, True
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"ストアファイル破損、空として扱う: {self._path} ({e})")
            return {}, False
        except OSError as e:
            logger.warning(f"ストアファイル読み込み失敗、空として扱う: {self._path} ({e})")
            return {}, True

        if not isinstance(data, dict):
            logger.warning(f"ストアファイルがJSONオブジェクトではない、空として扱う: {self._path}")
            return {}, False
        return data, True

    def _save(self, entries: Dict[str, Any]) -> None:
        """ストアファイル全体を書き込む

        一時ファイルに書いてからrenameし、読み手が書きかけのファイルを見ないようにする。
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entries, f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise EventStoreError(f"ストアファイル書き込み失敗: {self._path} ({e})") from e
