"""前端展示偏好的持久化存储。

偏好以单个 JSON 对象保存在 {storage_root}/preferences.json，
写入采用临时文件 + os.replace，避免半写入的文件。
"""

import json
import os
from pathlib import Path
from typing import Any, Dict
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.exceptions import StoreError
from chat_core.infrastructure.logging.logger import logger


DARK_MODE_KEY = "darkMode"


class JsonPreferenceStore:
    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / "preferences.json"

    @property
    def path(self) -> Path:
        return self._path

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._read().get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).lower() in {"1", "true", "yes"}

    def set_bool(self, key: str, value: bool) -> None:
        data = self._read()
        data[key] = bool(value)
        self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            # 损坏的偏好文件按空处理，下一次写入会覆盖它
            logger.warning(f"Preference file unreadable: {e}", extra={"extra": {"path": str(self._path)}})
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self._root / f"preferences.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StoreError(code="STORE_WRITE_ERROR", message=str(e))


class DisplayPreferences:
    """深色/浅色模式偏好：启动时读取一次，每次切换时写回。"""

    def __init__(self, store: JsonPreferenceStore):
        self._store = store
        self._dark_mode = store.get_bool(DARK_MODE_KEY, False)

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    @property
    def theme(self) -> str:
        return "dark" if self._dark_mode else "light"

    def toggle(self) -> bool:
        self._dark_mode = not self._dark_mode
        self._store.set_bool(DARK_MODE_KEY, self._dark_mode)
        return self._dark_mode
