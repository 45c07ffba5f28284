# tstar_feed/services/kv_store.py
import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class StorageKeys:
    """로컬 저장소 키 목록"""
    POSTS = "@tstar_posts_v2"
    SESSION = "@tstar_session_v2"
    BLOCKS = "@tstar_blocks_v2"
    REPORTS = "@tstar_reports_v2"

    @classmethod
    def all(cls):
        return [cls.POSTS, cls.SESSION, cls.BLOCKS, cls.REPORTS]


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class KeyValueStore:
    """
    키마다 JSON 파일 하나를 사용하는 로컬 키-값 저장소.
    - save: 실패해도 예외를 올리지 않고 경고 로그만 남깁니다. (fire-and-forget)
    - load: 키가 없거나, 비어 있거나, JSON이 손상된 경우 fallback을 반환합니다.
    같은 키에 대한 동시 쓰기는 마지막 쓰기가 남습니다.
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def _path_for(self, key: str) -> Path:
        # 치환 후 이름이 같아지는 키끼리 파일을 공유하지 않도록 원래 키의 해시를 붙임
        safe = _UNSAFE_CHARS.sub("_", key).strip("_") or "_"
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
        return self.base_dir / f"{safe}-{digest}.json"

    def save(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value)
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self._path_for(key).write_text(raw, encoding="utf-8")
        except Exception as e:
            logger.warning(f"[KeyValueStore.save] 저장 실패 (key: {key}): {e}")

    def load(self, key: str, fallback: Optional[Any] = None) -> Any:
        path = self._path_for(key)
        try:
            if not path.exists():
                return fallback
            raw = path.read_text(encoding="utf-8")
            if not raw.strip():
                return fallback
            return json.loads(raw)
        except Exception as e:
            logger.warning(f"[KeyValueStore.load] 읽기 실패 (key: {key}), 기본값 사용: {e}")
            return fallback

    def clear(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except Exception as e:
            logger.warning(f"[KeyValueStore.clear] 삭제 실패 (key: {key}): {e}")

    def clear_all(self) -> None:
        """StorageKeys에 정의된 모든 키를 삭제합니다."""
        for key in StorageKeys.all():
            self.clear(key)
