# tstar_feed/utils/ids.py
from typing import Container, Optional

from .datetime_utils import DateTimeUtils


def time_based_id(prefix: str, taken: Container[str] = (), ts_ms: Optional[int] = None) -> str:
    """
    '<prefix><epoch-ms>' 형식의 ID를 생성합니다.
    같은 밀리초에 생성되어 이미 사용 중인 ID와 겹치면 값을 1씩 올려 고유성을 보장합니다.
    """
    value = ts_ms if ts_ms is not None else DateTimeUtils.now_ms()
    candidate = f"{prefix}{value}"
    while candidate in taken:
        value += 1
        candidate = f"{prefix}{value}"
    return candidate
