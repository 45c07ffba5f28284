# tstar_feed/models/session.py
from dataclasses import dataclass, field
from typing import Optional

from tstar_feed.utils.datetime_utils import DateTimeUtils

# 세션이 없을 때 작성자/신고자 이름과 차단 목록 키로 사용되는 값
GUEST_NAME = "Guest"
GUEST_KEY = "guest"

@dataclass
class Session:
    """
    현재 프로세스의 로그인 세션. 프로세스당 하나만 존재하며 로그인/로그아웃 시 통째로 교체됩니다.
    """
    uid: str
    display_name: str
    email: Optional[str] = None
    created_at: int = field(default_factory=DateTimeUtils.now_ms)


def display_name_of(session: Optional[Session]) -> str:
    return session.display_name if session and session.display_name else GUEST_NAME

def uid_of(session: Optional[Session]) -> Optional[str]:
    return session.uid if session else None
