# tstar_feed/models/post.py
from dataclasses import dataclass, field
from typing import List, Optional

from tstar_feed.utils.datetime_utils import DateTimeUtils

@dataclass
class Comment:
    """게시글에 속한 댓글. 생성 후 수정/삭제되지 않습니다."""
    id: str
    author: str
    text: str
    author_uid: Optional[str] = None
    created_at: int = field(default_factory=DateTimeUtils.now_ms)

@dataclass
class Post:
    """
    피드 게시글.
    - 로컬 모드: comments에 댓글 목록을 직접 보관
    - 클라우드 모드: comments_count 카운터만 보관 (댓글은 하위 컬렉션)
    created_at은 epoch 밀리초입니다.
    """
    id: str
    author: str
    text: str
    author_uid: Optional[str] = None
    image_url: Optional[str] = None
    likes: int = 0
    comments: List[Comment] = field(default_factory=list)
    comments_count: int = 0
    created_at: int = field(default_factory=DateTimeUtils.now_ms)
    is_premium: bool = False

    @property
    def comment_total(self) -> int:
        """화면에 표시할 댓글 수. 댓글 목록이 있으면 그 길이, 없으면 카운터 값."""
        return len(self.comments) if self.comments else self.comments_count
