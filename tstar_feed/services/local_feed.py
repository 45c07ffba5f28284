# tstar_feed/services/local_feed.py
import logging
import threading
from typing import List, Optional

from tstar_feed.models.post import Post, Comment
from tstar_feed.models.session import Session, display_name_of, uid_of
from tstar_feed.schemas.feed_schema import load_posts, dump_posts
from tstar_feed.services.feed_repository import FeedRepository
from tstar_feed.services.kv_store import KeyValueStore, StorageKeys
from tstar_feed.utils.ids import time_based_id

logger = logging.getLogger(__name__)

MAX_POSTS = 500
WELCOME_POST_ID = "p_start"
WELCOME_AUTHOR = "System"
WELCOME_TEXT = "Welcome to T-Star Traders - local demo. Add Firebase config to enable cloud mode."


class LocalFeedRepository(FeedRepository):
    """
    키-값 저장소만으로 동작하는 피드 저장소.
    모든 변경은 '읽기 -> 수정 -> 전체 저장' 순서로 처리되며, 다음 list_posts() 호출에 즉시 반영됩니다.
    저장 실패는 저장소에서 로그만 남기고 호출자에게 오류를 알리지 않습니다.
    """
    backend = "local"

    def __init__(self, store: KeyValueStore):
        self.store = store
        # 요청 스레드 간 읽기-수정-저장 사이클이 섞이지 않도록 직렬화
        self._lock = threading.RLock()

    def _read(self) -> List[Post]:
        return load_posts(self.store.load(StorageKeys.POSTS, []))

    def _write(self, posts: List[Post]) -> None:
        self.store.save(StorageKeys.POSTS, dump_posts(posts))

    def seed_if_needed(self) -> None:
        """게시글 키가 한 번도 저장된 적 없으면 환영 게시글 하나를 저장합니다."""
        with self._lock:
            if self.store.load(StorageKeys.POSTS, None) is not None:
                return
            welcome = Post(id=WELCOME_POST_ID, author=WELCOME_AUTHOR, text=WELCOME_TEXT)
            self._write([welcome])
            logger.info("로컬 피드 초기 게시글 생성")

    def list_posts(self) -> List[Post]:
        with self._lock:
            self.seed_if_needed()
            return self._read()

    def create_post(self, text: str, image_uri: Optional[str] = None,
                    session: Optional[Session] = None) -> List[Post]:
        with self._lock:
            current = self._read()
            post = Post(
                id=time_based_id("p", {p.id for p in current}),
                author=display_name_of(session),
                author_uid=uid_of(session),
                text=text,
                image_url=image_uri or None,
            )
            posts = ([post] + current)[:MAX_POSTS]
            self._write(posts)
        logger.info(f"로컬 게시글 저장 (post_id: {post.id})")
        return posts

    def add_comment(self, post_id: str, text: str,
                    session: Optional[Session] = None) -> List[Post]:
        text = text or ""
        with self._lock:
            posts = self._read()
            if not text.strip():
                return posts
            for post in posts:
                if post.id == post_id:
                    post.comments.append(Comment(
                        id=time_based_id("c", {c.id for c in post.comments}),
                        author=display_name_of(session),
                        author_uid=uid_of(session),
                        text=text,
                    ))
                    break
            else:
                logger.info(f"댓글 대상 게시글 없음 (post_id: {post_id})")
            self._write(posts)
        return posts

    def like_post(self, post_id: str) -> List[Post]:
        with self._lock:
            posts = self._read()
            for post in posts:
                if post.id == post_id:
                    post.likes += 1
                    break
            self._write(posts)
        return posts

    def list_comments(self, post_id: str) -> List[Comment]:
        for post in self.list_posts():
            if post.id == post_id:
                return list(post.comments)
        return []
