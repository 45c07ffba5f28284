# tstar_feed/services/feed_repository.py
"""
피드 저장소 공통 인터페이스

로컬/클라우드 두 구현이 같은 create/list/comment/like 계약을 만족합니다.
쓰기 메서드는 저장소가 즉시 만들 수 있는 경우 갱신된 전체 목록을, 아니면 None을 반환합니다.
(클라우드는 실시간 스냅샷 스트림으로 갱신 결과를 전달합니다.)
"""
import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

from tstar_feed.models.post import Post, Comment
from tstar_feed.models.session import Session

logger = logging.getLogger(__name__)

# start(push) -> unsubscribe
SnapshotSource = Callable[[Callable[[List[Post]], None]], Callable[[], None]]


class FeedSubscription:
    """
    전체 피드 스냅샷의 취소 가능한 스트림.
    - 첫 반복(또는 open()) 시점에 구독을 시작합니다.
    - 각 항목은 병합할 델타가 아니라 목록 전체를 대체하는 스냅샷입니다.
    - close()는 구독을 해제하고 반복을 끝냅니다. 컨텍스트 매니저로 사용하면 모든 종료 경로에서 해제됩니다.
    - 닫힌 구독은 다시 열 수 없습니다. 새 스트림이 필요하면 저장소의 subscribe()를 다시 호출합니다.
    """
    _CLOSED = object()

    def __init__(self, source: SnapshotSource):
        self._source = source
        self._queue: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "FeedSubscription":
        if not self._start():
            raise RuntimeError("닫힌 구독은 다시 열 수 없습니다.")
        return self

    def _start(self) -> bool:
        """구독을 시작합니다. 이미 닫힌 구독이면 아무것도 하지 않고 False를 반환합니다."""
        with self._lock:
            if self._closed:
                return False
            if self._started:
                return True
            self._started = True
        try:
            unsubscribe = self._source(self._push)
        except Exception:
            with self._lock:
                self._closed = True
            self._queue.put(self._CLOSED)
            raise
        with self._lock:
            if not self._closed:
                self._unsubscribe = unsubscribe
                return True
        # 시작 도중 close()가 호출된 경우
        self._safe_unsubscribe(unsubscribe)
        return True

    def _push(self, posts: List[Post]) -> None:
        if not self._closed:
            self._queue.put(list(posts))

    def next_snapshot(self, timeout: Optional[float] = None) -> List[Post]:
        """
        다음 스냅샷을 기다려 반환합니다.
        :raises queue.Empty: timeout 안에 스냅샷이 없는 경우
        :raises StopIteration: 구독이 닫힌 경우
        """
        self._start()
        item = self._queue.get(timeout=timeout)
        if item is self._CLOSED:
            self._queue.put(self._CLOSED)
            raise StopIteration
        return item

    def __iter__(self) -> Iterator[List[Post]]:
        # 이미 닫힌 구독은 남은 스냅샷만 내보내고 종료
        self._start()
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                self._queue.put(self._CLOSED)
                return
            yield item

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        self._safe_unsubscribe(unsubscribe)
        self._queue.put(self._CLOSED)

    @staticmethod
    def _safe_unsubscribe(unsubscribe: Optional[Callable[[], None]]) -> None:
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception as e:
            logger.warning(f"구독 해제 실패: {e}")

    def __enter__(self) -> "FeedSubscription":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FeedRepository(ABC):
    """로컬/클라우드 피드 저장소가 공통으로 구현하는 계약"""
    backend: str = ""

    @abstractmethod
    def list_posts(self) -> List[Post]:
        """createdAt 내림차순 게시글 목록"""

    @abstractmethod
    def create_post(self, text: str, image_uri: Optional[str] = None,
                    session: Optional[Session] = None) -> Optional[List[Post]]:
        """새 게시글을 목록 맨 앞에 추가합니다."""

    @abstractmethod
    def add_comment(self, post_id: str, text: str,
                    session: Optional[Session] = None) -> Optional[List[Post]]:
        """댓글을 추가합니다. 공백뿐인 텍스트는 무시합니다."""

    @abstractmethod
    def like_post(self, post_id: str) -> Optional[List[Post]]:
        """좋아요 수를 1 증가시킵니다."""

    @abstractmethod
    def list_comments(self, post_id: str) -> List[Comment]:
        """게시글의 댓글을 작성 순서대로 반환합니다."""
