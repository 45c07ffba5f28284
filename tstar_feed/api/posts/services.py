# tstar_feed/api/posts/services.py
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Set

from tstar_feed.api.auth.services import AuthProvider
from tstar_feed.core.errors import CloudOperationError, ContentRejectedError
from tstar_feed.models.post import Post, Comment
from tstar_feed.models.report import Report
from tstar_feed.models.session import Session
from tstar_feed.services.cloud_feed import CloudFeedRepository
from tstar_feed.services.feed_repository import FeedRepository, FeedSubscription
from tstar_feed.services.local_feed import LocalFeedRepository
from tstar_feed.services.moderation import ModerationStore
from tstar_feed.utils.content_filter import contains_profanity

logger = logging.getLogger(__name__)

EMPTY_POST_NOTICE = "Write something before posting."
PROFANITY_NOTICE = "Your post contains disallowed words."
EMPTY_COMMENT_NOTICE = "Write something before commenting."
MISSING_CREDENTIALS_NOTICE = "Email and password required."
SAVED_LOCALLY_NOTICE = "Saved locally instead."


class FeedMode(Enum):
    """프로세스 시작 시 한 번 결정되는 동작 모드"""
    CLOUD = "cloud"
    LOCAL = "local"


@dataclass
class WriteResult:
    """쓰기 작업 결과. fallback=True면 클라우드 실패로 로컬에 저장된 것입니다."""
    mode: FeedMode
    fallback: bool = False
    notice: Optional[str] = None


class FeedState:
    """
    화면에 표시할 최신 게시글 목록.
    스냅샷 또는 로컬 쓰기 결과로 통째로 교체되며, 병합하지 않습니다.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._posts: List[Post] = []
        self._version = 0

    @property
    def posts(self) -> List[Post]:
        with self._cond:
            return list(self._posts)

    @property
    def version(self) -> int:
        with self._cond:
            return self._version

    def replace(self, posts: Iterable[Post]) -> int:
        with self._cond:
            self._posts = list(posts)
            self._version += 1
            self._cond.notify_all()
            return self._version

    def wait_for_version(self, version: int, timeout: Optional[float] = None) -> bool:
        """상태 버전이 version 이상이 될 때까지 기다립니다."""
        with self._cond:
            return self._cond.wait_for(lambda: self._version >= version, timeout=timeout)


class FeedCoordinator:
    """
    클라우드/로컬 모드를 조정하는 서비스.
    - 모드는 생성 시 고정되며 바뀌지 않습니다.
    - 클라우드 모드의 쓰기(글/댓글/좋아요)는 매번 클라우드를 먼저 시도하고,
      해당 호출이 실패하면 그 작업 하나만 로컬 저장소에 대신 저장합니다. 이후 작업은 다시 클라우드를 시도합니다.
    - 로컬로 대신 저장된 내용은 클라우드에 다시 동기화하지 않습니다.
    - 읽기는 클라우드 모드에서 실시간 스냅샷, 로컬 모드에서 시작 시 로드와 쓰기 결과로 갱신됩니다.
    """

    def __init__(
        self,
        repository: FeedRepository,
        local: LocalFeedRepository,
        moderation: ModerationStore,
        auth: AuthProvider,
        mode: FeedMode,
        disallowed_words: Iterable[str] = (),
    ):
        self.repository = repository
        self.local = local
        self.moderation = moderation
        self.auth = auth
        self.mode = mode
        self.disallowed_words = tuple(disallowed_words)
        self.state = FeedState()

        self._session: Optional[Session] = None
        self._session_listeners: List[Callable[[Optional[Session]], None]] = []
        self._subscription: Optional[FeedSubscription] = None
        self._pump: Optional[threading.Thread] = None
        self._started = False

    # --- 생명주기 ---
    def start(self) -> "FeedCoordinator":
        """세션을 복원하고 읽기 경로를 시작합니다."""
        if self._started:
            return self
        self._started = True
        self.restore_session()

        if self.mode is FeedMode.CLOUD and isinstance(self.repository, CloudFeedRepository):
            self._subscription = self.repository.subscribe()
            self._pump = threading.Thread(
                target=self._consume, args=(self._subscription,), name="feed-snapshots", daemon=True
            )
            self._pump.start()
        else:
            self.state.replace(self.repository.list_posts())
        logger.info(f"피드 시작 (mode: {self.mode.value})")
        return self

    def _consume(self, subscription: FeedSubscription) -> None:
        try:
            for snapshot in subscription:
                self.state.replace(snapshot)
        except CloudOperationError as e:
            logger.error(f"피드 스냅샷 수신 중단: {e}")
        finally:
            subscription.close()

    def close(self) -> None:
        """실시간 구독을 해제하고 수신 스레드를 정리합니다."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.close()
        pump, self._pump = self._pump, None
        if pump is not None and pump is not threading.current_thread():
            pump.join(timeout=5)
        self._started = False

    def __enter__(self) -> "FeedCoordinator":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- 읽기 ---
    def list_posts(self) -> List[Post]:
        return self.state.posts

    def visible_posts(self) -> List[Post]:
        """현재 세션의 차단 목록을 적용한 게시글 목록"""
        return self.moderation.filter_visible(self.state.posts, self._session)

    def list_comments(self, post_id: str) -> List[Comment]:
        try:
            return self.repository.list_comments(post_id)
        except CloudOperationError as e:
            logger.warning(f"클라우드 댓글 조회 실패, 로컬 사용: {e}")
            return self.local.list_comments(post_id)

    # --- 쓰기 ---
    def _write(self, operation: str, call: Callable[[FeedRepository], Optional[List[Post]]],
               fallback_notice: Optional[str] = None) -> WriteResult:
        try:
            posts = call(self.repository)
            result = WriteResult(mode=self.mode)
        except CloudOperationError as e:
            if self.repository is self.local:
                raise
            logger.warning(f"클라우드 {operation} 실패, 로컬에 저장합니다: {e}")
            posts = call(self.local)
            result = WriteResult(mode=FeedMode.LOCAL, fallback=True, notice=fallback_notice)
        if posts is not None:
            self.state.replace(posts)
        return result

    def create_post(self, text: str, image_uri: Optional[str] = None) -> WriteResult:
        # 공백 검사만 하고 본문은 입력 그대로 저장
        text = text or ""
        if not text.strip():
            raise ContentRejectedError(EMPTY_POST_NOTICE)
        if contains_profanity(text, self.disallowed_words):
            raise ContentRejectedError(PROFANITY_NOTICE)
        session = self._session
        return self._write(
            "create_post",
            lambda repo: repo.create_post(text, image_uri or None, session),
            fallback_notice=SAVED_LOCALLY_NOTICE,
        )

    def add_comment(self, post_id: str, text: str) -> WriteResult:
        text = text or ""
        if not text.strip():
            raise ContentRejectedError(EMPTY_COMMENT_NOTICE)
        session = self._session
        return self._write("add_comment", lambda repo: repo.add_comment(post_id, text, session))

    def like_post(self, post_id: str) -> WriteResult:
        return self._write("like_post", lambda repo: repo.like_post(post_id))

    # --- 신고/차단 (항상 로컬) ---
    def report_post(self, post_id: str, reason: Optional[str] = None) -> Report:
        return self.moderation.report_post(post_id, self._session, reason)

    def block_author(self, identifier: str) -> Set[str]:
        return self.moderation.block_author(identifier, self._session)

    # --- 세션 ---
    @property
    def session(self) -> Optional[Session]:
        return self._session

    def on_session_changed(self, callback: Callable[[Optional[Session]], None]) -> Callable[[], None]:
        """
        세션 변경 리스너를 등록하고 즉시 현재 세션으로 한 번 호출합니다.
        반환된 함수를 호출하면 등록이 해제됩니다.
        """
        self._session_listeners.append(callback)
        callback(self._session)

        def remove():
            if callback in self._session_listeners:
                self._session_listeners.remove(callback)
        return remove

    def _set_session(self, session: Optional[Session]) -> None:
        self._session = session
        for listener in list(self._session_listeners):
            try:
                listener(session)
            except Exception as e:
                logger.error(f"세션 리스너 오류: {e}", exc_info=True)

    def restore_session(self) -> Optional[Session]:
        """저장된 세션을 다시 읽어 현재 세션으로 설정합니다."""
        self._set_session(self.auth.restore())
        return self._session

    @staticmethod
    def _require_credentials(email: Optional[str], password: Optional[str]) -> None:
        if not email or not password:
            raise ContentRejectedError(MISSING_CREDENTIALS_NOTICE)

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Optional[Session]:
        """계정을 만듭니다. 로컬 모드에서는 바로 로그인됩니다."""
        self._require_credentials(email, password)
        session = self.auth.sign_up(email, password, (display_name or "").strip() or None)
        if session is not None:
            self._set_session(session)
        return session

    def sign_in(self, email: str, password: str) -> Session:
        self._require_credentials(email, password)
        session = self.auth.sign_in(email, password)
        self._set_session(session)
        return session

    def quick_sign_in(self) -> Session:
        session = self.auth.quick_sign_in()
        self._set_session(session)
        return session

    def sign_out(self) -> None:
        self.auth.sign_out(self._session)
        self._set_session(None)
