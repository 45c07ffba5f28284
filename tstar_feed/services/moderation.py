# tstar_feed/services/moderation.py
import logging
import threading
from typing import Dict, Iterable, List, Optional, Set

from tstar_feed.core.errors import ContentRejectedError
from tstar_feed.models.post import Post
from tstar_feed.models.report import Report, DEFAULT_REPORT_REASON
from tstar_feed.models.session import Session, GUEST_KEY, display_name_of
from tstar_feed.schemas.feed_schema import load_reports, dump_reports
from tstar_feed.services.kv_store import KeyValueStore, StorageKeys
from tstar_feed.utils.ids import time_based_id

logger = logging.getLogger(__name__)

MAX_REPORTS = 1000


def block_key(session: Optional[Session]) -> str:
    """차단 목록을 구분하는 키. 로그인하지 않은 경우 'guest'."""
    return session.uid if session and session.uid else GUEST_KEY


class ModerationStore:
    """
    차단/신고 목록을 관리하는 로컬 전용 저장소.
    모드(클라우드/로컬)와 관계없이 항상 로컬 키-값 저장소만 사용합니다.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._lock = threading.Lock()

    def _load_blocks(self) -> Dict[str, List[str]]:
        raw = self.store.load(StorageKeys.BLOCKS, {})
        if not isinstance(raw, dict):
            logger.warning("차단 목록 형식이 올바르지 않아 초기화합니다.")
            return {}
        return {k: [str(v) for v in vals] for k, vals in raw.items() if isinstance(vals, list)}

    def blocked_for(self, session: Optional[Session]) -> Set[str]:
        """현재 세션이 차단한 작성자 식별자(이름 또는 uid) 집합"""
        return set(self._load_blocks().get(block_key(session), []))

    def block_author(self, identifier: str, session: Optional[Session]) -> Set[str]:
        """
        작성자를 현재 세션의 차단 목록에 추가합니다. 이미 차단된 경우 변화가 없습니다.
        해제 기능은 없습니다.
        """
        identifier = (identifier or "").strip()
        if not identifier:
            raise ContentRejectedError("Nothing to block.")
        with self._lock:
            blocks = self._load_blocks()
            key = block_key(session)
            mine = blocks.get(key, [])
            if identifier not in mine:
                mine = mine + [identifier]
            blocks[key] = mine
            self.store.save(StorageKeys.BLOCKS, blocks)
        logger.info(f"작성자 차단 (session: {key}, identifier: {identifier})")
        return set(mine)

    def report_post(self, post_id: str, session: Optional[Session], reason: Optional[str] = None) -> Report:
        """신고 기록을 맨 앞에 추가하고 최근 1000건만 유지합니다."""
        with self._lock:
            reports = load_reports(self.store.load(StorageKeys.REPORTS, []))
            report = Report(
                id=time_based_id("r", {r.id for r in reports}),
                post_id=post_id,
                reporter=display_name_of(session),
                reason=(reason or "").strip() or DEFAULT_REPORT_REASON,
            )
            reports = [report] + reports
            self.store.save(StorageKeys.REPORTS, dump_reports(reports[:MAX_REPORTS]))
        logger.info(f"게시글 신고 저장 (post_id: {post_id}, report_id: {report.id})")
        return report

    def list_reports(self) -> List[Report]:
        """최신 신고가 앞에 오는 신고 목록"""
        return load_reports(self.store.load(StorageKeys.REPORTS, []))

    def filter_visible(self, posts: Iterable[Post], session: Optional[Session]) -> List[Post]:
        """작성자 이름과 작성자 uid가 모두 차단 목록에 없는 게시글만 남깁니다."""
        blocked = self.blocked_for(session)
        if not blocked:
            return list(posts)
        return [
            p for p in posts
            if p.author not in blocked and (p.author_uid is None or p.author_uid not in blocked)
        ]
