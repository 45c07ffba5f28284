# tstar_feed/services/cloud_feed.py
import logging
from typing import Any, List, Optional

from firebase_admin import firestore
from marshmallow import ValidationError

from tstar_feed.core.errors import BlobUploadError, CloudOperationError
from tstar_feed.models.post import Post, Comment
from tstar_feed.models.session import Session, display_name_of, uid_of
from tstar_feed.schemas.feed_schema import load_post_document, load_comment_document
from tstar_feed.services.feed_repository import FeedRepository, FeedSubscription
from tstar_feed.services.storage_service import BlobStorageService

logger = logging.getLogger(__name__)

POSTS_COLLECTION = 'posts'
COMMENTS_COLLECTION = 'comments'


class CloudFeedRepository(FeedRepository):
    """
    Firestore 기반 피드 저장소.
    - 목록은 createdAt 내림차순 쿼리의 실시간 스냅샷 스트림으로 제공합니다.
    - 좋아요/댓글 수는 클라이언트 측 읽기-쓰기 대신 서버 측 Increment로 원자적으로 증가시킵니다.
    - 모든 백엔드 예외는 CloudOperationError로 감싸서 올립니다.
    """
    backend = "cloud"

    def __init__(self, db: Any, uploader: Optional[BlobStorageService] = None):
        self.db = db
        self.posts_ref = self.db.collection(POSTS_COLLECTION)
        self.uploader = uploader

    def _feed_query(self):
        return self.posts_ref.order_by('createdAt', direction=firestore.Query.DESCENDING)

    def _to_posts(self, docs) -> List[Post]:
        posts = []
        for doc in docs:
            try:
                posts.append(load_post_document(doc.id, doc.to_dict()))
            except ValidationError as e:
                logger.warning(f"읽을 수 없는 게시글 문서를 건너뜁니다 (doc_id: {doc.id}): {e.messages}")
        return posts

    def subscribe(self) -> FeedSubscription:
        """피드 쿼리에 대한 실시간 스냅샷 스트림을 만듭니다. 실제 구독은 첫 반복 시 시작됩니다."""
        def start(push):
            def on_snapshot(col_snapshot, changes, read_time):
                push(self._to_posts(col_snapshot))
            try:
                watch = self._feed_query().on_snapshot(on_snapshot)
            except Exception as e:
                logger.error(f"피드 구독 실패: {e}", exc_info=True)
                raise CloudOperationError("subscribe", f"피드 구독 실패: {e}") from e
            logger.info("Firestore 피드 구독 시작")
            return watch.unsubscribe
        return FeedSubscription(start)

    def list_posts(self) -> List[Post]:
        """구독을 열어 첫 스냅샷을 받은 뒤 구독을 닫습니다."""
        with self.subscribe() as subscription:
            return subscription.next_snapshot()

    def create_post(self, text: str, image_uri: Optional[str] = None,
                    session: Optional[Session] = None) -> None:
        image_url = None
        if image_uri:
            if self.uploader is None:
                raise BlobUploadError("이미지 업로드 서비스가 설정되지 않았습니다.")
            # 업로드 실패 시 BlobUploadError가 그대로 올라가 게시글 생성 전체가 폴백됩니다.
            image_url = self.uploader.upload_image(image_uri)
        try:
            _, doc_ref = self.posts_ref.add({
                'text': text,
                'author': display_name_of(session),
                'authorUid': uid_of(session),
                'imageUrl': image_url,
                'likes': 0,
                'commentsCount': 0,
                'createdAt': firestore.SERVER_TIMESTAMP,
                'isPremium': False,
            })
        except Exception as e:
            logger.error(f"Firestore 게시글 생성 실패: {e}", exc_info=True)
            raise CloudOperationError("create_post", f"게시글 생성 실패: {e}") from e
        logger.info(f"Firestore 게시글 생성 성공 (post_id: {doc_ref.id})")
        return None

    def add_comment(self, post_id: str, text: str,
                    session: Optional[Session] = None) -> None:
        text = text or ""
        if not text.strip():
            return None
        post_ref = self.posts_ref.document(post_id)
        try:
            post_ref.collection(COMMENTS_COLLECTION).add({
                'text': text,
                'author': display_name_of(session),
                'authorUid': uid_of(session),
                'createdAt': firestore.SERVER_TIMESTAMP,
            })
            post_ref.update({'commentsCount': firestore.Increment(1)})
        except Exception as e:
            logger.error(f"Firestore 댓글 생성 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise CloudOperationError("add_comment", f"댓글 생성 실패: {e}", details={"post_id": post_id}) from e
        return None

    def like_post(self, post_id: str) -> None:
        try:
            self.posts_ref.document(post_id).update({'likes': firestore.Increment(1)})
        except Exception as e:
            logger.error(f"Firestore 좋아요 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise CloudOperationError("like_post", f"좋아요 실패: {e}", details={"post_id": post_id}) from e
        return None

    def list_comments(self, post_id: str) -> List[Comment]:
        try:
            docs = (self.posts_ref.document(post_id)
                    .collection(COMMENTS_COLLECTION)
                    .order_by('createdAt')
                    .stream())
            comments = []
            for doc in docs:
                try:
                    comments.append(load_comment_document(doc.id, doc.to_dict()))
                except ValidationError as e:
                    logger.warning(f"읽을 수 없는 댓글 문서를 건너뜁니다 (doc_id: {doc.id}): {e.messages}")
            return comments
        except Exception as e:
            logger.error(f"Firestore 댓글 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise CloudOperationError("list_comments", f"댓글 조회 실패: {e}", details={"post_id": post_id}) from e
