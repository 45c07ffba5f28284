# tstar_feed/schemas/feed_schema.py
"""
로컬 저장소 JSON과 Firestore 문서를 같은 모양의 Post/Comment/Session/Report 데이터클래스로
정규화하는 스키마 모음입니다. 저장 형식은 camelCase 키를 사용합니다.
"""
import logging
from typing import Any, Dict, List, Optional

from marshmallow import Schema, fields, pre_load, post_load, EXCLUDE, ValidationError

from tstar_feed.models.post import Post, Comment
from tstar_feed.models.report import Report, DEFAULT_REPORT_REASON
from tstar_feed.models.session import Session
from tstar_feed.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"


def _or_default(data: Dict[str, Any], key: str, default: Any) -> None:
    # None, 0, 빈 문자열 등 falsy 값이면 기본값으로 대체
    if not data.get(key):
        data[key] = default


class CommentSchema(Schema):
    """댓글 저장 형식"""
    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True)
    author = fields.Str(required=True)
    author_uid = fields.Str(data_key="authorUid", allow_none=True, load_default=None)
    text = fields.Str(required=True)
    created_at = fields.Int(data_key="createdAt", required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        _or_default(data, "author", data.get("authorName") or UNKNOWN_AUTHOR)
        _or_default(data, "text", "")
        data["createdAt"] = DateTimeUtils.normalize_timestamp_ms(data.get("createdAt"))
        return data

    @post_load
    def make_comment(self, data, **kwargs):
        return Comment(**data)


class PostSchema(Schema):
    """
    게시글 저장 형식.
    로컬 목록 항목과 Firestore 스냅샷 문서 모두 이 스키마로 읽어 같은 Post 객체가 됩니다.
    """
    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True)
    author = fields.Str(required=True)
    author_uid = fields.Str(data_key="authorUid", allow_none=True, load_default=None)
    text = fields.Str(required=True)
    image_url = fields.Str(data_key="imageUrl", allow_none=True, load_default=None)
    likes = fields.Int(load_default=0)
    comments = fields.List(fields.Nested(CommentSchema), load_default=list)
    comments_count = fields.Int(data_key="commentsCount", load_default=0)
    created_at = fields.Int(data_key="createdAt", required=True)
    is_premium = fields.Bool(data_key="isPremium", load_default=False)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        _or_default(data, "author", data.get("authorName") or UNKNOWN_AUTHOR)
        _or_default(data, "text", "")
        _or_default(data, "authorUid", None)
        _or_default(data, "imageUrl", None)
        _or_default(data, "likes", 0)
        _or_default(data, "commentsCount", 0)
        _or_default(data, "isPremium", False)
        if not isinstance(data.get("comments"), list):
            data["comments"] = []
        data["createdAt"] = DateTimeUtils.normalize_timestamp_ms(data.get("createdAt"))
        return data

    @post_load
    def make_post(self, data, **kwargs):
        return Post(**data)


class SessionSchema(Schema):
    """로컬 세션 저장 형식"""
    class Meta:
        unknown = EXCLUDE

    uid = fields.Str(required=True)
    display_name = fields.Str(data_key="displayName", required=True)
    email = fields.Str(allow_none=True, load_default=None)
    created_at = fields.Int(data_key="createdAt", load_default=None, allow_none=True)

    @post_load
    def make_session(self, data, **kwargs):
        data["created_at"] = DateTimeUtils.normalize_timestamp_ms(data.get("created_at"))
        return Session(**data)


class ReportSchema(Schema):
    """신고 기록 저장 형식"""
    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True)
    post_id = fields.Str(data_key="postId", required=True)
    reason = fields.Str(load_default=DEFAULT_REPORT_REASON)
    reporter = fields.Str(required=True)
    created_at = fields.Int(data_key="createdAt", required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        data["createdAt"] = DateTimeUtils.normalize_timestamp_ms(data.get("createdAt"))
        return data

    @post_load
    def make_report(self, data, **kwargs):
        return Report(**data)


_post_schema = PostSchema()
_comment_schema = CommentSchema()
_session_schema = SessionSchema()
_report_schema = ReportSchema()


def _load_many(schema: Schema, raw: Any, kind: str) -> list:
    """항목 단위로 읽고, 읽을 수 없는 항목은 경고를 남기고 건너뜁니다."""
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning(f"{kind} 목록 형식이 올바르지 않아 무시합니다: {type(raw).__name__}")
        return []
    items = []
    for entry in raw:
        try:
            items.append(schema.load(entry))
        except ValidationError as e:
            logger.warning(f"손상된 {kind} 항목을 건너뜁니다: {e.messages}")
    return items


def load_posts(raw: Any) -> List[Post]:
    return _load_many(_post_schema, raw, "post")

def dump_posts(posts: List[Post]) -> List[Dict[str, Any]]:
    return _post_schema.dump(posts, many=True)

def load_post_document(doc_id: str, data: Optional[Dict[str, Any]]) -> Post:
    """Firestore 문서(ID + 필드)를 Post로 변환합니다."""
    payload = dict(data or {})
    payload["id"] = doc_id
    return _post_schema.load(payload)

def load_comment_document(doc_id: str, data: Optional[Dict[str, Any]]) -> Comment:
    payload = dict(data or {})
    payload["id"] = doc_id
    return _comment_schema.load(payload)

def load_session(raw: Any) -> Optional[Session]:
    if not raw:
        return None
    try:
        return _session_schema.load(raw)
    except ValidationError as e:
        logger.warning(f"손상된 세션 데이터를 무시합니다: {e.messages}")
        return None

def dump_session(session: Optional[Session]) -> Optional[Dict[str, Any]]:
    return _session_schema.dump(session) if session else None

def load_reports(raw: Any) -> List[Report]:
    return _load_many(_report_schema, raw, "report")

def dump_reports(reports: List[Report]) -> List[Dict[str, Any]]:
    return _report_schema.dump(reports, many=True)
