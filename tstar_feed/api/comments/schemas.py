# tstar_feed/api/comments/schemas.py
from marshmallow import Schema, fields, EXCLUDE

from tstar_feed.schemas.feed_schema import CommentSchema


class CommentCreateSchema(Schema):
    """
    POST /api/posts/{post_id}/comments
    공백뿐인 댓글은 FeedCoordinator에서 거부됩니다.
    """
    class Meta:
        unknown = EXCLUDE

    text = fields.Str(load_default="")


class CommentResponseSchema(CommentSchema):
    """댓글 응답 형식 (저장 형식과 동일)"""
