# tstar_feed/api/posts/schemas.py
from marshmallow import Schema, fields, validate, pre_load, EXCLUDE

from tstar_feed.schemas.feed_schema import PostSchema


class PostCreateSchema(Schema):
    """
    POST /api/posts
    게시글 작성 요청 형식. 빈 글/금칙어 검사는 FeedCoordinator에서 수행합니다.
    """
    class Meta:
        unknown = EXCLUDE

    text = fields.Str(load_default="")
    image_uri = fields.Str(allow_none=True, load_default=None)

    @pre_load
    def accept_camel_case(self, data, **kwargs):
        # 앱 클라이언트는 imageUri로 보내는 경우가 있음
        if isinstance(data, dict) and "imageUri" in data and "image_uri" not in data:
            data = dict(data)
            data["image_uri"] = data.pop("imageUri")
        return data


class PostResponseSchema(PostSchema):
    """게시글 응답 형식. 저장 형식에 화면용 댓글 수를 더합니다."""
    comment_total = fields.Int(data_key="commentTotal", dump_only=True)


class ReportCreateSchema(Schema):
    """POST /api/posts/{post_id}/report"""
    class Meta:
        unknown = EXCLUDE

    reason = fields.Str(allow_none=True, load_default=None,
                        validate=validate.Length(max=500, error="신고 사유는 500자 이하여야 합니다."))


class ReportResponseSchema(Schema):
    id = fields.Str()
    post_id = fields.Str(data_key="postId")
    reporter = fields.Str()
    reason = fields.Str()
    created_at = fields.Int(data_key="createdAt")


class WriteResultSchema(Schema):
    """쓰기 결과 응답. 폴백 저장 시 notice가 포함됩니다."""
    mode = fields.Function(lambda result: result.mode.value)
    fallback = fields.Bool()
    notice = fields.Str(allow_none=True)
