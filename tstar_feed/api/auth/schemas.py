# tstar_feed/api/auth/schemas.py
from marshmallow import Schema, fields, EXCLUDE


class CredentialsSchema(Schema):
    """
    POST /api/auth/signup, /api/auth/signin
    빈 이메일/비밀번호는 FeedCoordinator에서 거부됩니다.
    """
    class Meta:
        unknown = EXCLUDE

    email = fields.Str(load_default="")
    password = fields.Str(load_default="")
    display_name = fields.Str(data_key="displayName", allow_none=True, load_default=None)


class SessionResponseSchema(Schema):
    uid = fields.Str()
    display_name = fields.Str(data_key="displayName")
    email = fields.Str(allow_none=True)
    created_at = fields.Int(data_key="createdAt")
