# tstar_feed/api/moderation/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE


class BlockCreateSchema(Schema):
    """
    POST /api/moderation/blocks
    identifier: 차단할 작성자 이름 또는 uid
    """
    class Meta:
        unknown = EXCLUDE

    identifier = fields.Str(required=True, validate=validate.Length(min=1, error="차단할 작성자를 입력해주세요."))
