# skin_admin/api/users/schemas.py
from marshmallow import Schema, fields, validate


class UserCreateSchema(Schema):
    """POST /api/users/ 관리자 계정 생성 요청 스키마."""
    email = fields.Email(required=True)
    password = fields.Str(required=True, validate=validate.Length(min=6))
    display_name = fields.Str(required=True, data_key='displayName', validate=validate.Length(min=1, max=50))


class UserResponseSchema(Schema):
    user_id = fields.Str(dump_only=True)
    display_name = fields.Str()
    email = fields.Str()
    created_at = fields.DateTime(allow_none=True)
    last_login_at = fields.DateTime(allow_none=True)
    last_updated_at = fields.DateTime(allow_none=True)
    photo_url = fields.Str(allow_none=True)
    provider = fields.Str(allow_none=True)
    latest_analysis_id = fields.Str(allow_none=True)
    latest_analysis_date = fields.DateTime(allow_none=True)


class SkinAnalysisResponseSchema(Schema):
    """피부 분석 결과 응답 스키마 (읽기 전용)."""
    analysis_id = fields.Str(dump_only=True)
    firmness = fields.Float()
    pores = fields.Float()
    pimples = fields.Float()
    redness = fields.Float()
    sagging = fields.Float()
    skin_age = fields.Float()
    skin_grade = fields.Float()
    image_path = fields.Str(allow_none=True)
    analysis_results = fields.Str()
    timestamp = fields.DateTime(allow_none=True)


class UserDetailResponseSchema(Schema):
    user = fields.Nested(UserResponseSchema)
    analyses = fields.List(fields.Nested(SkinAnalysisResponseSchema))
