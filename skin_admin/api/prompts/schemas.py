# skin_admin/api/prompts/schemas.py
from marshmallow import Schema, fields, validate


class PromptUpdateSchema(Schema):
    """PUT /api/prompts/ 요청 스키마."""
    prompt = fields.Str(required=True, validate=validate.Length(min=1))


class PromptHistoryEntrySchema(Schema):
    history_id = fields.Str(dump_only=True)
    prompt = fields.Str()
    timestamp = fields.DateTime(allow_none=True)


class PromptSettingResponseSchema(Schema):
    """현재 프롬프트와 변경 이력(최신순) 응답 스키마."""
    prompt = fields.Str()
    updated_at = fields.DateTime(allow_none=True)
    history = fields.List(fields.Nested(PromptHistoryEntrySchema))
