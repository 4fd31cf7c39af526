# skin_admin/api/export/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from .services import EXPORT_ITEMS


class ExportRequestSchema(Schema):
    """POST /api/export/ 요청 스키마. 날짜는 YYYY-MM-DD (UTC 기준)."""
    items = fields.List(
        fields.Str(validate=validate.OneOf(EXPORT_ITEMS)),
        required=True,
        validate=validate.Length(min=1, error="내보낼 항목을 하나 이상 선택해야 합니다.")
    )
    start_date = fields.Date(required=True, format="%Y-%m-%d", data_key='startDate')
    end_date = fields.Date(required=True, format="%Y-%m-%d", data_key='endDate')

    @validates_schema
    def validate_range(self, data, **kwargs):
        if data.get('start_date') and data.get('end_date') and data['start_date'] > data['end_date']:
            raise ValidationError("시작일은 종료일보다 늦을 수 없습니다.", field_name='startDate')
