# skin_admin/api/auth/schemas.py
from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """관리자 로그인 요청 스키마"""
    password = fields.Str(required=True, validate=validate.Length(min=1))
