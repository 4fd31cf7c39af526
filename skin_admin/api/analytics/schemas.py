# skin_admin/api/analytics/schemas.py
from marshmallow import Schema, fields, validate


class TrendsQuerySchema(Schema):
    days = fields.Int(load_default=7, validate=validate.Range(min=1, max=90))


class DashboardStatsSchema(Schema):
    total_users = fields.Int()
    daily_users = fields.Int()
    daily_analyses = fields.Int()
    monthly_users = fields.Int()
    total_analyses = fields.Int()


class TrendPointSchema(Schema):
    """하루치 진단 수와 점수 평균."""
    date = fields.Str()
    diagnostics = fields.Int()
    skinAge = fields.Int()
    pimples = fields.Int()
    pores = fields.Int()
    firmness = fields.Int()
    redness = fields.Int()
    sagging = fields.Int()


class PopularProductsQuerySchema(Schema):
    limit = fields.Int(load_default=5, validate=validate.Range(min=1, max=20))
