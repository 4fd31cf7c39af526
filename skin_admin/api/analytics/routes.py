# skin_admin/api/analytics/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from skin_admin.api.products.schemas import ProductResponseSchema
from .schemas import TrendsQuerySchema, DashboardStatsSchema, TrendPointSchema, PopularProductsQuerySchema

analytics_bp = Blueprint('analytics_bp', __name__)


@analytics_bp.route('/stats', methods=['GET'])
@jwt_required()
def get_dashboard_stats():
    """대시보드 카운터 (조회 상한 안에서 계산한 근사치)."""
    stats = current_app.services['analytics'].get_dashboard_stats()
    return jsonify(DashboardStatsSchema().dump(stats)), 200


@analytics_bp.route('/trends', methods=['GET'])
@jwt_required()
def get_analytics_trends():
    args = TrendsQuerySchema().load(request.args.to_dict())
    trends = current_app.services['analytics'].get_analytics_trends(days=args['days'])
    return jsonify(TrendPointSchema(many=True).dump(trends)), 200


@analytics_bp.route('/popular-products', methods=['GET'])
@jwt_required()
def get_popular_products():
    """평가 점수 상위 상품 (기본 5개)."""
    args = PopularProductsQuerySchema().load(request.args.to_dict())
    products = current_app.services['analytics'].get_popular_products(limit=args['limit'])
    return jsonify(ProductResponseSchema(many=True).dump(products)), 200
