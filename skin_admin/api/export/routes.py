# skin_admin/api/export/routes.py
from flask import Blueprint, Response, request, current_app
from flask_jwt_extended import jwt_required

from .schemas import ExportRequestSchema

export_bp = Blueprint('export_bp', __name__)


@export_bp.route('/', methods=['POST'])
@jwt_required()
def export_csv():
    """날짜 범위 안에 최신 분석이 있는 사용자를 CSV 파일로 내려받습니다."""
    data = ExportRequestSchema().load(request.get_json() or {})
    text = current_app.services['export'].export_csv(data['items'], data['start_date'], data['end_date'])
    filename = f"skin_export_{data['start_date']:%Y%m%d}_{data['end_date']:%Y%m%d}.csv"
    return Response(
        text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )
