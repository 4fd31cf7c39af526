# skin_admin/api/products/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from skin_admin.core.errors import BulkImportError
from .schemas import (
    ProductListQuerySchema,
    ProductCreateSchema,
    ProductImportSchema,
    ProductResponseSchema,
    ProductPageResponseSchema
)

products_bp = Blueprint('products_bp', __name__)


@products_bp.route('/', methods=['GET'])
@jwt_required()
def list_products():
    """
    커서 기반 상품 목록. 다음 페이지는 응답의 last_doc_id를 cursor로 넘겨 요청합니다.
    q는 현재 페이지 안에서만 적용되는 검색어입니다.
    """
    args = ProductListQuerySchema().load(request.args.to_dict())
    page = current_app.services['products'].get_products(
        page_size=args.get('page_size'),
        cursor=args.get('cursor'),
        search=args['q']
    )
    return jsonify(ProductPageResponseSchema().dump(page)), 200


@products_bp.route('/<string:product_id>', methods=['GET'])
@jwt_required()
def get_product(product_id: str):
    product = current_app.services['products'].get_product(product_id)
    if product is None:
        return jsonify({"error_code": "PRODUCT_NOT_FOUND", "message": "상품을 찾을 수 없습니다."}), 404
    return jsonify(ProductResponseSchema().dump(product)), 200


@products_bp.route('/', methods=['POST'])
@jwt_required()
def create_product():
    data = ProductCreateSchema().load(request.get_json() or {})
    product_service = current_app.services['products']
    product_id = product_service.create_product(data)
    product = product_service.get_product(product_id)
    if product is None:
        return jsonify({"product_id": product_id}), 201
    return jsonify(ProductResponseSchema().dump(product)), 201


@products_bp.route('/import', methods=['POST'])
@jwt_required()
def import_products():
    """CSV 일괄 가져오기. multipart 'file' 필드 또는 JSON {"csv": "..."} 본문을 받습니다."""
    upload = request.files.get('file')
    if upload is not None:
        text = upload.read().decode('utf-8-sig')
    else:
        text = ProductImportSchema().load(request.get_json() or {})['csv']

    try:
        report = current_app.services['products'].import_csv(text)
    except ValueError as e:
        return jsonify({"error_code": "INVALID_CSV", "message": str(e)}), 400
    except BulkImportError as e:
        logging.error(f"Product CSV import partially failed: {e}")
        return jsonify({
            "error_code": "IMPORT_PARTIALLY_FAILED",
            "message": str(e),
            "succeeded": e.result.succeeded,
            "failed": e.result.failed
        }), 500

    return jsonify({
        "total_rows": report.total_rows,
        "skipped_rows": report.skipped_rows,
        "imported": len(report.imported_ids),
        "imported_ids": report.imported_ids
    }), 200
