# skin_admin/api/collections/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from skin_admin.utils.datetime_utils import DateTimeUtils

collections_bp = Blueprint('collections_bp', __name__)


@collections_bp.route('/', methods=['GET'])
@jwt_required()
def list_collections():
    names = current_app.services['collections'].list_collections()
    return jsonify({"collections": names}), 200


@collections_bp.route('/<string:collection_name>', methods=['GET'])
@jwt_required()
def list_documents(collection_name: str):
    """컬렉션 문서 목록 (최대 COLLECTION_BROWSE_LIMIT개). ?q= 로 ID/문자열 필드 검색."""
    documents = current_app.services['collections'].list_documents(collection_name, request.args.get('q', ''))
    return jsonify({"collection": collection_name, "documents": DateTimeUtils.to_json_safe(documents)}), 200


@collections_bp.route('/<string:collection_name>/<string:doc_id>', methods=['GET'])
@jwt_required()
def get_document(collection_name: str, doc_id: str):
    document = current_app.services['collections'].get_document(collection_name, doc_id)
    if document is None:
        return jsonify({"error_code": "DOCUMENT_NOT_FOUND", "message": "문서를 찾을 수 없습니다."}), 404
    return jsonify(DateTimeUtils.to_json_safe(document)), 200
