# skin_admin/api/connection/routes.py
import logging
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required

connection_bp = Blueprint('connection_bp', __name__)


@connection_bp.route('/', methods=['GET'])
@jwt_required()
def get_connection_status():
    """현재 Firestore 연결 상태(connected / degraded / error)를 조회합니다."""
    return jsonify(current_app.services['connection'].status()), 200


@connection_bp.route('/retry', methods=['POST'])
@jwt_required()
def retry_connection():
    """캐시된 연결을 버리고 초기화 전략을 처음부터 다시 실행합니다."""
    manager = current_app.services['connection']
    handle = manager.retry()
    logging.info(f"Firestore connection retried: mode={handle.mode}, strategy={handle.strategy}")
    return jsonify(manager.status()), 200
