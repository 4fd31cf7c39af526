# skin_admin/api/auth/routes.py

import hmac
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token

from .schemas import LoginSchema

auth_bp = Blueprint('auth_bp', __name__)

ADMIN_IDENTITY = 'admin'


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    관리자 로그인 게이트. 설정된 공유 비밀번호와 비교해 Access Token을 발급합니다.
    보안 경계가 아니라 대시보드 진입을 막는 단순한 게이트입니다.
    """
    data = LoginSchema().load(request.get_json() or {})
    expected = current_app.config.get('ADMIN_PASSWORD')
    if not expected:
        logging.error("ADMIN_PASSWORD is not configured; admin login is disabled")
        return jsonify({"error_code": "LOGIN_DISABLED", "message": "관리자 비밀번호가 설정되지 않았습니다."}), 503

    if not hmac.compare_digest(data['password'].encode('utf-8'), expected.encode('utf-8')):
        logging.warning("Admin login rejected: wrong password")
        return jsonify({"error_code": "INVALID_CREDENTIALS", "message": "비밀번호가 올바르지 않습니다."}), 401

    access_token = create_access_token(identity=ADMIN_IDENTITY)
    return jsonify({"access_token": access_token}), 200
