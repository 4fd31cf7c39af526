# skin_admin/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from firebase_admin import auth

from .schemas import (
    UserCreateSchema,
    UserResponseSchema,
    UserDetailResponseSchema,
    SkinAnalysisResponseSchema
)

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/', methods=['GET'])
@jwt_required()
def list_users():
    """최근 가입 순 사용자 목록 (최대 LIST_LIMIT명)."""
    users = current_app.services['users'].list_users()
    return jsonify(UserResponseSchema(many=True).dump(users)), 200


@users_bp.route('/<string:user_id>', methods=['GET'])
@jwt_required()
def get_user_detail(user_id: str):
    """사용자 프로필과 피부 분석 이력을 함께 조회합니다."""
    detail = current_app.services['users'].get_user_detail(user_id)
    if detail is None:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
    return jsonify(UserDetailResponseSchema().dump(detail)), 200


@users_bp.route('/<string:user_id>/analyses/<string:analysis_id>', methods=['GET'])
@jwt_required()
def get_analysis(user_id: str, analysis_id: str):
    analysis = current_app.services['users'].get_analysis(user_id, analysis_id)
    if analysis is None:
        return jsonify({"error_code": "ANALYSIS_NOT_FOUND", "message": "분석 결과를 찾을 수 없습니다."}), 404
    return jsonify(SkinAnalysisResponseSchema().dump(analysis)), 200


@users_bp.route('/', methods=['POST'])
@jwt_required()
def create_user():
    """Firebase Auth 계정과 users 문서를 함께 생성합니다."""
    data = UserCreateSchema().load(request.get_json() or {})
    try:
        user = current_app.services['users'].create_user(data['email'], data['password'], data['display_name'])
        return jsonify(UserResponseSchema().dump(user)), 201
    except auth.EmailAlreadyExistsError:
        return jsonify({"error_code": "EMAIL_ALREADY_EXISTS", "message": "이미 사용 중인 이메일입니다."}), 409


@users_bp.route('/<string:user_id>', methods=['DELETE'])
@jwt_required()
def delete_user(user_id: str):
    """users/{user_id} 문서를 삭제합니다 (분석 하위 컬렉션은 남습니다)."""
    current_app.services['users'].delete_user(user_id)
    logging.info(f"Admin deleted user document {user_id}")
    return jsonify({"message": "사용자가 삭제되었습니다.", "user_id": user_id}), 200
