# skin_admin/api/prompts/routes.py
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from .schemas import PromptUpdateSchema, PromptSettingResponseSchema

prompts_bp = Blueprint('prompts_bp', __name__)


@prompts_bp.route('/', methods=['GET'])
@jwt_required()
def get_prompt():
    setting = current_app.services['prompts'].get_prompt_setting()
    return jsonify(PromptSettingResponseSchema().dump(setting)), 200


@prompts_bp.route('/', methods=['PUT'])
@jwt_required()
def update_prompt():
    """프롬프트를 덮어씁니다. 이전 프롬프트는 이력에 남습니다."""
    data = PromptUpdateSchema().load(request.get_json() or {})
    try:
        setting = current_app.services['prompts'].update_prompt(data['prompt'])
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PROMPT", "message": str(e)}), 400
    return jsonify(PromptSettingResponseSchema().dump(setting)), 200


@prompts_bp.route('/history/<string:history_id>/restore', methods=['POST'])
@jwt_required()
def restore_prompt(history_id: str):
    try:
        setting = current_app.services['prompts'].restore_prompt(history_id)
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PROMPT", "message": str(e)}), 400
    if setting is None:
        return jsonify({"error_code": "HISTORY_NOT_FOUND", "message": "이력 항목을 찾을 수 없습니다."}), 404
    return jsonify(PromptSettingResponseSchema().dump(setting)), 200
