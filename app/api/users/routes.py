# app/api/users/routes.py
from flask import Blueprint, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from app.api.users.schemas import UserResponseSchema

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    """현재 로그인된 사용자 정보를 조회합니다."""
    user = current_app.services['users'].get_user(get_jwt_identity())
    if user is None:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "User not found"}), 404
    return jsonify(UserResponseSchema().dump(user)), 200
