# app/core/security.py
import hmac
import hashlib
from functools import wraps
from flask import jsonify, g, current_app
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity


def admin_required(fn):
    """
    관리자 전용 엔드포인트 데코레이터.
    JWT를 검증한 뒤 users 컬렉션에서 사용자를 조회하여 is_admin 여부를 확인합니다.
    확인된 사용자 객체는 g.current_user 에 저장됩니다.
    """
    @wraps(fn)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        user = current_app.services['users'].get_user(get_jwt_identity())
        if user is None:
            return jsonify({"error_code": "UNAUTHORIZED", "message": "Please authenticate"}), 401
        if not user.is_admin:
            return jsonify({"error_code": "FORBIDDEN", "message": "Access denied. Admin privileges required."}), 403
        g.current_user = user
        return fn(*args, **kwargs)

    return decorated_function


def compute_hmac_sha256(secret: str, message: str) -> str:
    """secret 키로 message의 HMAC-SHA256 hex digest를 계산합니다."""
    return hmac.new(secret.encode('utf-8'), message.encode('utf-8'), hashlib.sha256).hexdigest()


def signatures_match(expected: str, provided: str) -> bool:
    """타이밍 공격을 피하기 위해 상수 시간 비교를 사용합니다."""
    if not isinstance(provided, str):
        return False
    return hmac.compare_digest(expected.encode('utf-8'), provided.encode('utf-8'))
