# app/core/exceptions.py
"""
서비스 계층에서 발생시키는 도메인 예외.

입력값 형식 오류는 marshmallow의 ValidationError를 그대로 사용하고,
여기에는 그 외의 실패 유형(존재하지 않음, 충돌, 서명 불일치, 외부 연동 실패)을 정의합니다.
"""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """HTTP 응답으로 변환 가능한 서비스 예외의 기반 클래스."""
    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message}


class NotFoundError(ServiceError):
    status_code = 404
    error_code = "NOT_FOUND"


class ForbiddenError(ServiceError):
    status_code = 403
    error_code = "FORBIDDEN"


class ConflictError(ServiceError):
    status_code = 409
    error_code = "CONFLICT"


class PaymentVerificationError(ServiceError):
    """결제 서명 불일치. 기대 서명 값은 절대 메시지에 포함하지 않습니다."""
    status_code = 400
    error_code = "PAYMENT_VERIFICATION_FAILED"


class UpstreamServiceError(ServiceError):
    """결제 게이트웨이, 메일 서버 등 외부 연동 실패."""
    status_code = 502
    error_code = "UPSTREAM_SERVICE_ERROR"


class OrderNumberConflictError(ConflictError):
    """주문 번호 중복. 클라이언트가 다시 시도하면 해결되는 일시적 충돌입니다."""
    error_code = "ORDER_NUMBER_CONFLICT"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["shouldRetry"] = True
        return data
