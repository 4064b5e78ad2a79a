# app/services/payment_gateway_service.py
import logging
from typing import Any, Dict, Optional
import requests
from flask import Flask

from app.core.exceptions import UpstreamServiceError
from app.core.security import compute_hmac_sha256, signatures_match


class PaymentGatewayService:
    """
    Razorpay REST API 연동 서비스.
    게이트웨이 주문 생성과, 결제 완료 후 전달된 서명(HMAC-SHA256) 검증을 담당합니다.
    """

    def __init__(self):
        self.key_id: Optional[str] = None
        self.key_secret: Optional[str] = None
        self.api_base = 'https://api.razorpay.com/v1'
        self.timeout = 10

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 게이트웨이 자격 증명을 읽어옵니다.

        :param app: Flask 애플리케이션 객체
        """
        self.key_id = app.config.get('RAZORPAY_KEY_ID')
        self.key_secret = app.config.get('RAZORPAY_KEY_SECRET')
        self.api_base = app.config.get('RAZORPAY_API_BASE', self.api_base).rstrip('/')
        self.timeout = app.config.get('PAYMENT_GATEWAY_TIMEOUT', self.timeout)
        if not self.key_id or not self.key_secret:
            logging.warning("PaymentGatewayService: RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET 가 설정되지 않았습니다. 온라인 결제가 실패합니다.")

    def create_order(self, amount: int, currency: str = 'INR', receipt: Optional[str] = None) -> Dict[str, Any]:
        """
        게이트웨이에 결제 주문을 생성하고 응답 객체를 그대로 반환합니다.

        :param amount: 최소 화폐 단위(paise)의 양의 정수 금액
        :raises UpstreamServiceError: 네트워크 오류 또는 게이트웨이 오류 응답
        """
        payload = {'amount': amount, 'currency': currency, 'payment_capture': 1}
        if receipt:
            payload['receipt'] = receipt

        try:
            response = requests.post(
                f"{self.api_base}/orders",
                json=payload,
                auth=(self.key_id or '', self.key_secret or ''),
                timeout=self.timeout,
            )
            response.raise_for_status()
            gateway_order = response.json()
        except requests.RequestException as e:
            logging.error(f"Payment gateway order creation failed: {e}", exc_info=True)
            raise UpstreamServiceError("Failed to create payment order", error_code="PAYMENT_GATEWAY_ERROR") from e

        logging.info(f"Payment gateway order created: {gateway_order.get('id')} ({amount} {currency})")
        return gateway_order

    def expected_signature(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        if not self.key_secret:
            raise UpstreamServiceError("Payment gateway is not configured", error_code="PAYMENT_GATEWAY_ERROR")
        return compute_hmac_sha256(self.key_secret, f"{gateway_order_id}|{gateway_payment_id}")

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        """'{order_id}|{payment_id}' 의 HMAC 과 전달된 서명을 상수 시간 비교합니다."""
        return signatures_match(self.expected_signature(gateway_order_id, gateway_payment_id), signature)
