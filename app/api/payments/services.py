# app/api/payments/services.py
import logging
import math
from typing import Any, Dict, List, Optional
from marshmallow import ValidationError

from app.core.exceptions import PaymentVerificationError
from app.models.order import Order, OrderStatus, PaymentMethod, PaymentDetails


class PaymentService:
    """
    온라인 결제 흐름을 담당하는 서비스.
    게이트웨이 서명이 검증된 경우에만 'paid' 상태의 주문이 생성됩니다.
    """
    def __init__(self, payment_gateway, order_service):
        self.payment_gateway = payment_gateway
        self.order_service = order_service

    def create_payment(self, amount: float, currency: str = 'INR', receipt: Optional[str] = None) -> Dict[str, Any]:
        """
        금액을 정수로 반올림한 뒤 게이트웨이 결제 주문을 생성합니다.

        :raises ValidationError: 반올림한 금액이 0 이하인 경우
        """
        amount_in_paise = math.floor(amount + 0.5)
        if amount_in_paise <= 0:
            raise ValidationError({'amount': ["Invalid amount"]})
        return self.payment_gateway.create_order(amount_in_paise, currency, receipt)

    def verify_and_create_order(self, user_id: str, gateway_order_id: str, gateway_payment_id: str,
                                signature: str, items: List[Dict[str, Any]],
                                shipping_address: Dict[str, Any]) -> Order:
        """
        결제 서명을 검증하고 결제 완료(paid) 주문을 생성합니다.

        :raises PaymentVerificationError: 서명이 일치하지 않는 경우 (주문은 생성되지 않음)
        :raises OrderNumberConflictError: 주문 번호 충돌 (재시도 가능)
        """
        if not self.payment_gateway.verify_signature(gateway_order_id, gateway_payment_id, signature):
            logging.warning(f"Payment signature mismatch for gateway order {gateway_order_id} (user: {user_id})")
            raise PaymentVerificationError("Transaction not legit!")

        order = self.order_service.create_order(
            user_id, items, shipping_address,
            payment_method=PaymentMethod.ONLINE,
            status=OrderStatus.PAID,
            payment_details=PaymentDetails(
                gateway_order_id=gateway_order_id,
                gateway_payment_id=gateway_payment_id,
                gateway_signature=signature,
            ),
        )
        logging.info(f"Payment {gateway_payment_id} verified; order {order.order_number} created")
        return order
