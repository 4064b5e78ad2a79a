# app/api/payments/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.core.exceptions import ServiceError
from .schemas import CreatePaymentSchema, VerifyPaymentSchema

payments_bp = Blueprint('payments_bp', __name__)


@payments_bp.route('/create-payment', methods=['POST'])
@jwt_required()
def create_payment():
    """게이트웨이 결제 주문 생성 API. 게이트웨이 응답 객체를 그대로 반환합니다."""
    payment_service = current_app.services['payments']
    try:
        data = CreatePaymentSchema().load(request.get_json(silent=True) or {})
        gateway_order = payment_service.create_payment(data['amount'], data['currency'], data['receipt'])
        return jsonify(gateway_order), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid amount", "details": err.messages}), 400
    except ServiceError as e:
        return jsonify({"error_code": e.error_code, "message": "Failed to create payment order"}), e.status_code


@payments_bp.route('/verify-payment', methods=['POST'])
@jwt_required()
def verify_payment():
    """
    결제 완료 후 서명 검증 API.
    서명이 맞으면 'paid' 주문을 생성하고, 틀리면 400 을 반환하며 주문은 생성하지 않습니다.
    """
    user_id = get_jwt_identity()
    payment_service = current_app.services['payments']
    try:
        data = VerifyPaymentSchema().load(request.get_json(silent=True) or {})
        order = payment_service.verify_and_create_order(
            user_id,
            gateway_order_id=data['razorpay_order_id'],
            gateway_payment_id=data['razorpay_payment_id'],
            signature=data['razorpay_signature'],
            items=data['order_data']['items'],
            shipping_address=data['order_data']['shipping_address'],
        )
        return jsonify({
            "success": True,
            "message": "Payment verified successfully",
            "orderId": order.order_id,
            "orderNumber": order.order_number,
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid payment data", "details": err.messages}), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Verify payment API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "PAYMENT_VERIFICATION_ERROR", "message": "Payment verification failed"}), 500
