# app/api/orders/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.core.exceptions import ServiceError
from app.core.security import admin_required
from app.models.order import PaymentMethod
from .schemas import OrderCreateSchema, OrderStatusUpdateSchema, OrderListQuerySchema, OrderResponseSchema

orders_bp = Blueprint('orders_bp', __name__)


@orders_bp.route('/', methods=['POST'])
@jwt_required()
def create_order():
    """착불(COD) 주문 생성 API."""
    user_id = get_jwt_identity()
    order_service = current_app.services['orders']
    try:
        data = OrderCreateSchema().load(request.get_json(silent=True) or {})
        order = order_service.create_order(
            user_id, data['items'], data['shipping_address'],
            payment_method=PaymentMethod(data['payment_method']),
        )
        return jsonify({
            "message": "Order placed successfully",
            "order": OrderResponseSchema().dump(order.to_dict()),
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid order data", "details": err.messages}), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Create order API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "ORDER_CREATION_FAILED", "message": "Failed to create order. Please try again."}), 500


@orders_bp.route('/my-orders', methods=['GET'])
@jwt_required()
def list_my_orders():
    orders = current_app.services['orders'].list_user_orders(get_jwt_identity())
    return jsonify(OrderResponseSchema(many=True).dump(orders)), 200


@orders_bp.route('/<string:order_id>', methods=['GET'])
@jwt_required()
def get_order(order_id: str):
    """주문 상세 조회 (주문자 본인 또는 관리자)."""
    requester = current_app.services['users'].get_user(get_jwt_identity())
    if requester is None:
        return jsonify({"error_code": "UNAUTHORIZED", "message": "Please authenticate"}), 401
    try:
        order = current_app.services['orders'].get_order(order_id, requester)
        return jsonify(OrderResponseSchema().dump(order)), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@orders_bp.route('/', methods=['GET'])
@admin_required
def list_orders():
    """[관리자 전용] 주문 목록. page/limit 이 없으면 전체 목록을 반환합니다."""
    try:
        params = OrderListQuerySchema().load(request.args)
        result = current_app.services['orders'].list_orders(**params)
        result['orders'] = OrderResponseSchema(many=True).dump(result['orders'])
        return jsonify(result), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid query parameters", "details": err.messages}), 400


@orders_bp.route('/<string:order_id>/status', methods=['PATCH'])
@admin_required
def update_order_status(order_id: str):
    try:
        data = OrderStatusUpdateSchema().load(request.get_json(silent=True) or {})
        order = current_app.services['orders'].update_status(order_id, data['status'])
        return jsonify(OrderResponseSchema().dump(order)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid status", "details": err.messages}), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
