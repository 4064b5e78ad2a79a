# app/api/payments/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from app.api.orders.schemas import OrderItemInputSchema, ShippingAddressSchema


class CreatePaymentSchema(Schema):
    """POST /api/payments/create-payment 요청 스키마. amount 는 최소 화폐 단위(paise)입니다."""
    class Meta:
        unknown = EXCLUDE

    amount = fields.Float(required=True, error_messages={"invalid": "Invalid amount"})
    currency = fields.Str(load_default='INR', validate=validate.Length(equal=3))
    receipt = fields.Str(load_default=None, allow_none=True)


class OrderDataSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    items = fields.List(fields.Nested(OrderItemInputSchema), required=True,
                        validate=validate.Length(min=1, error="Order must contain at least one item"))
    shipping_address = fields.Nested(ShippingAddressSchema, required=True, data_key='shippingAddress')


class VerifyPaymentSchema(Schema):
    """POST /api/payments/verify-payment 요청 스키마."""
    class Meta:
        unknown = EXCLUDE

    order_creation_id = fields.Str(data_key='orderCreationId', load_default=None, allow_none=True)
    razorpay_payment_id = fields.Str(required=True, data_key='razorpayPaymentId')
    razorpay_order_id = fields.Str(required=True, data_key='razorpayOrderId')
    razorpay_signature = fields.Str(required=True, data_key='razorpaySignature')
    order_data = fields.Nested(OrderDataSchema, required=True, data_key='orderData')
