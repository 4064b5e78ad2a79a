# app/api/orders/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from app.models.order import OrderStatus, PaymentMethod


class OrderItemInputSchema(Schema):
    """
    주문 품목 입력. 클라이언트가 보낸 price/name 은 받되 사용하지 않으며,
    가격과 상품명은 주문 시점의 상품 카탈로그에서 다시 가져옵니다.
    """
    class Meta:
        unknown = EXCLUDE

    product_id = fields.Str(required=True, data_key='productId')
    quantity = fields.Int(required=True, validate=validate.Range(min=1))
    price = fields.Float(load_only=True)
    name = fields.Str(load_only=True)


class ShippingAddressSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    full_name = fields.Str(required=True, data_key='fullName', validate=validate.Length(min=1))
    phone = fields.Str(required=True, validate=validate.Length(min=1))
    email = fields.Email(required=True)
    address = fields.Str(required=True, validate=validate.Length(min=1))


class OrderCreateSchema(Schema):
    """POST /api/orders/ 착불(COD) 주문 생성 요청 스키마."""
    class Meta:
        unknown = EXCLUDE

    items = fields.List(fields.Nested(OrderItemInputSchema), required=True,
                        validate=validate.Length(min=1, error="Order must contain at least one item"))
    shipping_address = fields.Nested(ShippingAddressSchema, required=True, data_key='shippingAddress')
    payment_method = fields.Str(data_key='paymentMethod', load_default=PaymentMethod.COD.value,
                                validate=validate.OneOf([PaymentMethod.COD.value],
                                                        error="Online orders are created through payment verification"))


class OrderStatusUpdateSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf([e.value for e in OrderStatus]))


class OrderListQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    page = fields.Int(load_default=None, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))
    status = fields.Str(load_default=None, validate=validate.OneOf([e.value for e in OrderStatus]))


class OrderItemResponseSchema(Schema):
    productId = fields.Str(attribute='product_id')
    name = fields.Str()
    quantity = fields.Int()
    price = fields.Float()


class ShippingAddressResponseSchema(Schema):
    fullName = fields.Str(attribute='full_name')
    phone = fields.Str()
    email = fields.Str()
    address = fields.Str()


class PaymentDetailsResponseSchema(Schema):
    # 서명 값은 응답에 포함하지 않습니다.
    orderId = fields.Str(attribute='gateway_order_id')
    paymentId = fields.Str(attribute='gateway_payment_id')


class OrderUserSchema(Schema):
    id = fields.Str(attribute='user_id')
    name = fields.Str()
    email = fields.Str()


class OrderResponseSchema(Schema):
    id = fields.Str(attribute='order_id', dump_only=True)
    orderNumber = fields.Str(attribute='order_number')
    userId = fields.Str(attribute='user_id')
    user = fields.Nested(OrderUserSchema, allow_none=True)
    items = fields.List(fields.Nested(OrderItemResponseSchema))
    shippingAddress = fields.Nested(ShippingAddressResponseSchema, attribute='shipping_address')
    paymentMethod = fields.Str(attribute='payment_method')
    paymentDetails = fields.Nested(PaymentDetailsResponseSchema, attribute='payment_details', allow_none=True)
    status = fields.Str()
    totalAmount = fields.Float(attribute='total_amount')
    createdAt = fields.DateTime(attribute='created_at')
    updatedAt = fields.DateTime(attribute='updated_at')
