# app/models/order.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from app.utils.datetime_utils import DateTimeUtils

ORDER_NUMBER_PREFIX = "ORD"


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    COD = "cod"
    ONLINE = "online"


@dataclass
class OrderItem:
    """주문 시점의 상품 이름/가격 스냅샷."""
    product_id: str
    name: str
    quantity: int
    price: float

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


@dataclass
class ShippingAddress:
    full_name: str
    phone: str
    email: str
    address: str


@dataclass
class PaymentDetails:
    """온라인 결제 주문에만 채워지는 게이트웨이 식별자."""
    gateway_order_id: str
    gateway_payment_id: str
    gateway_signature: str


def compute_total(items: List[OrderItem]) -> float:
    """품목 소계 합계. 생성 시 한 번 계산되어 total_amount 로 고정됩니다."""
    return round(sum(item.subtotal for item in items), 2)


def format_order_number(moment: datetime, sequence: int) -> str:
    """ORD-YYMMDD-NNNN 형식의 주문 번호를 생성합니다."""
    return f"{ORDER_NUMBER_PREFIX}-{DateTimeUtils.to_yymmdd(moment)}-{sequence:04d}"


@dataclass
class Order:
    """
    Firestore 'orders' 컬렉션의 문서 구조.
    """
    order_id: str
    order_number: str
    user_id: str
    items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING
    payment_details: Optional[PaymentDetails] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        payment = data.get('payment_details')
        return cls(
            order_id=data['order_id'],
            order_number=data['order_number'],
            user_id=data['user_id'],
            items=[OrderItem(**item) for item in data.get('items', [])],
            shipping_address=ShippingAddress(**data['shipping_address']),
            payment_method=PaymentMethod(data['payment_method']),
            total_amount=data['total_amount'],
            status=OrderStatus(data.get('status', OrderStatus.PENDING.value)),
            payment_details=PaymentDetails(**payment) if payment else None,
            created_at=DateTimeUtils.from_firestore(data.get('created_at')) or DateTimeUtils.now(),
            updated_at=DateTimeUtils.from_firestore(data.get('updated_at')) or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        order_dict = asdict(self)
        order_dict['payment_method'] = self.payment_method.value
        order_dict['status'] = self.status.value
        return order_dict
