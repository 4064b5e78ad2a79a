# app/api/orders/services.py
import logging
import math
import uuid
from dataclasses import asdict
from typing import Any, Dict, List, Optional
from firebase_admin import firestore

from app.core.exceptions import NotFoundError, ForbiddenError, OrderNumberConflictError
from app.models.order import (
    Order, OrderItem, OrderStatus, PaymentMethod, PaymentDetails, ShippingAddress,
    compute_total, format_order_number,
)
from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils


class OrderService:
    """
    약국 주문 생성/조회 서비스.
    품목 가격과 이름은 항상 상품 카탈로그에서 다시 읽어 스냅샷으로 저장합니다.
    """
    def __init__(self, product_service, user_service, db=None):
        self.db = db or firestore.client()
        self.orders_ref = self.db.collection('orders')
        self.product_service = product_service
        self.user_service = user_service
        self.default_page_size = 10

    def init_app(self, app):
        self.default_page_size = app.config.get('ORDERS_DEFAULT_PAGE_SIZE', self.default_page_size)

    def create_order(self, user_id: str, items: List[Dict[str, Any]], shipping_address: Dict[str, Any],
                     payment_method: PaymentMethod = PaymentMethod.COD,
                     status: OrderStatus = OrderStatus.PENDING,
                     payment_details: Optional[PaymentDetails] = None) -> Order:
        """
        주문을 생성합니다. 주문 번호는 'ORD-YYMMDD-NNNN' (당일 주문 수 + 1) 입니다.

        :param items: [{'product_id', 'quantity'}] 형태의 검증된 품목 목록
        :raises NotFoundError: 존재하지 않는 상품이 포함된 경우
        :raises OrderNumberConflictError: 같은 주문 번호가 이미 존재하는 경우 (클라이언트 재시도 필요)
        """
        priced_items = [self._price_item(item) for item in items]

        now = DateTimeUtils.now()
        order_number = self._next_order_number(now)
        if self._order_number_exists(order_number):
            logging.warning(f"Order number collision detected: {order_number}")
            raise OrderNumberConflictError("Order creation failed. Please try again.")

        order = Order(
            order_id=str(uuid.uuid4()),
            order_number=order_number,
            user_id=user_id,
            items=priced_items,
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            total_amount=compute_total(priced_items),
            status=status,
            payment_details=payment_details,
            created_at=now,
            updated_at=now,
        )
        self.orders_ref.document(order.order_id).set(DateTimeUtils.for_firestore(order.to_dict()))
        logging.info(f"Order {order.order_number} created for user {user_id} "
                     f"({payment_method.value}, {status.value}, total {order.total_amount})")
        return order

    def _price_item(self, item: Dict[str, Any]) -> OrderItem:
        product = self.product_service.get_product(item['product_id'])
        return OrderItem(
            product_id=product.product_id,
            name=product.name,
            quantity=item['quantity'],
            price=product.price,
        )

    def _next_order_number(self, moment) -> str:
        start, end = DateTimeUtils.day_range(moment)
        query = (self.orders_ref
                 .where('created_at', '>=', start)
                 .where('created_at', '<', end))
        todays_count = sum(1 for _ in query.stream())
        return format_order_number(moment, todays_count + 1)

    def _order_number_exists(self, order_number: str) -> bool:
        query = self.orders_ref.where('order_number', '==', order_number).limit(1)
        return any(True for _ in query.stream())

    def get_order(self, order_id: str, requester: User) -> Dict[str, Any]:
        """주문 한 건을 조회합니다. 주문자 본인 또는 관리자만 허용됩니다."""
        snapshot = self.orders_ref.document(order_id).get()
        if not snapshot.exists:
            raise NotFoundError("Order not found", error_code="ORDER_NOT_FOUND")
        order = Order.from_dict(snapshot.to_dict())
        if order.user_id != requester.user_id and not requester.is_admin:
            raise ForbiddenError("Access denied")
        return self._populate([order])[0]

    def list_user_orders(self, user_id: str) -> List[Dict[str, Any]]:
        query = (self.orders_ref
                 .where('user_id', '==', user_id)
                 .order_by('created_at', direction=firestore.Query.DESCENDING))
        return [order.to_dict() for order in self._load(query)]

    def list_orders(self, status: Optional[str] = None, page: Optional[int] = None,
                    limit: Optional[int] = None) -> Dict[str, Any]:
        """
        [관리자] 주문 목록. page/limit 이 모두 없으면 전체를, 하나라도 있으면 해당 페이지를 반환합니다.
        """
        query = self.orders_ref
        if status:
            query = query.where('status', '==', status)

        if page is None and limit is None:
            orders = self._load(query.order_by('created_at', direction=firestore.Query.DESCENDING))
            return {'orders': self._populate(orders), 'totalPages': 1, 'currentPage': 1, 'total': len(orders)}

        page = page or 1
        limit = limit or self.default_page_size
        total = sum(1 for _ in query.stream())
        query = (query.order_by('created_at', direction=firestore.Query.DESCENDING)
                 .offset((page - 1) * limit)
                 .limit(limit))
        return {
            'orders': self._populate(self._load(query)),
            'totalPages': math.ceil(total / limit),
            'currentPage': page,
            'total': total,
        }

    def update_status(self, order_id: str, status: str) -> Dict[str, Any]:
        order_ref = self.orders_ref.document(order_id)
        snapshot = order_ref.get()
        if not snapshot.exists:
            raise NotFoundError("Order not found", error_code="ORDER_NOT_FOUND")
        order = Order.from_dict(snapshot.to_dict())
        order.status = OrderStatus(status)
        order.updated_at = DateTimeUtils.now()
        order_ref.update({'status': order.status.value, 'updated_at': order.updated_at})
        logging.info(f"Order {order.order_number} status changed to {order.status.value}")
        return self._populate([order])[0]

    @staticmethod
    def _load(query) -> List[Order]:
        return [Order.from_dict(doc.to_dict()) for doc in query.stream()]

    def _populate(self, orders: List[Order]) -> List[Dict[str, Any]]:
        """주문 목록에 주문자 이름/이메일을 채워 넣습니다."""
        users = self.user_service.get_users(order.user_id for order in orders)
        populated = []
        for order in orders:
            order_dict = order.to_dict()
            user = users.get(order.user_id)
            order_dict['user'] = asdict(user) if user else None
            populated.append(order_dict)
        return populated
