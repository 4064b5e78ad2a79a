# app/api/products/services.py
from typing import List, Optional
from firebase_admin import firestore

from app.core.exceptions import NotFoundError
from app.models.product import Product


class ProductService:
    """약국 상품 카탈로그 조회 서비스. 주문 가격 산정의 기준 데이터입니다."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.products_ref = self.db.collection('products')

    def get_product(self, product_id: str) -> Product:
        doc = self.products_ref.document(product_id).get()
        if not doc.exists:
            raise NotFoundError(f"Product {product_id} not found", error_code="PRODUCT_NOT_FOUND")
        data = doc.to_dict()
        data.setdefault('product_id', doc.id)
        return Product.from_dict(data)

    def list_products(self, category: Optional[str] = None) -> List[Product]:
        query = self.products_ref
        if category and category != 'all':
            query = query.where('category', '==', category)
        products = []
        for doc in query.stream():
            data = doc.to_dict()
            data.setdefault('product_id', doc.id)
            products.append(Product.from_dict(data))
        return sorted(products, key=lambda product: product.name)
