# app/models/product.py
from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class Product:
    """
    Firestore 'products' 컬렉션 문서 중 주문 처리에 필요한 필드만 다룹니다.
    카탈로그 관리와 리뷰는 별도 시스템의 책임입니다.
    """
    product_id: str
    name: str
    price: float
    category: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None
    in_stock: bool = True
    stock_quantity: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
