# app/api/products/routes.py
from flask import Blueprint, request, jsonify, current_app

from app.core.exceptions import NotFoundError
from .schemas import ProductResponseSchema

products_bp = Blueprint('products_bp', __name__)


@products_bp.route('/', methods=['GET'])
def list_products():
    """상품 목록을 이름순으로 조회합니다 (category 필터)."""
    products = current_app.services['products'].list_products(request.args.get('category'))
    return jsonify(ProductResponseSchema(many=True).dump(products)), 200


@products_bp.route('/<string:product_id>', methods=['GET'])
def get_product(product_id: str):
    try:
        product = current_app.services['products'].get_product(product_id)
        return jsonify(ProductResponseSchema().dump(product)), 200
    except NotFoundError as e:
        return jsonify(e.to_dict()), e.status_code
