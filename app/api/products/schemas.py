# app/api/products/schemas.py
from marshmallow import Schema, fields


class ProductResponseSchema(Schema):
    id = fields.Str(attribute='product_id', dump_only=True)
    name = fields.Str()
    price = fields.Float()
    category = fields.Str(allow_none=True)
    brand = fields.Str(allow_none=True)
    image = fields.Str(allow_none=True)
    inStock = fields.Bool(attribute='in_stock')
    stockQuantity = fields.Int(attribute='stock_quantity')
