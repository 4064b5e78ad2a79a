# app/api/users/schemas.py
from marshmallow import Schema, fields


class UserResponseSchema(Schema):
    """GET /api/users/me 응답 스키마."""
    id = fields.Str(attribute='user_id', dump_only=True)
    name = fields.Str()
    email = fields.Email()
    phone = fields.Str(allow_none=True)
    isAdmin = fields.Bool(attribute='is_admin')
    createdAt = fields.DateTime(attribute='created_at')


class ApplicantSummarySchema(Schema):
    """입양 신청 응답에 포함되는 신청자 요약 정보."""
    id = fields.Str(attribute='user_id')
    name = fields.Str()
    email = fields.Email()
    phone = fields.Str(allow_none=True)
