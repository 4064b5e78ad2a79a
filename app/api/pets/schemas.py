# app/api/pets/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE
from app.models.pet import PetCategory, PetGender, PetSize, HealthStatus


class PetCreateSchema(Schema):
    """POST /api/pets/ 반려동물 등록 요청 스키마 (관리자 전용)."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    category = fields.Str(required=True, validate=validate.OneOf([e.value for e in PetCategory]))
    breed = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    age = fields.Int(required=True, validate=validate.Range(min=0))
    gender = fields.Str(required=True, validate=validate.OneOf([e.value for e in PetGender]))
    size = fields.Str(required=True, validate=validate.OneOf([e.value for e in PetSize]))
    description = fields.Str(required=True, validate=validate.Length(min=1))
    health_status = fields.Str(required=True, data_key='healthStatus',
                               validate=validate.OneOf([e.value for e in HealthStatus]))
    image = fields.Str(required=True, error_messages={"required": "Pet image is required."})


class PetUpdateSchema(Schema):
    """PUT /api/pets/<pet_id> 수정 스키마. is_adopted 는 입양 신청 상태로만 바뀌므로 받지 않습니다."""
    name = fields.Str(validate=validate.Length(min=1, max=50))
    category = fields.Str(validate=validate.OneOf([e.value for e in PetCategory]))
    breed = fields.Str(validate=validate.Length(min=1, max=50))
    age = fields.Int(validate=validate.Range(min=0))
    gender = fields.Str(validate=validate.OneOf([e.value for e in PetGender]))
    size = fields.Str(validate=validate.OneOf([e.value for e in PetSize]))
    description = fields.Str(validate=validate.Length(min=1))
    health_status = fields.Str(data_key='healthStatus', validate=validate.OneOf([e.value for e in HealthStatus]))
    image = fields.Str()


class PetListQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    category = fields.Str(load_default=None)
    include_adopted = fields.Bool(data_key='includeAdopted', load_default=False)


class PetResponseSchema(Schema):
    """반려동물 응답 스키마."""
    id = fields.Str(attribute='pet_id', dump_only=True)
    name = fields.Str()
    category = fields.Str()
    breed = fields.Str()
    age = fields.Int()
    gender = fields.Str()
    size = fields.Str()
    description = fields.Str()
    healthStatus = fields.Str(attribute='health_status')
    image = fields.Str(allow_none=True)
    isAdopted = fields.Bool(attribute='is_adopted')
    createdAt = fields.DateTime(attribute='created_at')


class PetSummarySchema(Schema):
    """입양 신청 응답에 포함되는 반려동물 요약."""
    id = fields.Str(attribute='pet_id')
    name = fields.Str()
    category = fields.Str()
    breed = fields.Str()
    age = fields.Int()
    image = fields.Str(allow_none=True)
    isAdopted = fields.Bool(attribute='is_adopted')
