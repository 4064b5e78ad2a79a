# app/api/adoptions/schemas.py
import json
from marshmallow import Schema, fields, validate, validates_schema, pre_load, ValidationError, EXCLUDE

from app.models.adoption import AdoptionStatus, IdProofType, HomeType
from app.api.pets.schemas import PetSummarySchema
from app.api.users.schemas import ApplicantSummarySchema

PHONE_PATTERN = r'^[6-9]\d{9}$'
REASON_MIN_LENGTH = 20

# multipart 요청에서 JSON 문자열로 전달되는 중첩 필드
JSON_ENCODED_FIELDS = ('personalDetails', 'livingSituation', 'experience')
REQUIRED_SUBMISSION_FIELDS = ('pet', 'personalDetails', 'livingSituation', 'experience', 'reasonForAdoption')

# 정렬 허용 목록: API 필드명 -> Firestore 필드명
ADOPTION_SORT_FIELDS = {
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'status': 'status',
}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def decode_submission_form(form) -> dict:
    """
    multipart 폼 데이터를 딕셔너리로 변환합니다.
    personalDetails / livingSituation / experience 는 JSON 문자열을 객체로 디코딩합니다.
    """
    data = {key: form.get(key) for key in form.keys()}
    errors = {}
    for key in JSON_ENCODED_FIELDS:
        raw = data.get(key)
        if isinstance(raw, str) and raw.strip():
            try:
                data[key] = json.loads(raw)
            except ValueError:
                errors[key] = ["Must be a valid JSON object."]
    if errors:
        raise ValidationError(errors)
    return data


def check_required_submission_fields(data: dict, has_file: bool) -> None:
    """필수 항목 존재 여부만 먼저 확인합니다. 세부 형식 검증은 AdoptionCreateSchema 가 담당합니다."""
    errors = {
        key: ["Missing data for required field."]
        for key in REQUIRED_SUBMISSION_FIELDS if _is_blank(data.get(key))
    }
    if not has_file:
        errors['idProofFile'] = ["ID proof document is required."]
    if errors:
        raise ValidationError(errors)


class PersonalDetailsSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    phone = fields.Str(required=True, validate=validate.Regexp(
        PHONE_PATTERN, error="Please enter a valid 10-digit phone number"))
    id_proof_type = fields.Str(required=True, data_key='idProofType',
                               validate=validate.OneOf([e.value for e in IdProofType]))

    @pre_load
    def strip_phone(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('phone'), str):
            data = dict(data, phone=data['phone'].strip())
        return data


class LivingSituationSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    home_type = fields.Str(required=True, data_key='homeType',
                           validate=validate.OneOf([e.value for e in HomeType]))
    has_yard = fields.Bool(required=True, data_key='hasYard')
    other_pets = fields.Bool(required=True, data_key='otherPets')
    other_pets_details = fields.Str(data_key='otherPetsDetails', allow_none=True, load_default=None)

    @validates_schema
    def validate_other_pets_details(self, data, **kwargs):
        if data.get('other_pets') and _is_blank(data.get('other_pets_details')):
            raise ValidationError("Please describe your other pets.", field_name='otherPetsDetails')


class ExperienceSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    has_experience = fields.Bool(required=True, data_key='hasExperience')
    experience_details = fields.Str(data_key='experienceDetails', allow_none=True, load_default=None)

    @validates_schema
    def validate_experience_details(self, data, **kwargs):
        if data.get('has_experience') and _is_blank(data.get('experience_details')):
            raise ValidationError("Please describe your pet experience.", field_name='experienceDetails')


class AdoptionCreateSchema(Schema):
    """POST /api/adoptions/ 입양 신청서 검증 스키마 (신분증 파일 제외)."""
    class Meta:
        unknown = EXCLUDE

    pet_id = fields.Str(required=True, data_key='pet')
    personal_details = fields.Nested(PersonalDetailsSchema, required=True, data_key='personalDetails')
    living_situation = fields.Nested(LivingSituationSchema, required=True, data_key='livingSituation')
    experience = fields.Nested(ExperienceSchema, required=True)
    reason_for_adoption = fields.Str(required=True, data_key='reasonForAdoption', validate=validate.Length(
        min=REASON_MIN_LENGTH,
        error=f"Please provide at least {REASON_MIN_LENGTH} characters explaining why you want to adopt"))
    additional_notes = fields.Str(data_key='additionalNotes', allow_none=True, load_default=None)


class AdoptionStatusUpdateSchema(Schema):
    """PATCH /api/adoptions/<id> 관리자 상태 변경 스키마."""
    status = fields.Str(required=True, validate=validate.OneOf(
        [e.value for e in AdoptionStatus],
        error="Invalid status. Must be: Pending, Approved, or Rejected"))
    admin_notes = fields.Str(data_key='adminNotes', allow_none=True)


class AdoptionListQuerySchema(Schema):
    """GET /api/adoptions/admin 조회 파라미터. 정렬 필드는 허용 목록으로 제한합니다."""
    class Meta:
        unknown = EXCLUDE

    status = fields.Str(load_default=None, validate=validate.OneOf(
        [e.value for e in AdoptionStatus] + ['all']))
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    limit = fields.Int(load_default=None, validate=validate.Range(min=1))
    sort_by = fields.Str(data_key='sortBy', load_default='createdAt', validate=validate.OneOf(list(ADOPTION_SORT_FIELDS)))
    sort_order = fields.Str(data_key='sortOrder', load_default='desc', validate=validate.OneOf(['asc', 'desc']))


class PersonalDetailsResponseSchema(Schema):
    phone = fields.Str()
    idProofType = fields.Str(attribute='id_proof_type')
    idProofFile = fields.Str(attribute='id_proof_file')


class LivingSituationResponseSchema(Schema):
    homeType = fields.Str(attribute='home_type')
    hasYard = fields.Bool(attribute='has_yard')
    otherPets = fields.Bool(attribute='other_pets')
    otherPetsDetails = fields.Str(attribute='other_pets_details', allow_none=True)


class ExperienceResponseSchema(Schema):
    hasExperience = fields.Bool(attribute='has_experience')
    experienceDetails = fields.Str(attribute='experience_details', allow_none=True)


class AdoptionResponseSchema(Schema):
    """
    입양 신청 응답 스키마.
    pet / applicant 는 서비스에서 채워 넣은 요약 정보이며, 삭제된 경우 null 입니다.
    """
    id = fields.Str(attribute='adoption_id', dump_only=True)
    petId = fields.Str(attribute='pet_id')
    applicantId = fields.Str(attribute='applicant_id')
    pet = fields.Nested(PetSummarySchema, allow_none=True)
    applicant = fields.Nested(ApplicantSummarySchema, allow_none=True)
    status = fields.Str()
    personalDetails = fields.Nested(PersonalDetailsResponseSchema, attribute='personal_details')
    livingSituation = fields.Nested(LivingSituationResponseSchema, attribute='living_situation')
    experience = fields.Nested(ExperienceResponseSchema)
    reasonForAdoption = fields.Str(attribute='reason_for_adoption')
    additionalNotes = fields.Str(attribute='additional_notes', allow_none=True)
    adminNotes = fields.Str(attribute='admin_notes', allow_none=True)
    createdAt = fields.DateTime(attribute='created_at')
    updatedAt = fields.DateTime(attribute='updated_at')


class AdoptionStatsResponseSchema(Schema):
    total = fields.Int()
    pending = fields.Int()
    approved = fields.Int()
    rejected = fields.Int()
    recentPending = fields.List(fields.Nested(AdoptionResponseSchema), attribute='recent_pending')
    recentApproved = fields.List(fields.Nested(AdoptionResponseSchema), attribute='recent_approved')
