# app/models/adoption.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from app.utils.datetime_utils import DateTimeUtils


class AdoptionStatus(Enum):
    """
    입양 신청 상태. 전이는 관리자만 수행하며 세 가지 값 외에는 허용되지 않습니다.

    Pending  -> Approved   (반려동물 입양 완료 처리)
    Pending  -> Rejected
    Approved -> Rejected   (승인 취소, 반려동물 다시 입양 가능)
    Rejected -> Pending    (관리자 재검토)
    """
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def grants_adoption(self) -> bool:
        return self is AdoptionStatus.APPROVED

    def side_effect_for(self, other_approved_exists: bool) -> bool:
        """
        이 상태로 전이한 직후 연결된 반려동물의 is_adopted 값.
        Approved 이면 항상 True, 그 외에는 같은 반려동물에 다른 Approved 신청이 남아 있을 때만 True.
        """
        return self.grants_adoption or other_approved_exists


# 중복 신청 판단에 쓰이는 '진행 중' 상태
ACTIVE_STATUSES = (AdoptionStatus.PENDING, AdoptionStatus.APPROVED)


class IdProofType(Enum):
    AADHAR = "aadhar"
    PAN = "pan"


class HomeType(Enum):
    HOUSE = "House"
    APARTMENT = "Apartment"
    CONDO = "Condo"
    OTHER = "Other"


@dataclass
class PersonalDetails:
    phone: str
    id_proof_type: IdProofType
    id_proof_file: str


@dataclass
class LivingSituation:
    home_type: HomeType
    has_yard: bool
    other_pets: bool
    other_pets_details: Optional[str] = None


@dataclass
class Experience:
    has_experience: bool
    experience_details: Optional[str] = None


@dataclass
class Adoption:
    """
    Firestore 'adoptions' 컬렉션의 문서 구조.
    personal_details / living_situation / experience 는 중첩 맵으로 저장됩니다.
    """
    adoption_id: str
    pet_id: str
    applicant_id: str
    personal_details: PersonalDetails
    living_situation: LivingSituation
    experience: Experience
    reason_for_adoption: str
    status: AdoptionStatus = AdoptionStatus.PENDING
    additional_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Adoption":
        """Firestore 문서 딕셔너리를 Adoption 인스턴스로 변환합니다."""
        personal = dict(data.get('personal_details') or {})
        living = dict(data.get('living_situation') or {})
        experience = dict(data.get('experience') or {})

        return cls(
            adoption_id=data['adoption_id'],
            pet_id=data['pet_id'],
            applicant_id=data['applicant_id'],
            personal_details=PersonalDetails(
                phone=personal.get('phone'),
                id_proof_type=IdProofType(personal.get('id_proof_type')),
                id_proof_file=personal.get('id_proof_file'),
            ),
            living_situation=LivingSituation(
                home_type=HomeType(living.get('home_type')),
                has_yard=bool(living.get('has_yard')),
                other_pets=bool(living.get('other_pets')),
                other_pets_details=living.get('other_pets_details'),
            ),
            experience=Experience(
                has_experience=bool(experience.get('has_experience')),
                experience_details=experience.get('experience_details'),
            ),
            reason_for_adoption=data.get('reason_for_adoption'),
            status=AdoptionStatus(data.get('status', AdoptionStatus.PENDING.value)),
            additional_notes=data.get('additional_notes'),
            admin_notes=data.get('admin_notes'),
            created_at=DateTimeUtils.from_firestore(data.get('created_at')) or DateTimeUtils.now(),
            updated_at=DateTimeUtils.from_firestore(data.get('updated_at')) or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Firestore 저장용 딕셔너리 (Enum -> 문자열)."""
        adoption_dict = asdict(self)
        adoption_dict['status'] = self.status.value
        adoption_dict['personal_details']['id_proof_type'] = self.personal_details.id_proof_type.value
        adoption_dict['living_situation']['home_type'] = self.living_situation.home_type.value
        return adoption_dict
