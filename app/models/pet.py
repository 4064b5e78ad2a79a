# app/models/pet.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum
import logging

from app.utils.datetime_utils import DateTimeUtils


class PetCategory(Enum):
    DOG = "Dog"
    CAT = "Cat"
    BIRD = "Bird"
    FISH = "Fish"
    SMALL_ANIMAL = "Small Animal"
    OTHER = "Other"


class PetGender(Enum):
    MALE = "Male"
    FEMALE = "Female"


class PetSize(Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class HealthStatus(Enum):
    HEALTHY = "Healthy"
    UNDER_TREATMENT = "Under Treatment"
    SPECIAL_NEEDS = "Special Needs"


_ENUM_FIELDS = {
    'category': (PetCategory, PetCategory.OTHER),
    'gender': (PetGender, PetGender.MALE),
    'size': (PetSize, PetSize.MEDIUM),
    'health_status': (HealthStatus, HealthStatus.HEALTHY),
}


@dataclass
class Pet:
    """
    Firestore 'pets' 컬렉션 문서 구조.
    is_adopted 는 입양 신청 상태 전이의 부수 효과로만 변경됩니다 (AdoptionService 참고).
    """
    pet_id: str
    name: str
    category: PetCategory
    breed: str
    age: int
    gender: PetGender
    size: PetSize
    description: str
    health_status: HealthStatus
    image: Optional[str] = None
    is_adopted: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pet":
        """
        Firestore에서 받은 딕셔너리로부터 Pet 인스턴스를 생성합니다.
        문자열로 저장된 Enum 값을 변환하며, 알 수 없는 값은 경고 후 기본값을 사용합니다.
        """
        processed_data = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}

        for key, (enum_cls, fallback) in _ENUM_FIELDS.items():
            raw = processed_data.get(key)
            if isinstance(raw, str):
                try:
                    processed_data[key] = enum_cls(raw)
                except ValueError:
                    logging.warning(f"Invalid {enum_cls.__name__} value '{raw}' for pet {processed_data.get('pet_id')}. Defaulting to {fallback.value}.")
                    processed_data[key] = fallback

        if processed_data.get('created_at') is not None:
            processed_data['created_at'] = DateTimeUtils.from_firestore(processed_data['created_at'])
        else:
            processed_data.pop('created_at', None)

        return cls(**processed_data)

    def to_dict(self) -> Dict[str, Any]:
        """Firestore 저장 및 응답 직렬화용 딕셔너리 (Enum -> 문자열)."""
        pet_dict = asdict(self)
        for key in _ENUM_FIELDS:
            pet_dict[key] = getattr(self, key).value
        return pet_dict
