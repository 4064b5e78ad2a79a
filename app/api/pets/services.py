# app/api/pets/services.py
import logging
import uuid
from typing import Dict, Any, Iterable, List, Optional
from firebase_admin import firestore

from app.core.exceptions import NotFoundError
from app.models.pet import Pet
from app.utils.datetime_utils import DateTimeUtils


class PetService:
    """입양 대상 반려동물의 조회와 관리자 등록/수정/삭제를 담당하는 서비스."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.pets_ref = self.db.collection('pets')

    def find_pet(self, pet_id: str) -> Optional[Pet]:
        doc = self.pets_ref.document(pet_id).get()
        if not doc.exists:
            return None
        return Pet.from_dict(doc.to_dict())

    def get_pet(self, pet_id: str) -> Pet:
        """반려동물을 조회합니다. 없으면 NotFoundError."""
        pet = self.find_pet(pet_id)
        if pet is None:
            raise NotFoundError("Pet not found", error_code="PET_NOT_FOUND")
        return pet

    def get_pets(self, pet_ids: Iterable[str]) -> Dict[str, Pet]:
        """여러 반려동물을 {pet_id: Pet} 형태로 조회합니다. 삭제된 반려동물은 빠집니다."""
        pets = {}
        for pet_id in set(filter(None, pet_ids)):
            pet = self.find_pet(pet_id)
            if pet is not None:
                pets[pet_id] = pet
        return pets

    def list_pets(self, category: Optional[str] = None, include_adopted: bool = False) -> List[Pet]:
        """
        반려동물 목록을 최신 등록순으로 조회합니다.
        기본적으로 입양 완료된 반려동물은 제외하며, category 가 'all' 이면 필터를 적용하지 않습니다.
        """
        query = self.pets_ref
        if not include_adopted:
            query = query.where('is_adopted', '==', False)
        if category and category != 'all':
            query = query.where('category', '==', category)
        query = query.order_by('created_at', direction=firestore.Query.DESCENDING)
        return [Pet.from_dict(doc.to_dict()) for doc in query.stream()]

    def create_pet(self, pet_data: Dict[str, Any]) -> Pet:
        pet = Pet.from_dict({
            **pet_data,
            'pet_id': str(uuid.uuid4()),
            'is_adopted': False,
            'created_at': DateTimeUtils.now(),
        })
        self.pets_ref.document(pet.pet_id).set(DateTimeUtils.for_firestore(pet.to_dict()))
        logging.info(f"Pet created: {pet.pet_id} ({pet.name})")
        return pet

    def update_pet(self, pet_id: str, update_data: Dict[str, Any]) -> Pet:
        """반려동물 정보를 부분 업데이트합니다."""
        pet_ref = self.pets_ref.document(pet_id)
        if not pet_ref.get().exists:
            raise NotFoundError("Pet not found", error_code="PET_NOT_FOUND")
        if update_data:
            pet_ref.update(update_data)
            logging.info(f"Pet {pet_id} updated with fields: {list(update_data.keys())}")
        return self.get_pet(pet_id)

    def delete_pet(self, pet_id: str) -> None:
        # 진행 중인 입양 신청 여부는 확인하지 않습니다.
        pet_ref = self.pets_ref.document(pet_id)
        if not pet_ref.get().exists:
            raise NotFoundError("Pet not found", error_code="PET_NOT_FOUND")
        pet_ref.delete()
        logging.info(f"Pet deleted: {pet_id}")
