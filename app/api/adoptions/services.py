# app/api/adoptions/services.py
import logging
import math
import uuid
from collections import Counter
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple
from firebase_admin import firestore
from firebase_admin.firestore import Transaction
from marshmallow import ValidationError
from werkzeug.datastructures import FileStorage

from app.core.exceptions import NotFoundError, ConflictError, ForbiddenError
from app.models.adoption import (
    Adoption, AdoptionStatus, ACTIVE_STATUSES,
    PersonalDetails, LivingSituation, Experience, IdProofType, HomeType,
)
from app.models.pet import Pet
from app.models.user import User
from app.utils.datetime_utils import DateTimeUtils
from .schemas import AdoptionCreateSchema, ADOPTION_SORT_FIELDS, check_required_submission_fields

ID_PROOF_FOLDER = 'id-proofs'
RECENT_STATS_LIMIT = 5

# PATCH 요청에서 adminNotes 가 생략된 경우와 null 로 전달된 경우를 구분하기 위한 표식
_UNSET = object()


class AdoptionService:
    """
    입양 신청의 생성, 상태 전이, 조회를 담당하는 서비스.

    반려동물의 is_adopted 값은 오직 이 서비스의 상태 전이를 통해서만 바뀌며,
    '반려동물에 Approved 신청이 하나라도 있으면 is_adopted == True' 관계를 유지합니다.
    """
    def __init__(self, pet_service, user_service, storage_service, notification_service, db=None):
        self.db = db or firestore.client()
        self.adoptions_ref = self.db.collection('adoptions')
        self.pet_service = pet_service
        self.user_service = user_service
        self.storage_service = storage_service
        self.notification_service = notification_service
        self.base_url = 'http://localhost:5000'
        self.default_page_size = 20
        self.max_page_size = 100

    def init_app(self, app):
        self.base_url = app.config.get('BASE_URL', self.base_url)
        self.default_page_size = app.config.get('ADOPTIONS_DEFAULT_PAGE_SIZE', self.default_page_size)
        self.max_page_size = app.config.get('ADOPTIONS_MAX_PAGE_SIZE', self.max_page_size)

    # ------------------------------------------------------------------
    # 신청서 제출
    # ------------------------------------------------------------------
    def submit_application(self, applicant_id: str, submission: Dict[str, Any],
                           id_proof_file: Optional[FileStorage]) -> Dict[str, Any]:
        """
        입양 신청서를 검증하고 Pending 상태로 저장합니다.

        검증 순서: 필수 항목 -> 반려동물 존재 -> 입양 가능 여부 -> 중복 신청 -> 세부 형식.
        어느 단계에서 실패하든 업로드된 신분증 파일은 남지 않습니다.

        :param applicant_id: 신청자 user_id (JWT identity)
        :param submission: JSON 필드가 디코딩된 폼 데이터 (camelCase 키)
        :param id_proof_file: 업로드된 신분증 파일 (PDF/JPEG)
        :raises ValidationError: 필수 항목 누락, 형식 오류, 파일 형식/크기 오류
        :raises NotFoundError: 반려동물이 존재하지 않을 때
        :raises ConflictError: 이미 입양된 반려동물이거나 진행 중인 신청이 있을 때
        """
        has_file = id_proof_file is not None and bool(id_proof_file.filename)
        check_required_submission_fields(submission, has_file)

        with self.storage_service.staged_upload(id_proof_file, ID_PROOF_FOLDER, field_name='idProofFile') as staged:
            pet_id = submission['pet'].strip()
            pet = self.pet_service.find_pet(pet_id)
            if pet is None:
                logging.warning(f"Adoption submission rejected: pet {pet_id} not found (applicant: {applicant_id})")
                raise NotFoundError("Pet not found", error_code="PET_NOT_FOUND")
            if pet.is_adopted:
                logging.warning(f"Adoption submission rejected: pet {pet_id} already adopted (applicant: {applicant_id})")
                raise ConflictError("This pet has already been adopted", error_code="PET_ALREADY_ADOPTED", status_code=400)
            if self.has_active_application(pet_id, applicant_id):
                logging.warning(f"Duplicate adoption application for pet {pet_id} by {applicant_id}")
                raise ConflictError("You have already submitted an application for this pet",
                                    error_code="DUPLICATE_APPLICATION")

            data = AdoptionCreateSchema().load(dict(submission, pet=pet_id))

            now = DateTimeUtils.now()
            adoption = Adoption(
                adoption_id=str(uuid.uuid4()),
                pet_id=pet_id,
                applicant_id=applicant_id,
                personal_details=PersonalDetails(
                    phone=data['personal_details']['phone'],
                    id_proof_type=IdProofType(data['personal_details']['id_proof_type']),
                    id_proof_file=staged.reference,
                ),
                living_situation=LivingSituation(
                    home_type=HomeType(data['living_situation']['home_type']),
                    has_yard=data['living_situation']['has_yard'],
                    other_pets=data['living_situation']['other_pets'],
                    other_pets_details=data['living_situation'].get('other_pets_details'),
                ),
                experience=Experience(
                    has_experience=data['experience']['has_experience'],
                    experience_details=data['experience'].get('experience_details'),
                ),
                reason_for_adoption=data['reason_for_adoption'],
                additional_notes=data.get('additional_notes'),
                status=AdoptionStatus.PENDING,
                created_at=now,
                updated_at=now,
            )

            adoption_ref = self.adoptions_ref.document(adoption.adoption_id)
            adoption_ref.set(DateTimeUtils.for_firestore(adoption.to_dict()))
            try:
                staged.commit()
            except OSError:
                # 문서가 가리킬 파일이 없으므로 신청 기록도 되돌립니다.
                adoption_ref.delete()
                raise

        logging.info(f"Adoption application {adoption.adoption_id} submitted for pet {pet_id} by {applicant_id}")
        return self._populate([adoption])[0]

    def has_active_application(self, pet_id: str, applicant_id: str) -> bool:
        """(반려동물, 신청자) 쌍에 Pending 또는 Approved 신청이 있는지 확인합니다."""
        query = (self.adoptions_ref
                 .where('pet_id', '==', pet_id)
                 .where('applicant_id', '==', applicant_id)
                 .where('status', 'in', [status.value for status in ACTIVE_STATUSES])
                 .limit(1))
        return any(True for _ in query.stream())

    # ------------------------------------------------------------------
    # 상태 전이 (관리자)
    # ------------------------------------------------------------------
    def transition_status(self, adoption_id: str, status: str, admin_notes=_UNSET) -> Tuple[Dict[str, Any], bool]:
        """
        입양 신청 상태를 변경하고 반려동물 입양 여부를 함께 갱신합니다.

        신청서/반려동물 조회, 다른 Approved 신청 확인, 두 문서의 쓰기가 모두 하나의 트랜잭션 안에서
        수행되므로 동시에 들어온 전이는 충돌 시 재시도됩니다. 상태가 실제로 바뀐 경우에만 신청자에게
        이메일 알림을 시도하며, 알림 실패는 상태 변경 결과에 영향을 주지 않습니다.

        :return: (갱신된 신청 정보, 이메일 발송 성공 여부)
        :raises ValidationError: 허용되지 않은 상태 값
        :raises NotFoundError: 신청서가 존재하지 않을 때
        """
        try:
            target = AdoptionStatus(status)
        except ValueError:
            raise ValidationError({'status': ["Invalid status. Must be: Pending, Approved, or Rejected"]})

        adoption_ref = self.adoptions_ref.document(adoption_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _transition_in_transaction(transaction: Transaction):
            # Firestore 트랜잭션은 모든 읽기가 쓰기보다 먼저 와야 함
            snapshot = self._get_in_transaction(transaction, adoption_ref)
            if not snapshot.exists:
                raise NotFoundError("Adoption application not found", error_code="ADOPTION_NOT_FOUND")

            adoption = Adoption.from_dict(snapshot.to_dict())
            pet_ref = self.pet_service.pets_ref.document(adoption.pet_id)
            pet_snapshot = self._get_in_transaction(transaction, pet_ref)
            pet: Optional[Pet] = None
            pet_update = None
            if pet_snapshot.exists:
                pet = Pet.from_dict(pet_snapshot.to_dict())
                other_approved = (False if target.grants_adoption
                                  else self._has_other_approved(adoption.pet_id, adoption_id, transaction))
                should_be_adopted = target.side_effect_for(other_approved)
                if pet.is_adopted != should_be_adopted:
                    pet_update = {'is_adopted': should_be_adopted}
                    pet.is_adopted = should_be_adopted

            previous = adoption.status
            adoption.status = target
            adoption.updated_at = DateTimeUtils.now()
            if admin_notes is not _UNSET:
                adoption.admin_notes = admin_notes

            transaction.update(adoption_ref, {
                'status': target.value,
                'admin_notes': adoption.admin_notes,
                'updated_at': adoption.updated_at,
            })
            if pet_update is not None:
                transaction.update(pet_ref, pet_update)
            return adoption, previous, pet, pet_update

        adoption, previous, pet, pet_update = _transition_in_transaction(transaction)
        if pet is None:
            logging.warning(f"Pet {adoption.pet_id} for adoption {adoption_id} no longer exists; updating application only.")
        logging.info(f"Adoption {adoption_id} status changed: {previous.value} -> {target.value}"
                     + (f" (pet {adoption.pet_id} is_adopted={pet_update['is_adopted']})" if pet_update else ""))

        email_sent = False
        if target is not previous:
            email_sent = self._notify_status_change(adoption, pet)

        return self._populate([adoption])[0], email_sent

    @staticmethod
    def _get_in_transaction(transaction: Transaction, doc_ref):
        return next(iter(transaction.get_all([doc_ref])))

    def _has_other_approved(self, pet_id: str, adoption_id: str, transaction: Transaction) -> bool:
        query = (self.adoptions_ref
                 .where('pet_id', '==', pet_id)
                 .where('status', '==', AdoptionStatus.APPROVED.value))
        return any(doc.id != adoption_id for doc in query.stream(transaction=transaction))

    def _notify_status_change(self, adoption: Adoption, pet: Optional[Pet]) -> bool:
        """알림 outbox 에 기록 후 발송을 시도합니다. 어떤 실패도 호출자에게 전파하지 않습니다."""
        try:
            applicant = self.user_service.get_user(adoption.applicant_id)
            if applicant is None or not applicant.email:
                logging.warning(f"Status email skipped for adoption {adoption.adoption_id}: applicant has no email.")
                return False
            return self.notification_service.notify_adoption_status(
                adoption_id=adoption.adoption_id,
                recipient_id=applicant.user_id,
                recipient_email=applicant.email,
                recipient_name=applicant.name,
                pet_name=pet.name if pet else 'your pet',
                status=adoption.status.value,
                pet_image_url=self._absolute_image_url(pet.image if pet else None),
                admin_notes=adoption.admin_notes,
            )
        except Exception as e:
            logging.warning(f"Error sending adoption status email (adoption: {adoption.adoption_id}): {e}", exc_info=True)
            return False

    def _absolute_image_url(self, image: Optional[str]) -> Optional[str]:
        if not image or image.startswith('http'):
            return image
        return f"{self.base_url.rstrip('/')}/{image.lstrip('/')}"

    # ------------------------------------------------------------------
    # 조회 / 삭제
    # ------------------------------------------------------------------
    def list_adoptions(self, status: Optional[str] = None, page: int = 1, limit: Optional[int] = None,
                       sort_by: str = 'createdAt', sort_order: str = 'desc') -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """
        [관리자] 상태 필터, 페이지네이션, 정렬을 적용한 신청 목록을 반환합니다.
        limit 은 최대 max_page_size 로 제한되며, status 가 'all' 이면 필터를 적용하지 않습니다.
        """
        limit = min(limit or self.default_page_size, self.max_page_size)
        query = self.adoptions_ref
        if status and status != 'all':
            query = query.where('status', '==', status)

        total = sum(1 for _ in query.stream())

        direction = firestore.Query.DESCENDING if sort_order == 'desc' else firestore.Query.ASCENDING
        query = (query.order_by(ADOPTION_SORT_FIELDS[sort_by], direction=direction)
                 .offset((page - 1) * limit)
                 .limit(limit))
        adoptions = self._populate(self._load(query))

        pagination = {
            'currentPage': page,
            'totalPages': math.ceil(total / limit),
            'totalItems': total,
            'itemsPerPage': limit,
        }
        return adoptions, pagination

    def list_all(self) -> List[Dict[str, Any]]:
        query = self.adoptions_ref.order_by('created_at', direction=firestore.Query.DESCENDING)
        return self._populate(self._load(query))

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """신청자 본인의 신청 목록 (최신순)."""
        query = (self.adoptions_ref
                 .where('applicant_id', '==', user_id)
                 .order_by('created_at', direction=firestore.Query.DESCENDING))
        return self._populate(self._load(query), include_applicant=False)

    def list_for_pet(self, pet_id: str) -> List[Dict[str, Any]]:
        query = (self.adoptions_ref
                 .where('pet_id', '==', pet_id)
                 .order_by('created_at', direction=firestore.Query.DESCENDING))
        return self._populate(self._load(query))

    def get_adoption(self, adoption_id: str, requester: Optional[User] = None) -> Dict[str, Any]:
        """
        신청서 한 건을 반려동물 정보와 함께 조회합니다.
        requester 가 주어지면 본인 신청이거나 관리자인 경우에만 허용합니다.
        """
        snapshot = self.adoptions_ref.document(adoption_id).get()
        if not snapshot.exists:
            raise NotFoundError("Adoption application not found", error_code="ADOPTION_NOT_FOUND")
        adoption = Adoption.from_dict(snapshot.to_dict())
        if requester is not None and not requester.is_admin and adoption.applicant_id != requester.user_id:
            raise ForbiddenError("You are not allowed to view this application")
        return self._populate([adoption])[0]

    def delete_adoption(self, adoption_id: str) -> None:
        # 신분증 파일은 함께 삭제하지만 반려동물의 is_adopted 는 되돌리지 않습니다.
        # 필요 시 reconcile_pet_availability 로 복구합니다.
        adoption_ref = self.adoptions_ref.document(adoption_id)
        snapshot = adoption_ref.get()
        if not snapshot.exists:
            raise NotFoundError("Adoption application not found", error_code="ADOPTION_NOT_FOUND")
        data = snapshot.to_dict()
        adoption_ref.delete()
        id_proof_file = (data.get('personal_details') or {}).get('id_proof_file')
        if id_proof_file:
            self.storage_service.delete(id_proof_file)
        if data.get('status') == AdoptionStatus.APPROVED.value:
            logging.warning(f"Approved adoption {adoption_id} deleted; pet {data.get('pet_id')} availability was not restored.")
        logging.info(f"Adoption application {adoption_id} deleted")

    def get_stats(self) -> Dict[str, Any]:
        """상태별 신청 건수와 최근 Pending/Approved 신청 5건씩을 반환합니다."""
        adoptions = self._load(self.adoptions_ref)
        counts = Counter(adoption.status for adoption in adoptions)

        def _recent(status: AdoptionStatus) -> List[Dict[str, Any]]:
            matching = [adoption for adoption in adoptions if adoption.status is status]
            matching.sort(key=lambda adoption: adoption.created_at, reverse=True)
            return self._populate(matching[:RECENT_STATS_LIMIT], include_applicant=False)

        return {
            'total': len(adoptions),
            'pending': counts[AdoptionStatus.PENDING],
            'approved': counts[AdoptionStatus.APPROVED],
            'rejected': counts[AdoptionStatus.REJECTED],
            'recent_pending': _recent(AdoptionStatus.PENDING),
            'recent_approved': _recent(AdoptionStatus.APPROVED),
        }

    # ------------------------------------------------------------------
    # 정합성 복구
    # ------------------------------------------------------------------
    def reconcile_pet_availability(self, dry_run: bool = False) -> List[Dict[str, Any]]:
        """
        Approved 신청 목록을 기준으로 모든 반려동물의 is_adopted 값을 다시 계산하고,
        불일치하는 반려동물을 찾아 수정합니다 (dry_run 이면 목록만 반환).
        """
        approved_query = self.adoptions_ref.where('status', '==', AdoptionStatus.APPROVED.value)
        approved_pet_ids = {doc.to_dict().get('pet_id') for doc in approved_query.stream()}

        repairs = []
        for doc in self.pet_service.pets_ref.stream():
            data = doc.to_dict()
            pet_id = data.get('pet_id', doc.id)
            expected = pet_id in approved_pet_ids
            current = bool(data.get('is_adopted'))
            if current == expected:
                continue
            repairs.append({'pet_id': pet_id, 'name': data.get('name'), 'was': current, 'now': expected})
            if not dry_run:
                self.pet_service.pets_ref.document(pet_id).update({'is_adopted': expected})

        if repairs:
            logging.warning(f"Pet availability mismatch found for {len(repairs)} pet(s)" + (" (dry run)" if dry_run else "; repaired."))
        else:
            logging.info("Pet availability is consistent with approved adoptions.")
        return repairs

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------
    @staticmethod
    def _load(query) -> List[Adoption]:
        return [Adoption.from_dict(doc.to_dict()) for doc in query.stream()]

    def _populate(self, adoptions: List[Adoption], include_applicant: bool = True) -> List[Dict[str, Any]]:
        """신청 목록에 반려동물 요약과 신청자 정보(이름, 이메일, 연락처)를 채워 넣습니다."""
        pets = self.pet_service.get_pets(adoption.pet_id for adoption in adoptions)
        users = self.user_service.get_users(adoption.applicant_id for adoption in adoptions) if include_applicant else {}

        populated = []
        for adoption in adoptions:
            adoption_dict = adoption.to_dict()
            pet = pets.get(adoption.pet_id)
            applicant = users.get(adoption.applicant_id)
            adoption_dict['pet'] = pet.to_dict() if pet else None
            adoption_dict['applicant'] = asdict(applicant) if applicant else None
            populated.append(adoption_dict)
        return populated
