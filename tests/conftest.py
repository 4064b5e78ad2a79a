# tests/conftest.py
"""
공용 pytest 픽스처.

Firestore 는 mock-firestore 로, 메일/결제 게이트웨이는 호출을 기록하는 가짜 객체로 대체합니다.
"""
import io
import json
from datetime import datetime, timezone

import pytest
from flask_jwt_extended import create_access_token
from mockfirestore import MockFirestore

from app import create_app
from app.core.security import compute_hmac_sha256, signatures_match

TEST_RAZORPAY_SECRET = 'test_razorpay_secret'


class FakeMailer:
    """send() 호출을 기록합니다. fail=True 이면 SMTP 오류처럼 예외를 발생시킵니다."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, text_body, html_body=None):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append({'to': to, 'subject': subject, 'text': text_body, 'html': html_body})
        return f"<fake-{len(self.sent)}@petcare.com>"


class FakeGateway:
    """결제 게이트웨이 대체 객체. 서명 검증은 실제 HMAC 계산을 사용합니다."""

    def __init__(self, key_secret=TEST_RAZORPAY_SECRET):
        self.key_secret = key_secret
        self.created_orders = []

    def create_order(self, amount, currency='INR', receipt=None):
        gateway_order = {'id': f"order_{len(self.created_orders) + 1}", 'amount': amount,
                         'currency': currency, 'receipt': receipt, 'status': 'created'}
        self.created_orders.append(gateway_order)
        return gateway_order

    def verify_signature(self, gateway_order_id, gateway_payment_id, signature):
        expected = compute_hmac_sha256(self.key_secret, f"{gateway_order_id}|{gateway_payment_id}")
        return signatures_match(expected, signature)


def sign(order_id, payment_id, secret=TEST_RAZORPAY_SECRET):
    return compute_hmac_sha256(secret, f"{order_id}|{payment_id}")


@pytest.fixture
def db():
    mock_db = MockFirestore()
    yield mock_db
    mock_db.reset()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(db, mailer, gateway, tmp_path):
    app = create_app(
        'testing',
        test_config={'UPLOAD_FOLDER': str(tmp_path / 'uploads'), 'BASE_URL': 'http://petcare.test'},
        db=db,
        mail_service=mailer,
        payment_gateway=gateway,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


def _seed(db, collection, doc_id, data):
    db.collection(collection).document(doc_id).set(data)
    return data


@pytest.fixture
def seed_user(db):
    def _seed_user(user_id='user-1', name='Asha Rao', email='asha@example.com', phone='9876543210', is_admin=False):
        return _seed(db, 'users', user_id, {
            'user_id': user_id, 'name': name, 'email': email, 'phone': phone,
            'is_admin': is_admin, 'created_at': datetime(2024, 1, 1, tzinfo=timezone.utc),
        })
    return _seed_user


@pytest.fixture
def seed_pet(db):
    def _seed_pet(pet_id='pet-1', name='Bruno', is_adopted=False, category='Dog', image='uploads/pets/bruno.jpg',
                  created_at=datetime(2024, 1, 10, tzinfo=timezone.utc)):
        return _seed(db, 'pets', pet_id, {
            'pet_id': pet_id, 'name': name, 'category': category, 'breed': 'Labrador', 'age': 2,
            'gender': 'Male', 'size': 'Large', 'description': 'Friendly and playful',
            'health_status': 'Healthy', 'image': image, 'is_adopted': is_adopted,
            'created_at': created_at,
        })
    return _seed_pet


@pytest.fixture
def seed_product(db):
    def _seed_product(product_id='prod-1', name='Flea Shampoo', price=249.5):
        return _seed(db, 'products', product_id, {
            'product_id': product_id, 'name': name, 'price': price, 'category': 'Grooming',
            'brand': 'PetCo', 'image': None, 'in_stock': True, 'stock_quantity': 10,
        })
    return _seed_product


@pytest.fixture
def users(seed_user):
    """일반 사용자 두 명과 관리자 한 명."""
    return {
        'applicant': seed_user('user-1'),
        'other': seed_user('user-2', name='Ravi Kumar', email='ravi@example.com', phone='9123456780'),
        'admin': seed_user('admin-1', name='Admin', email='admin@petcare.com', is_admin=True),
    }


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user_id):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers


@pytest.fixture
def seed_adoption(db):
    def _seed_adoption(adoption_id, pet_id='pet-1', applicant_id='user-1', status='Pending',
                       created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)):
        return _seed(db, 'adoptions', adoption_id, {
            'adoption_id': adoption_id, 'pet_id': pet_id, 'applicant_id': applicant_id,
            'personal_details': {'phone': '9876543210', 'id_proof_type': 'aadhar',
                                 'id_proof_file': 'id-proofs/existing.pdf'},
            'living_situation': {'home_type': 'House', 'has_yard': True, 'other_pets': False,
                                 'other_pets_details': None},
            'experience': {'has_experience': False, 'experience_details': None},
            'reason_for_adoption': 'I have always wanted a loyal companion at home.',
            'status': status, 'additional_notes': None, 'admin_notes': None,
            'created_at': created_at, 'updated_at': created_at,
        })
    return _seed_adoption


def application_form(pet_id='pet-1', **overrides):
    """유효한 입양 신청 multipart 폼 데이터 (신분증 파일 포함)."""
    form = {
        'pet': pet_id,
        'personalDetails': json.dumps({'phone': '9876543210', 'idProofType': 'aadhar'}),
        'livingSituation': json.dumps({'homeType': 'House', 'hasYard': True, 'otherPets': False}),
        'experience': json.dumps({'hasExperience': True, 'experienceDetails': 'Raised two dogs'}),
        'reasonForAdoption': 'I work from home and can give this dog a lot of attention.',
        'additionalNotes': 'Available for a home visit any weekend.',
    }
    form.update(overrides)
    if 'idProofFile' not in overrides:
        form['idProofFile'] = (io.BytesIO(b'%PDF-1.4 test document'), 'aadhar.pdf', 'application/pdf')
    elif overrides['idProofFile'] is None:
        form.pop('idProofFile')
    return {key: value for key, value in form.items() if value is not None}
