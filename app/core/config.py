# app/core/config.py

import os


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰 발급은 외부 인증 서비스가 담당하고, 이 서버는 검증만 합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    # 신분증 등 업로드 문서가 저장될 루트 디렉터리
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', 'uploads')
    # 요청 전체 크기 상한 (multipart 오버헤드 포함)
    MAX_CONTENT_LENGTH = 6 * 1024 * 1024
    ID_PROOF_MAX_BYTES = 5 * 1024 * 1024
    ID_PROOF_ALLOWED_MIMETYPES = ('application/pdf', 'image/jpeg', 'image/jpg')

    # Razorpay 결제 게이트웨이. KEY_SECRET은 서명 검증용 HMAC 키로도 사용됩니다.
    RAZORPAY_KEY_ID = os.getenv('RAZORPAY_KEY_ID')
    RAZORPAY_KEY_SECRET = os.getenv('RAZORPAY_KEY_SECRET')
    RAZORPAY_API_BASE = os.getenv('RAZORPAY_API_BASE', 'https://api.razorpay.com/v1')
    PAYMENT_GATEWAY_TIMEOUT = int(os.getenv('PAYMENT_GATEWAY_TIMEOUT', 10))

    # SMTP 메일 발송 설정. 발송 생략(MAIL_SUPPRESS_SEND)은 개발/테스트 환경에서만 기본값입니다.
    MAIL_SERVER = os.getenv('MAIL_SERVER')
    MAIL_PORT = int(os.getenv('MAIL_PORT', 587))
    MAIL_USE_TLS = os.getenv('MAIL_USE_TLS', 'true').lower() == 'true'
    MAIL_USERNAME = os.getenv('MAIL_USERNAME')
    MAIL_PASSWORD = os.getenv('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.getenv('MAIL_DEFAULT_SENDER', '"PetCare" <noreply@petcare.com>')
    MAIL_TIMEOUT = int(os.getenv('MAIL_TIMEOUT', 10))
    MAIL_SUPPRESS_SEND = os.getenv('MAIL_SUPPRESS_SEND', 'false').lower() == 'true'

    # 이메일 본문의 상대 경로 이미지를 절대 URL로 바꿀 때 사용
    BASE_URL = os.getenv('BASE_URL', 'http://localhost:5000')

    NOTIFICATION_MAX_ATTEMPTS = int(os.getenv('NOTIFICATION_MAX_ATTEMPTS', 5))

    ADOPTIONS_DEFAULT_PAGE_SIZE = 20
    ADOPTIONS_MAX_PAGE_SIZE = 100
    ORDERS_DEFAULT_PAGE_SIZE = 10


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')
    # SMTP 서버가 없으면 메일 내용을 로그로만 확인
    MAIL_SUPPRESS_SEND = os.getenv('MAIL_SUPPRESS_SEND', 'false' if os.getenv('MAIL_SERVER') else 'true').lower() == 'true'


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'test-jwt-secret-key-with-enough-length')
    RAZORPAY_KEY_ID = 'rzp_test_key'
    RAZORPAY_KEY_SECRET = 'test_razorpay_secret'
    MAIL_SUPPRESS_SEND = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')


class ProductionConfig(Config):
    """운영 환경 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('PROD_FIREBASE_CREDENTIALS_PATH')


# config_by_name: FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
