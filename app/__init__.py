# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정 및 공통 예외
from app.core.config import config_by_name
from app.core.exceptions import ServiceError

# - API 블루프린트
from app.api.users.routes import users_bp
from app.api.pets.routes import pets_bp
from app.api.products.routes import products_bp
from app.api.adoptions.routes import adoptions_bp
from app.api.orders.routes import orders_bp
from app.api.payments.routes import payments_bp

# - 서비스 모듈
from app.services.storage_service import StorageService
from app.services.mail_service import MailService
from app.services.notification_service import NotificationService
from app.services.payment_gateway_service import PaymentGatewayService
from app.api.users.services import UserService
from app.api.pets.services import PetService
from app.api.products.services import ProductService
from app.api.adoptions.services import AdoptionService
from app.api.orders.services import OrderService
from app.api.payments.services import PaymentService

# - CLI 명령
from app.cli import register_commands


def create_app(config_name=None, test_config=None, db=None, mail_service=None, payment_gateway=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production' (기본값: FLASK_ENV)
    :param test_config: 설정 클래스 위에 덮어쓸 설정 딕셔너리
    :param db: Firestore 클라이언트. 주어지면 Firebase 초기화를 건너뜁니다 (테스트용 주입).
    :param mail_service: 메일 발송 서비스 대체 객체 (send 메서드 필요)
    :param payment_gateway: 결제 게이트웨이 서비스 대체 객체
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if test_config:
        app.config.update(test_config)
    app.json.ensure_ascii = False

    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    if db is None:
        if not firebase_admin._apps:
            cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            firebase_admin.initialize_app(credentials.Certificate(cred_path))
        db = firestore.client()

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 의존성이 없거나 다른 서비스의 기반이 되는 공용/핵심 서비스 먼저 생성
    try:
        storage_instance = StorageService()
        storage_instance.init_app(app)
        app.services['storage'] = storage_instance
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    if mail_service is None:
        mail_service = MailService()
        mail_service.init_app(app)
    app.services['mail'] = mail_service

    if payment_gateway is None:
        payment_gateway = PaymentGatewayService()
        payment_gateway.init_app(app)
    app.services['payment_gateway'] = payment_gateway

    notification_instance = NotificationService(mail_service=app.services['mail'], db=db)
    notification_instance.init_app(app)
    app.services['notifications'] = notification_instance

    app.services['users'] = UserService(db=db)
    app.services['pets'] = PetService(db=db)
    app.services['products'] = ProductService(db=db)

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    # - adoptions 도메인
    adoption_instance = AdoptionService(
        pet_service=app.services['pets'],
        user_service=app.services['users'],
        storage_service=app.services['storage'],
        notification_service=app.services['notifications'],
        db=db
    )
    adoption_instance.init_app(app)
    app.services['adoptions'] = adoption_instance

    # - orders / payments 도메인
    order_instance = OrderService(
        product_service=app.services['products'],
        user_service=app.services['users'],
        db=db
    )
    order_instance.init_app(app)
    app.services['orders'] = order_instance
    app.services['payments'] = PaymentService(
        payment_gateway=app.services['payment_gateway'],
        order_service=app.services['orders']
    )
    logging.info("All services initialized successfully")

    # =====================================================================================
    # 6. 블루프린트 및 CLI 명령 등록
    # =====================================================================================
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(pets_bp, url_prefix='/api/pets')
    app.register_blueprint(products_bp, url_prefix='/api/products')
    app.register_blueprint(adoptions_bp, url_prefix='/api/adoptions')
    app.register_blueprint(orders_bp, url_prefix='/api/orders')
    app.register_blueprint(payments_bp, url_prefix='/api/payments')

    register_commands(app)

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "message": "Validation error", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(ServiceError)
    def handle_service_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        # 404, 405, 413(업로드 크기 초과) 등 Werkzeug 예외는 상태 코드를 그대로 유지
        error_code = (err.name or "HTTP_ERROR").upper().replace(' ', '_')
        return jsonify({"error_code": error_code, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "Server error"}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 앱 반환
    # =====================================================================================
    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
