# petbiz/__init__.py

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
from firebase_admin import credentials

# - 설정 및 공용 예외
from petbiz.core.config import config_by_name
from petbiz.core.errors import PetBizError

# - API 블루프린트
from petbiz.api.auth.routes import auth_bp
from petbiz.api.uploads.routes import uploads_bp
from petbiz.api.users.routes import users_bp
from petbiz.api.bookings.routes import bookings_bp
from petbiz.api.catalog.routes import catalog_bp

# - 서비스 모듈
from petbiz.services.firestore_service import DocumentStore
from petbiz.services.storage_service import StorageService
from petbiz.api.auth.services import AuthService
from petbiz.api.users.services import UserService
from petbiz.api.catalog.services import CatalogService
from petbiz.api.bookings.services import BookingService


def _init_firebase(app: Flask):
    if firebase_admin._apps:
        return
    cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    firebase_admin.initialize_app(cred, {
        'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
    })


def create_app(config_name=None, store=None, storage_service=None):
    """
    Flask 애플리케이션 팩토리 함수.
    store/storage_service를 주입하면 Firebase 초기화 없이 앱을 만들 수 있습니다 (테스트용).
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    if not app.config.get('JWT_SECRET_KEY'):
        raise ValueError("JWT_SECRET_KEY 환경 변수가 설정되지 않았습니다.")

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt_manager = JWTManager(app)

    if store is None or storage_service is None:
        _init_firebase(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용/핵심 서비스 먼저 생성
    if store is None:
        store = DocumentStore(timeout=app.config['FIRESTORE_TIMEOUT_SECONDS'])
    app.services['store'] = store

    if storage_service is None:
        try:
            storage_service = StorageService()
            storage_service.init_app(app)
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    app.services['storage'] = storage_service

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['auth'] = AuthService(store)
    app.services['users'] = UserService(store)
    app.services['catalog'] = CatalogService(store)
    app.services['bookings'] = BookingService(
        store,
        user_service=app.services['users'],
        catalog_service=app.services['catalog'],
        list_limit=app.config['BOOKING_LIST_LIMIT'],
        upcoming_days=app.config['UPCOMING_WINDOW_DAYS'],
    )

    @jwt_manager.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(catalog_bp, url_prefix='/api/services')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({"status": "OK", "environment": config_name}), 200

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(PetBizError)
    def handle_domain_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"error_code": err.name.upper().replace(' ', '_'), "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
