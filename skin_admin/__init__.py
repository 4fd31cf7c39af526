# skin_admin/__init__.py

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
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

# - 설정 및 공통 예외
from skin_admin.core.config import config_by_name
from skin_admin.core.errors import DegradedConnectionError

# - API 블루프린트
from skin_admin.api.auth.routes import auth_bp
from skin_admin.api.connection.routes import connection_bp
from skin_admin.api.users.routes import users_bp
from skin_admin.api.products.routes import products_bp
from skin_admin.api.prompts.routes import prompts_bp
from skin_admin.api.analytics.routes import analytics_bp
from skin_admin.api.collections.routes import collections_bp
from skin_admin.api.export.routes import export_bp

# - 서비스
from skin_admin.services.connection import ConnectionManager
from skin_admin.services.data_access import DataAccessLayer
from skin_admin.api.users.services import UserService
from skin_admin.api.products.services import ProductService
from skin_admin.api.prompts.services import PromptService
from skin_admin.api.analytics.services import AnalyticsService
from skin_admin.api.export.services import ExportService
from skin_admin.api.collections.services import CollectionBrowserService


def create_app(config_name=None, connection_manager=None):
    """
    Flask 애플리케이션 팩토리 함수.
    connection_manager를 넘기면 (테스트 등에서) 기본 ConnectionManager 대신 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 초기화
    # =====================================================================================
    JWTManager(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 연결 관리자와 데이터 접근 계층. 실제 연결은 첫 요청 시점에 맺어집니다.
    app.services['connection'] = connection_manager or ConnectionManager(app.config)
    app.services['data'] = DataAccessLayer(app.services['connection'])
    data_access = app.services['data']

    # 5-2. 도메인 서비스
    app.services['users'] = UserService(data_access, list_limit=app.config['LIST_LIMIT'])
    app.services['products'] = ProductService(
        data_access,
        page_size=app.config['PRODUCT_PAGE_SIZE'],
        import_max_workers=app.config['IMPORT_MAX_WORKERS']
    )
    app.services['prompts'] = PromptService(data_access)
    app.services['analytics'] = AnalyticsService(data_access, stats_limit=app.config['LIST_LIMIT'])
    app.services['export'] = ExportService(data_access, export_user_limit=app.config['EXPORT_USER_LIMIT'])
    app.services['collections'] = CollectionBrowserService(
        data_access,
        browse_limit=app.config['COLLECTION_BROWSE_LIMIT']
    )

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(connection_bp, url_prefix='/api/connection')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(products_bp, url_prefix='/api/products')
    app.register_blueprint(prompts_bp, url_prefix='/api/prompts')
    app.register_blueprint(analytics_bp, url_prefix='/api/analytics')
    app.register_blueprint(collections_bp, url_prefix='/api/collections')
    app.register_blueprint(export_bp, url_prefix='/api/export')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(DegradedConnectionError)
    def handle_degraded_connection(err):
        logging.warning(f"Write rejected on degraded connection: {err}")
        response = {"error_code": "DEGRADED_CONNECTION", "message": "REST 폴백 연결에서는 쓰기 작업을 할 수 없습니다. 연결을 다시 시도해 주세요."}
        return jsonify(response), 503

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {"error_code": err.name.upper().replace(" ", "_"), "message": err.description}
        return jsonify(response), err.code

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
