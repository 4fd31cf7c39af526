# skin_admin/core/config.py

import os


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _get_int(name: str, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return int(value)


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # 관리자 로그인 게이트(로컬 비밀번호)와 JWT 서명 키
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD')

    # Firestore 연결 설정
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID', 'reme-57c1b')
    FIRESTORE_REST_BASE_URL = os.getenv('FIRESTORE_REST_BASE_URL', 'https://firestore.googleapis.com/v1')
    FIRESTORE_REST_API_KEY = os.getenv('FIRESTORE_REST_API_KEY')
    # 네이티브 초기화 전략 순서. 모두 실패하면 REST 폴백으로 전환됩니다.
    FIRESTORE_INIT_STRATEGIES = [
        s.strip() for s in
        os.getenv('FIRESTORE_INIT_STRATEGIES', 'service_account,application_default,project_default').split(',')
        if s.strip()
    ]
    # 네이티브 클라이언트 생성 후 실제 왕복 요청으로 연결을 확인할지 여부
    FIRESTORE_CONNECT_PROBE = _get_bool('FIRESTORE_CONNECT_PROBE', True)

    # 조회 상한 (집계 통계도 이 상한 안에서 계산됩니다)
    LIST_LIMIT = _get_int('LIST_LIMIT', 20)
    COLLECTION_BROWSE_LIMIT = _get_int('COLLECTION_BROWSE_LIMIT', 50)
    PRODUCT_PAGE_SIZE = _get_int('PRODUCT_PAGE_SIZE', 20)
    EXPORT_USER_LIMIT = _get_int('EXPORT_USER_LIMIT', 200)
    # None이면 CSV 행마다 작업 하나씩 동시에 실행합니다.
    IMPORT_MAX_WORKERS = _get_int('IMPORT_MAX_WORKERS', None)


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length'
    ADMIN_PASSWORD = 'admin'
    FIRESTORE_CONNECT_PROBE = False


# config_by_name: FLASK_ENV 값('development', 'testing')에 따라 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig
)
