# skin_admin/services/connection.py
"""
Firestore 연결 초기화 서비스.

네이티브 클라이언트 초기화 전략을 정해진 순서대로 시도하고, 모두 실패하면 예외를 던지는 대신
REST API 기반의 '저하된(degraded)' 연결 핸들을 반환합니다. 호출자는 핸들의 mode 필드로
네이티브/REST 경로를 구분합니다.
"""
import itertools
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from skin_admin.services.rest_client import FirestoreRestClient

logger = logging.getLogger(__name__)

NATIVE = 'native'
DEGRADED = 'rest'


@dataclass
class ConnectionHandle:
    """데이터 계층이 모든 호출에서 넘겨받는 연결 핸들."""
    client: Any
    mode: str
    strategy: str
    app: Any = None

    @property
    def is_degraded(self) -> bool:
        return self.mode == DEGRADED


# ---------------------------------------------------------------------------
# 네이티브 초기화 전략: (config, app_name) -> firebase App
# ---------------------------------------------------------------------------

def _service_account_app(config: Mapping[str, Any], app_name: str):
    """서비스 계정 키 파일로 초기화합니다."""
    cred_path = config.get('FIREBASE_CREDENTIALS_PATH')
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    return firebase_admin.initialize_app(cred, {'projectId': config.get('FIREBASE_PROJECT_ID')}, name=app_name)


def _application_default_app(config: Mapping[str, Any], app_name: str):
    """Application Default Credentials(gcloud, 메타데이터 서버 등)로 초기화합니다."""
    cred = credentials.ApplicationDefault()
    return firebase_admin.initialize_app(cred, {'projectId': config.get('FIREBASE_PROJECT_ID')}, name=app_name)


def _project_default_app(config: Mapping[str, Any], app_name: str):
    """이미 초기화된 기본 앱을 재사용하고, 없으면 프로젝트 ID만으로 초기화합니다."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        return firebase_admin.initialize_app(options={'projectId': config.get('FIREBASE_PROJECT_ID')}, name=app_name)


NATIVE_STRATEGIES: Dict[str, Callable[[Mapping[str, Any], str], Any]] = {
    'service_account': _service_account_app,
    'application_default': _application_default_app,
    'project_default': _project_default_app,
}


class ConnectionManager:
    """
    연결 핸들을 프로세스(인스턴스) 수명 동안 캐시하는 작은 관리자.
    retry()는 캐시를 버리고 전략 순서를 처음부터 다시 실행합니다.
    """

    def __init__(self, config: Mapping[str, Any],
                 strategies: Optional[Dict[str, Callable[[Mapping[str, Any], str], Any]]] = None,
                 rest_session=None, client_factory: Optional[Callable[[Any], Any]] = None):
        self.config = config
        self.strategies = strategies if strategies is not None else NATIVE_STRATEGIES
        self.client_factory = client_factory or firestore.client
        self.rest_session = rest_session
        self._handle: Optional[ConnectionHandle] = None
        self._lock = threading.Lock()
        self._owned_apps = []
        self._app_counter = itertools.count(1)
        self.last_error: Optional[str] = None

    def _strategy_order(self):
        order = self.config.get('FIRESTORE_INIT_STRATEGIES') or list(self.strategies.keys())
        return [name for name in order if name in self.strategies]

    def _probe_native(self, client) -> None:
        """실제 왕복 요청 한 번으로 스트리밍 연결이 맺어지는지 확인합니다."""
        next(iter(client.collection('users').limit(1).stream()), None)

    def _try_native(self) -> Optional[ConnectionHandle]:
        for step, name in enumerate(self._strategy_order(), start=1):
            app_name = f"skin-admin-{name}-{next(self._app_counter)}"
            logger.info(f"Firestore init step {step}: trying '{name}' strategy...")
            try:
                app = self.strategies[name](self.config, app_name)
                if getattr(app, 'name', None) == app_name:
                    self._owned_apps.append(app)
                client = self.client_factory(app)
                if self.config.get('FIRESTORE_CONNECT_PROBE'):
                    self._probe_native(client)
                logger.info(f"Firestore init step {step}: '{name}' strategy succeeded")
                return ConnectionHandle(client=client, mode=NATIVE, strategy=name, app=app)
            except Exception as e:
                logger.warning(f"Firestore init step {step}: '{name}' strategy failed: {e}")
                self.last_error = str(e)
        return None

    def _degraded(self) -> ConnectionHandle:
        client = FirestoreRestClient(
            project_id=self.config.get('FIREBASE_PROJECT_ID'),
            base_url=self.config.get('FIRESTORE_REST_BASE_URL') or 'https://firestore.googleapis.com/v1',
            api_key=self.config.get('FIRESTORE_REST_API_KEY'),
            session=self.rest_session,
        )
        logger.warning("All native Firestore strategies failed; using REST API fallback")
        return ConnectionHandle(client=client, mode=DEGRADED, strategy='rest')

    def connect(self) -> ConnectionHandle:
        """전략 순서를 실행해 새 핸들을 만듭니다. 절대 예외를 전파하지 않습니다."""
        self.last_error = None
        handle = self._try_native()
        return handle if handle is not None else self._degraded()

    def get(self) -> ConnectionHandle:
        with self._lock:
            if self._handle is None:
                self._handle = self.connect()
            return self._handle

    def retry(self) -> ConnectionHandle:
        with self._lock:
            self._release_apps()
            self._handle = self.connect()
            return self._handle

    def _release_apps(self):
        for app in self._owned_apps:
            try:
                firebase_admin.delete_app(app)
            except ValueError:
                pass
        self._owned_apps = []
        self._handle = None

    def status(self) -> Dict[str, Any]:
        """
        연결 상태를 보고합니다. 네이티브면 바로 정상,
        REST 폴백이면 기본 연결 확인까지 실패했을 때만 error 상태가 됩니다.
        """
        handle = self.get()
        if not handle.is_degraded:
            return {'state': 'connected', 'mode': handle.mode, 'strategy': handle.strategy, 'error': None}
        if handle.client.probe():
            return {'state': 'degraded', 'mode': handle.mode, 'strategy': handle.strategy, 'error': None}
        return {
            'state': 'error',
            'mode': handle.mode,
            'strategy': handle.strategy,
            'error': self.last_error or 'REST API connectivity probe failed',
        }
