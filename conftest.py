# conftest.py
"""
공용 pytest 픽스처.

- FakeFirestore: firebase_admin Firestore 클라이언트를 흉내 내는 인메모리 저장소
  (하위 컬렉션, order_by, limit, start_after, collection_group, set(merge=), SERVER_TIMESTAMP)
- FakeRestSession: REST 폴백 경로용 requests 세션 대역
- app / client / auth_headers: 네이티브 연결로 구성된 Flask 테스트 앱
"""
import copy
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from urllib.parse import unquote

import pytest
import requests
from firebase_admin import firestore
from flask_jwt_extended import create_access_token

from skin_admin import create_app
from skin_admin.services.connection import ConnectionManager
from skin_admin.services.data_access import DataAccessLayer

DOCUMENT_ID = '__name__'


# =====================================================================================
# 인메모리 Firestore
# =====================================================================================

class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path.rsplit('/', 1)[-1]

    def __deepcopy__(self, memo):
        # 참조 값은 저장소 자체를 복사하지 않고 그대로 공유합니다.
        return self

    def get(self):
        return FakeSnapshot(self, self._db.docs.get(self.path))

    def set(self, data, merge=False):
        if self.id in self._db.fail_writes_for:
            raise RuntimeError(f"write to {self.path} failed")
        resolved = self._db.resolve(data)
        if merge and self.path in self._db.docs:
            self._db.docs[self.path].update(resolved)
        else:
            self._db.docs[self.path] = resolved

    def delete(self):
        self._db.docs.pop(self.path, None)

    def collection(self, collection_id):
        return FakeCollectionReference(self._db, f"{self.path}/{collection_id}")


class FakeQuery:
    def __init__(self, db, collection_path=None, group_id=None):
        self._db = db
        self._collection_path = collection_path
        self._group_id = group_id
        self._orders = []
        self._limit = None
        self._start_after = None

    def _copy(self):
        query = FakeQuery(self._db, self._collection_path, self._group_id)
        query._orders = list(self._orders)
        query._limit = self._limit
        query._start_after = self._start_after
        return query

    def order_by(self, field_path, direction=firestore.Query.ASCENDING):
        query = self._copy()
        query._orders.append((field_path, direction))
        return query

    def limit(self, count):
        query = self._copy()
        query._limit = count
        return query

    def start_after(self, document_fields_or_snapshot):
        query = self._copy()
        query._start_after = document_fields_or_snapshot
        return query

    def _matches(self, path):
        parent, _, _ = path.rpartition('/')
        if self._group_id is not None:
            return parent.rsplit('/', 1)[-1] == self._group_id
        return parent == self._collection_path

    @staticmethod
    def _value(path, data, field_path):
        if field_path == DOCUMENT_ID:
            return path.rsplit('/', 1)[-1]
        return data.get(field_path)

    def _cursor_value(self, field_path):
        cursor = self._start_after
        if isinstance(cursor, dict):
            value = cursor[field_path]
            return value.id if isinstance(value, FakeDocumentReference) else value
        if field_path == DOCUMENT_ID:
            return cursor.id
        return cursor.to_dict().get(field_path)

    def stream(self):
        rows = [(path, data) for path, data in self._db.docs.items() if self._matches(path)]
        for field_path, _ in self._orders:
            if field_path != DOCUMENT_ID:
                rows = [row for row in rows if row[1].get(field_path) is not None]
        for field_path, direction in reversed(self._orders):
            rows.sort(key=lambda row: self._value(row[0], row[1], field_path),
                      reverse=direction == firestore.Query.DESCENDING)
        if self._start_after is not None and self._orders:
            field_path, direction = self._orders[0]
            boundary = self._cursor_value(field_path)
            if direction == firestore.Query.DESCENDING:
                rows = [row for row in rows if self._value(row[0], row[1], field_path) < boundary]
            else:
                rows = [row for row in rows if self._value(row[0], row[1], field_path) > boundary]
        if self._limit is not None:
            rows = rows[:self._limit]
        for path, data in rows:
            yield FakeSnapshot(FakeDocumentReference(self._db, path), copy.deepcopy(data))


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, collection_path=path)
        self.id = path.rsplit('/', 1)[-1]

    def document(self, document_id=None):
        document_id = document_id or f"auto{next(self._db.id_counter):04d}"
        return FakeDocumentReference(self._db, f"{self._collection_path}/{document_id}")

    def add(self, data):
        reference = self.document()
        reference.set(data)
        return self._db.tick(), reference


class FakeFirestore:
    """firebase_admin의 Firestore Client 중 데이터 계층이 쓰는 부분만 구현한 대역."""

    def __init__(self, clock_start=datetime(2024, 5, 1, tzinfo=timezone.utc)):
        self.docs = {}
        self.fail_writes_for = set()
        self.id_counter = itertools.count(1)
        self._clock = clock_start

    def tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def resolve(self, data):
        return {k: (self.tick() if v is firestore.SERVER_TIMESTAMP else copy.deepcopy(v)) for k, v in data.items()}

    def collection(self, path):
        return FakeCollectionReference(self, path)

    def collection_group(self, collection_id):
        return FakeQuery(self, group_id=collection_id)

    def collections(self):
        names = sorted({path.split('/', 1)[0] for path in self.docs})
        return [FakeCollectionReference(self, name) for name in names]

    def seed(self, collection_path, doc_id, data):
        """테스트 데이터를 직접 넣습니다 (SERVER_TIMESTAMP 변환 없이)."""
        self.docs[f"{collection_path}/{doc_id}"] = copy.deepcopy(data)


# =====================================================================================
# REST 폴백용 requests 세션 대역
# =====================================================================================

class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeRestSession:
    """
    Firestore REST 문서 엔드포인트를 흉내 냅니다. 문서는 REST 형식
    ({'name': ..., 'fields': {'x': {'stringValue': ...}}})으로 저장됩니다.
    """

    def __init__(self):
        self.documents = {}
        self.query_results = []
        self.calls = []
        self.offline = False

    def add(self, collection_path, doc_id, fields):
        name = f"projects/test-project/databases/(default)/documents/{collection_path}/{doc_id}"
        self.documents[f"{collection_path}/{doc_id}"] = {'name': name, 'fields': fields}

    @staticmethod
    def _relative(url):
        return unquote(url.split('/documents/', 1)[1])

    def _record(self, method, url, params=None, json=None):
        self.calls.append(SimpleNamespace(method=method, url=url, params=params or {}, json=json))
        if self.offline:
            raise requests.ConnectionError("network unreachable")

    def get(self, url, params=None):
        self._record('GET', url, params)
        path = self._relative(url)
        if len(path.split('/')) % 2 == 1:
            documents = [doc for key, doc in self.documents.items() if key.rpartition('/')[0] == path]
            page_size = (params or {}).get('pageSize')
            if page_size is not None:
                documents = documents[:page_size]
            return FakeResponse(200, {'documents': documents} if documents else {})
        if path in self.documents:
            return FakeResponse(200, self.documents[path])
        return FakeResponse(404, {'error': {'code': 404, 'status': 'NOT_FOUND'}})

    def delete(self, url, params=None):
        self._record('DELETE', url, params)
        self.documents.pop(self._relative(url), None)
        return FakeResponse(200, {})

    def post(self, url, json=None, params=None):
        self._record('POST', url, params, json)
        rows = [{'document': doc, 'readTime': '2024-05-01T00:00:00Z'} for doc in self.query_results]
        return FakeResponse(200, rows or [{'readTime': '2024-05-01T00:00:00Z'}])


# =====================================================================================
# 픽스처
# =====================================================================================

FAKE_APP = SimpleNamespace(name='[DEFAULT]')

MANAGER_CONFIG = {
    'FIREBASE_PROJECT_ID': 'test-project',
    'FIRESTORE_INIT_STRATEGIES': ['fake'],
    'FIRESTORE_CONNECT_PROBE': False,
}


def _failing_strategy(config, app_name):
    raise RuntimeError("native transport unavailable")


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def rest_session():
    return FakeRestSession()


@pytest.fixture
def native_manager(fake_db):
    return ConnectionManager(
        MANAGER_CONFIG,
        strategies={'fake': lambda config, app_name: FAKE_APP},
        client_factory=lambda app: fake_db
    )


@pytest.fixture
def degraded_manager(rest_session):
    return ConnectionManager(MANAGER_CONFIG, strategies={'fake': _failing_strategy}, rest_session=rest_session)


@pytest.fixture
def data_access(native_manager):
    return DataAccessLayer(native_manager)


@pytest.fixture
def degraded_data_access(degraded_manager):
    return DataAccessLayer(degraded_manager)


@pytest.fixture
def app(native_manager):
    app = create_app('testing', connection_manager=native_manager)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    with app.app_context():
        token = create_access_token(identity='admin')
    return {'Authorization': f'Bearer {token}'}
