# skin_admin/services/rest_client.py
"""
Firestore REST API 폴백 클라이언트.

네이티브(gRPC) 클라이언트가 제한된 네트워크(사내 프록시, 일부 VPN)에서 연결을 맺지 못할 때
일반 HTTP 요청으로 문서를 읽고 삭제합니다. 쓰기(생성/업서트)는 지원하지 않습니다.
"""
import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from skin_admin.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


def decode_value(wrapper: Dict[str, Any]) -> Any:
    """
    REST 응답의 타입 래퍼({"stringValue": "..."} 등)를 파이썬 값으로 풀어냅니다.
    키의 존재 여부로 판별하므로 "", 0, false 같은 값도 그대로 보존됩니다.
    """
    if not isinstance(wrapper, dict):
        return wrapper
    if 'stringValue' in wrapper:
        return wrapper['stringValue']
    if 'integerValue' in wrapper:
        return int(wrapper['integerValue'])
    if 'doubleValue' in wrapper:
        return float(wrapper['doubleValue'])
    if 'booleanValue' in wrapper:
        return bool(wrapper['booleanValue'])
    if 'timestampValue' in wrapper:
        try:
            return DateTimeUtils.parse_iso_datetime(wrapper['timestampValue'])
        except ValueError:
            return wrapper['timestampValue']
    if 'nullValue' in wrapper:
        return None
    if 'arrayValue' in wrapper:
        return [decode_value(v) for v in wrapper['arrayValue'].get('values', [])]
    if 'mapValue' in wrapper:
        return decode_fields(wrapper['mapValue'].get('fields', {}))
    if 'referenceValue' in wrapper:
        return wrapper['referenceValue']
    if 'geoPointValue' in wrapper:
        point = wrapper['geoPointValue']
        return {'latitude': point.get('latitude', 0.0), 'longitude': point.get('longitude', 0.0)}
    if 'bytesValue' in wrapper:
        return base64.b64decode(wrapper['bytesValue'])
    logger.warning(f"Unknown REST value wrapper: {list(wrapper.keys())}")
    return None


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


def convert_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    """REST 문서를 {'id': ..., 필드...} 형태의 공통 문서 모양으로 변환합니다."""
    data = {'id': doc['name'].rsplit('/', 1)[-1]}
    data.update(decode_fields(doc.get('fields', {})))
    return data


class FirestoreRestClient:
    """requests 세션 하나로 Firestore REST 엔드포인트를 호출하는 클라이언트."""

    def __init__(self, project_id: str, base_url: str = 'https://firestore.googleapis.com/v1',
                 api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        if not project_id:
            raise ValueError("project_id is required for the REST fallback client")
        self.project_id = project_id
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.session = session or requests.Session()

    @property
    def documents_root(self) -> str:
        return f"{self.base_url}/projects/{self.project_id}/databases/(default)/documents"

    def _url(self, path: str) -> str:
        return f"{self.documents_root}/{quote(path.strip('/'), safe='/')}"

    def _params(self, **extra) -> Dict[str, Any]:
        params = {k: v for k, v in extra.items() if v is not None}
        if self.api_key:
            params['key'] = self.api_key
        return params

    def list_documents(self, collection_path: str, page_size: int) -> List[Dict[str, Any]]:
        """컬렉션의 첫 페이지(최대 page_size개)를 가져옵니다. 다음 페이지 토큰은 사용하지 않습니다."""
        logger.info(f"Fetching {collection_path} via REST API (pageSize={page_size})")
        response = self.session.get(self._url(collection_path), params=self._params(pageSize=page_size))
        response.raise_for_status()
        documents = response.json().get('documents', [])
        logger.info(f"REST API: fetched {len(documents)} documents from {collection_path}")
        return [convert_document(doc) for doc in documents[:page_size]]

    def get_document(self, collection_path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        response = self.session.get(self._url(f"{collection_path}/{doc_id}"), params=self._params())
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return convert_document(response.json())

    def delete_document(self, collection_path: str, doc_id: str) -> None:
        logger.info(f"Deleting {collection_path}/{doc_id} via REST API")
        response = self.session.delete(self._url(f"{collection_path}/{doc_id}"), params=self._params())
        response.raise_for_status()

    def run_collection_group_query(self, collection_id: str, limit: int) -> List[Dict[str, Any]]:
        """모든 상위 문서 아래의 collection_id 하위 컬렉션을 한 번에 조회합니다."""
        body = {
            'structuredQuery': {
                'from': [{'collectionId': collection_id, 'allDescendants': True}],
                'limit': limit,
            }
        }
        response = self.session.post(f"{self.documents_root}:runQuery", json=body, params=self._params())
        response.raise_for_status()
        # runQuery는 결과마다 하나의 객체를 담은 배열을 반환하며, 결과가 없으면 document 키가 없습니다.
        rows = [row['document'] for row in response.json() if 'document' in row]
        return [convert_document(doc) for doc in rows[:limit]]

    def probe(self) -> bool:
        """기본 연결 확인. 실패를 예외 대신 False로 보고합니다."""
        try:
            response = self.session.get(self._url('users'), params=self._params(pageSize=1))
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error(f"REST API connectivity probe failed: {e}")
            return False
