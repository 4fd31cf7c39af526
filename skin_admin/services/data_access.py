# skin_admin/services/data_access.py
"""
데이터 접근 계층.

모든 연산은 ConnectionManager에서 연결 핸들을 받은 뒤 네이티브(firebase_admin) 경로와
REST 폴백 경로 중 하나로 분기하고, 결과를 {'id': 문자열 ID, 필드...} 형태로 정규화합니다.

실패 규칙:
- 읽기(list/get/page/집계용 조회)는 실패를 로그로 남기고 빈 값([], None, 빈 Page)을 반환합니다.
- 쓰기(create/bulk_upsert/overwrite_with_history/delete)는 예외를 호출자에게 전파합니다.
- 취소 토큰이 설정된 읽기는 OperationCancelled를 던지며, 이는 빈 값으로 흡수되지 않습니다.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from firebase_admin import firestore

from skin_admin.core.errors import BulkImportError, DegradedConnectionError, OperationCancelled
from skin_admin.services.connection import ConnectionHandle, ConnectionManager
from skin_admin.services.field_mapping import FieldMapping, IDENTITY_FIELDS
from skin_admin.utils.cancellation import CancelToken
from skin_admin.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

# Firestore 쿼리에서 문서 ID를 가리키는 특수 필드 경로
DOCUMENT_ID = '__name__'


@dataclass
class Page:
    """커서 기반 페이지 조회 결과. last_doc_id는 실제로 반환된 마지막 문서의 ID입니다."""
    documents: List[Dict[str, Any]] = field(default_factory=list)
    has_next_page: bool = False
    last_doc_id: Optional[str] = None


@dataclass
class ImportResult:
    attempted: int = 0
    succeeded: List[str] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)


def _check_cancelled(cancel_token: Optional[CancelToken], operation: str):
    if cancel_token is not None:
        cancel_token.raise_if_cancelled(operation)


class DataAccessLayer:
    """네이티브/REST 연결 모드와 무관하게 동일한 계약을 제공하는 Firestore 접근 서비스."""

    def __init__(self, connection_manager: ConnectionManager):
        self.connections = connection_manager
        logger.info("DataAccessLayer initialized.")

    def _connection(self) -> ConnectionHandle:
        return self.connections.get()

    # ------------------------------------------------------------------
    # 정규화
    # ------------------------------------------------------------------
    @staticmethod
    def _from_snapshot(snapshot, mapping: FieldMapping) -> Dict[str, Any]:
        data = DateTimeUtils.from_firestore(snapshot.to_dict() or {})
        document = mapping.to_normalized(data)
        document['id'] = snapshot.id
        return document

    @staticmethod
    def _from_rest(document: Dict[str, Any], mapping: FieldMapping) -> Dict[str, Any]:
        doc_id = document['id']
        normalized = mapping.to_normalized({k: v for k, v in document.items() if k != 'id'})
        normalized['id'] = doc_id
        return normalized

    # ------------------------------------------------------------------
    # 읽기
    # ------------------------------------------------------------------
    def list_documents(self, collection_path: str, limit: int, order_by: Optional[str] = None,
                       descending: bool = True, mapping: FieldMapping = IDENTITY_FIELDS,
                       cancel_token: Optional[CancelToken] = None) -> List[Dict[str, Any]]:
        """
        컬렉션에서 최대 limit개의 문서를 가져옵니다.
        네이티브 경로는 order_by(선택)와 limit을 적용한 쿼리를, REST 경로는 pageSize=limit 요청 한 번을 보냅니다.
        """
        try:
            conn = self._connection()
            if conn.is_degraded:
                logger.info(f"Using REST API fallback for {collection_path}...")
                raw = conn.client.list_documents(collection_path, limit)
                documents = [self._from_rest(doc, mapping) for doc in raw[:limit]]
            else:
                query = conn.client.collection(collection_path)
                if order_by:
                    direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                    query = query.order_by(order_by, direction=direction)
                documents = [self._from_snapshot(doc, mapping) for doc in query.limit(limit).stream()]

            _check_cancelled(cancel_token, f"list {collection_path}")
            logger.info(f"Successfully fetched {len(documents)} documents from {collection_path}")
            return documents
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"Error fetching {collection_path}: {e}", exc_info=True)
            return []

    def list_collection_group(self, collection_id: str, limit: int, order_by: Optional[str] = None,
                              descending: bool = True, mapping: FieldMapping = IDENTITY_FIELDS,
                              cancel_token: Optional[CancelToken] = None) -> List[Dict[str, Any]]:
        """모든 상위 문서 아래에 있는 같은 이름의 하위 컬렉션을 한 번에 조회합니다 (예: users/*/skinAnalysis)."""
        try:
            conn = self._connection()
            if conn.is_degraded:
                raw = conn.client.run_collection_group_query(collection_id, limit)
                documents = [self._from_rest(doc, mapping) for doc in raw[:limit]]
            else:
                query = conn.client.collection_group(collection_id)
                if order_by:
                    direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                    query = query.order_by(order_by, direction=direction)
                documents = [self._from_snapshot(doc, mapping) for doc in query.limit(limit).stream()]

            _check_cancelled(cancel_token, f"collection group {collection_id}")
            logger.info(f"Successfully fetched {len(documents)} documents from collection group {collection_id}")
            return documents
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"Error fetching collection group {collection_id}: {e}", exc_info=True)
            return []

    def get_document(self, collection_path: str, doc_id: str, mapping: FieldMapping = IDENTITY_FIELDS,
                     cancel_token: Optional[CancelToken] = None) -> Optional[Dict[str, Any]]:
        """문서 하나를 가져옵니다. 존재하지 않으면 None(not-found 신호)을 반환합니다."""
        try:
            conn = self._connection()
            if conn.is_degraded:
                raw = conn.client.get_document(collection_path, doc_id)
                document = self._from_rest(raw, mapping) if raw is not None else None
            else:
                snapshot = conn.client.collection(collection_path).document(doc_id).get()
                document = self._from_snapshot(snapshot, mapping) if snapshot.exists else None

            _check_cancelled(cancel_token, f"get {collection_path}/{doc_id}")
            if document is None:
                logger.info(f"Document {collection_path}/{doc_id} not found")
            return document
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"Error fetching document {collection_path}/{doc_id}: {e}", exc_info=True)
            return None

    def list_page(self, collection_path: str, page_size: int, cursor: Optional[str] = None,
                  mapping: FieldMapping = IDENTITY_FIELDS,
                  cancel_token: Optional[CancelToken] = None) -> Page:
        """
        커서 기반 페이지 조회. 문서 ID 순으로 커서 다음부터 page_size + 1개를 가져와
        page_size + 1개가 오면 다음 페이지가 있다고 판단하고 마지막 한 개를 잘라냅니다.

        REST 폴백은 startAfter를 표현할 수 없으므로 항상 첫 페이지만 반환하고 다음 페이지가 없다고 보고합니다.
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        try:
            conn = self._connection()
            if conn.is_degraded:
                if cursor:
                    logger.warning(f"REST fallback cannot page past cursor {cursor}; returning the first page")
                raw = conn.client.list_documents(collection_path, page_size)
                documents = [self._from_rest(doc, mapping) for doc in raw[:page_size]]
                has_next = False
            else:
                collection_ref = conn.client.collection(collection_path)
                query = collection_ref.order_by(DOCUMENT_ID)
                if cursor:
                    query = query.start_after({DOCUMENT_ID: collection_ref.document(cursor)})
                snapshots = list(query.limit(page_size + 1).stream())
                has_next = len(snapshots) > page_size
                documents = [self._from_snapshot(doc, mapping) for doc in snapshots[:page_size]]

            _check_cancelled(cancel_token, f"page {collection_path}")
            last_doc_id = documents[-1]['id'] if documents else None
            logger.info(f"Fetched page of {len(documents)} from {collection_path} "
                        f"(cursor={cursor}, last={last_doc_id}, has_next={has_next})")
            return Page(documents=documents, has_next_page=has_next, last_doc_id=last_doc_id)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"Error fetching page of {collection_path} (cursor={cursor}): {e}", exc_info=True)
            return Page()

    def list_collections(self, known_collections: Sequence[str]) -> List[str]:
        """
        최상위 컬렉션 이름 목록. 네이티브 경로는 Admin SDK의 collections()를 사용하고,
        REST 폴백은 알려진 컬렉션 목록을 그대로 돌려줍니다.
        """
        try:
            conn = self._connection()
            if conn.is_degraded:
                return list(known_collections)
            return sorted(ref.id for ref in conn.client.collections())
        except Exception as e:
            logger.error(f"Error listing collections: {e}", exc_info=True)
            return []

    # ------------------------------------------------------------------
    # 쓰기
    # ------------------------------------------------------------------
    def _require_native(self, operation: str) -> ConnectionHandle:
        conn = self._connection()
        if conn.is_degraded:
            logger.error(f"Refusing '{operation}' on REST fallback connection")
            raise DegradedConnectionError(operation)
        return conn

    def create_document(self, collection_path: str, data: Dict[str, Any],
                        mapping: FieldMapping = IDENTITY_FIELDS, doc_id: Optional[str] = None,
                        timestamp_field: str = 'createdAt') -> str:
        """정규화된 데이터를 저장소 라벨로 바꿔 저장하고 서버 생성 시각을 기록합니다. 새 문서 ID를 반환합니다."""
        conn = self._require_native(f"create {collection_path}")
        try:
            collection_ref = conn.client.collection(collection_path)
            doc_ref = collection_ref.document(doc_id) if doc_id else collection_ref.document()
            payload = DateTimeUtils.for_firestore(mapping.to_source(data))
            payload.pop('id', None)
            payload[timestamp_field] = firestore.SERVER_TIMESTAMP
            doc_ref.set(payload)
            logger.info(f"Firestore 저장 성공 (Collection: {collection_path}, Doc ID: {doc_ref.id})")
            return doc_ref.id
        except Exception as e:
            logger.error(f"Firestore 저장 실패 (Collection: {collection_path}): {e}", exc_info=True)
            raise

    def _upsert_row(self, collection_ref, row: Dict[str, Any], mapping: FieldMapping) -> str:
        row = dict(row)
        doc_id = row.pop('id', None)
        doc_ref = collection_ref.document(doc_id) if doc_id else collection_ref.document()
        doc_ref.set(DateTimeUtils.for_firestore(mapping.to_source(row)), merge=True)
        return doc_ref.id

    def bulk_upsert(self, collection_path: str, rows: Sequence[Dict[str, Any]],
                    mapping: FieldMapping = IDENTITY_FIELDS, max_workers: Optional[int] = None) -> ImportResult:
        """
        검증이 끝난 행들을 ID 기준으로 병합(merge) 업서트합니다. 'id'가 없는 행은 새 ID를 받습니다.
        행마다 독립된 작업으로 동시에 실행하고 모두 끝날 때까지 기다립니다. 행 간 원자성은 없으며
        일부 실패 시 성공한 행은 그대로 두고 BulkImportError로 부분 결과를 전달합니다.
        """
        conn = self._require_native(f"bulk import into {collection_path}")
        result = ImportResult(attempted=len(rows))
        if not rows:
            return result

        collection_ref = conn.client.collection(collection_path)
        workers = max_workers or len(rows)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._upsert_row, collection_ref, row, mapping) for row in rows]
            for index, future in enumerate(futures):
                try:
                    result.succeeded.append(future.result())
                except Exception as e:
                    logger.error(f"Row {index} upsert into {collection_path} failed: {e}")
                    result.failed.append({'row': index, 'id': rows[index].get('id'), 'error': str(e)})

        logger.info(f"Bulk upsert into {collection_path}: {len(result.succeeded)} succeeded, "
                    f"{len(result.failed)} failed")
        if result.failed:
            raise BulkImportError(result)
        return result

    def overwrite_with_history(self, collection_path: str, doc_id: str, field_name: str, new_value: Any,
                               history_collection: str = 'history',
                               updated_field: str = 'updatedAt') -> Optional[Any]:
        """
        싱글톤 문서의 값을 덮어쓰기 전에 이전 값을 history 하위 컬렉션에 먼저 추가합니다.
        두 번의 쓰기 사이에 트랜잭션은 없습니다. 이전 값을 반환합니다.
        """
        conn = self._require_native(f"update {collection_path}/{doc_id}")
        try:
            doc_ref = conn.client.collection(collection_path).document(doc_id)
            snapshot = doc_ref.get()
            previous = (snapshot.to_dict() or {}).get(field_name) if snapshot.exists else None

            if previous is not None:
                doc_ref.collection(history_collection).add({
                    field_name: previous,
                    'timestamp': firestore.SERVER_TIMESTAMP,
                })
            doc_ref.set({field_name: new_value, updated_field: firestore.SERVER_TIMESTAMP})
            logger.info(f"{collection_path}/{doc_id}.{field_name} overwritten "
                        f"(history appended: {previous is not None})")
            return previous
        except Exception as e:
            logger.error(f"Failed to overwrite {collection_path}/{doc_id}: {e}", exc_info=True)
            raise

    def delete_document(self, collection_path: str, doc_id: str) -> None:
        """최상위 문서를 삭제합니다. 하위 컬렉션은 함께 삭제되지 않습니다."""
        try:
            conn = self._connection()
            if conn.is_degraded:
                conn.client.delete_document(collection_path, doc_id)
            else:
                conn.client.collection(collection_path).document(doc_id).delete()
            logger.info(f"Deleted {collection_path}/{doc_id}")
        except Exception as e:
            logger.error(f"Failed to delete {collection_path}/{doc_id}: {e}", exc_info=True)
            raise
