# skin_admin/api/collections/services.py
from typing import Any, Dict, List, Optional

from skin_admin.services.data_access import DataAccessLayer
from skin_admin.services.field_mapping import PRODUCT_FIELDS, IDENTITY_FIELDS


# REST 폴백에서는 컬렉션 목록 API를 쓰지 않고 이 목록을 그대로 보여줍니다.
KNOWN_COLLECTIONS = ('users', 'products', 'skinAnalysis', 'settings')


class CollectionBrowserService:
    """임의의 컬렉션/문서를 둘러보는 관리자용 브라우저."""

    def __init__(self, data_access: DataAccessLayer, browse_limit: int = 50):
        self.data = data_access
        self.browse_limit = browse_limit

    @staticmethod
    def _mapping_for(collection_name: str):
        return PRODUCT_FIELDS if collection_name == 'products' else IDENTITY_FIELDS

    def list_collections(self) -> List[str]:
        return self.data.list_collections(KNOWN_COLLECTIONS)

    def list_documents(self, collection_name: str, search: str = "") -> List[Dict[str, Any]]:
        documents = self.data.list_documents(collection_name, self.browse_limit,
                                             mapping=self._mapping_for(collection_name))
        if not search:
            return documents
        q = search.lower()
        # 문서 ID 또는 문자열 필드 값에 대한 부분 일치
        return [
            doc for doc in documents
            if q in doc['id'].lower()
            or any(isinstance(v, str) and q in v.lower() for v in doc.values())
        ]

    def get_document(self, collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.data.get_document(collection_name, doc_id, mapping=self._mapping_for(collection_name))
