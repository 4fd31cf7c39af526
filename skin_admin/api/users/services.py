# skin_admin/api/users/services.py
import logging
from typing import Any, Dict, List, Optional

from firebase_admin import auth

from skin_admin.core.errors import DegradedConnectionError
from skin_admin.models.skin_analysis import SkinAnalysis
from skin_admin.models.user import User
from skin_admin.services.data_access import DataAccessLayer

logger = logging.getLogger(__name__)

USERS = 'users'
ANALYSES = 'skinAnalysis'


def analyses_path(user_id: str) -> str:
    return f"{USERS}/{user_id}/{ANALYSES}"


class UserService:
    """사용자 목록/상세 조회, 관리자 계정 생성, 사용자 삭제를 담당하는 서비스."""

    def __init__(self, data_access: DataAccessLayer, list_limit: int = 20):
        self.data = data_access
        self.list_limit = list_limit
        logger.info("UserService initialized.")

    def list_users(self, cancel_token=None) -> List[User]:
        """최근 가입 순으로 최대 list_limit명의 사용자를 조회합니다."""
        documents = self.data.list_documents(USERS, self.list_limit, order_by='createdAt',
                                             cancel_token=cancel_token)
        return [User.from_dict(doc) for doc in documents]

    def get_user(self, user_id: str) -> Optional[User]:
        document = self.data.get_document(USERS, user_id)
        return User.from_dict(document) if document else None

    def list_analyses(self, user_id: str, cancel_token=None) -> List[SkinAnalysis]:
        documents = self.data.list_documents(analyses_path(user_id), self.list_limit, order_by='timestamp',
                                             cancel_token=cancel_token)
        return [SkinAnalysis.from_dict(doc) for doc in documents]

    def get_analysis(self, user_id: str, analysis_id: str) -> Optional[SkinAnalysis]:
        document = self.data.get_document(analyses_path(user_id), analysis_id)
        return SkinAnalysis.from_dict(document) if document else None

    def get_user_detail(self, user_id: str) -> Optional[Dict[str, Any]]:
        """사용자 프로필과 피부 분석 이력을 함께 반환합니다. 사용자가 없으면 None."""
        user = self.get_user(user_id)
        if user is None:
            return None
        return {'user': user, 'analyses': self.list_analyses(user_id)}

    def create_user(self, email: str, password: str, display_name: str) -> User:
        """
        Firebase Auth 계정을 만들고 같은 uid로 users 문서를 생성합니다.
        REST 폴백 연결에서는 계정 생성 전에 DegradedConnectionError로 중단합니다.
        """
        conn = self.data.connections.get()
        if conn.is_degraded:
            raise DegradedConnectionError("create user")

        record = auth.create_user(email=email, password=password, display_name=display_name, app=conn.app)
        logger.info(f"Firebase Auth user created: {record.uid}")

        try:
            self.data.create_document(USERS, {
                'displayName': display_name,
                'email': email,
                'provider': 'password',
                'photoURL': None,
            }, doc_id=record.uid)
        except Exception:
            # 문서 저장 실패 시 Auth 계정도 삭제합니다.
            logger.error(f"users/{record.uid} document write failed; deleting Auth account")
            auth.delete_user(record.uid, app=conn.app)
            raise
        return User(user_id=record.uid, display_name=display_name, email=email, provider='password')

    def delete_user(self, user_id: str) -> None:
        """
        users/{user_id} 문서만 삭제합니다. skinAnalysis 하위 컬렉션은 연쇄 삭제되지 않습니다.
        """
        self.data.delete_document(USERS, user_id)
        logger.info(f"User document {user_id} deleted (analyses kept)")
