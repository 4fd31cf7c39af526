# skin_admin/models/user.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from skin_admin.utils.datetime_utils import DateTimeUtils


@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    latest_analysis_* 필드는 users/{id}/skinAnalysis의 가장 최근 분석을 가리키는 비정규화 포인터입니다.
    """
    user_id: str
    display_name: str = ""
    email: str = ""
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    photo_url: Optional[str] = None
    provider: Optional[str] = None
    latest_analysis_id: Optional[str] = None
    latest_analysis_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """정규화된 문서 딕셔너리({'id': ..., 'displayName': ...})로부터 User를 생성합니다."""
        return cls(
            user_id=data['id'],
            display_name=data.get('displayName') or "",
            email=data.get('email') or "",
            created_at=DateTimeUtils.coerce_datetime(data.get('createdAt')),
            last_login_at=DateTimeUtils.coerce_datetime(data.get('lastLoginAt')),
            last_updated_at=DateTimeUtils.coerce_datetime(data.get('lastUpdatedAt')),
            photo_url=data.get('photoURL'),
            provider=data.get('provider'),
            latest_analysis_id=data.get('latestAnalysisId'),
            latest_analysis_date=DateTimeUtils.coerce_datetime(data.get('latestAnalysisDate')),
        )
