# skin_admin/api/export/services.py
"""
진단 데이터 CSV 내보내기.

사용자 목록(상한 export_user_limit)을 가져와 각 사용자의 최신 피부 분석과 결합하고,
최신 분석 시각이 [start 00:00, end 23:59:59] (UTC) 범위에 드는 사용자만 CSV로 만듭니다.
"""
import csv
import io
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from skin_admin.api.users.services import USERS, analyses_path
from skin_admin.models.skin_analysis import SkinAnalysis
from skin_admin.models.user import User
from skin_admin.services.data_access import DataAccessLayer
from skin_admin.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

USER_INFO = 'user-info'
DIAGNOSTIC_RESULTS = 'diagnostic-results'
EXPORT_ITEMS = (USER_INFO, DIAGNOSTIC_RESULTS)

USER_COLUMNS = [
    ('user_id', lambda u, a: u.user_id),
    ('display_name', lambda u, a: u.display_name),
    ('email', lambda u, a: u.email),
    ('provider', lambda u, a: u.provider or ""),
    ('created_at', lambda u, a: _iso(u.created_at)),
    ('last_login_at', lambda u, a: _iso(u.last_login_at)),
]

DIAGNOSTIC_COLUMNS = [
    ('analysis_id', lambda u, a: a.analysis_id),
    ('analysis_date', lambda u, a: _iso(a.timestamp)),
    ('skin_age', lambda u, a: a.skin_age),
    ('skin_grade', lambda u, a: a.skin_grade),
    ('firmness', lambda u, a: a.firmness),
    ('pores', lambda u, a: a.pores),
    ('pimples', lambda u, a: a.pimples),
    ('redness', lambda u, a: a.redness),
    ('sagging', lambda u, a: a.sagging),
    ('analysis_results', lambda u, a: a.analysis_results),
]


def _iso(value) -> str:
    return DateTimeUtils.to_iso_string(value) if value else ""


def validate_export_request(items: Sequence[str], start: date, end: date) -> None:
    """네트워크 호출 전에 선택 항목과 날짜 범위를 검증합니다."""
    if not items:
        raise ValueError("내보낼 항목을 하나 이상 선택해야 합니다.")
    unknown = [item for item in items if item not in EXPORT_ITEMS]
    if unknown:
        raise ValueError(f"지원하지 않는 내보내기 항목입니다: {', '.join(unknown)}")
    if start > end:
        raise ValueError("시작일은 종료일보다 늦을 수 없습니다.")


class ExportService:
    def __init__(self, data_access: DataAccessLayer, export_user_limit: int = 200):
        self.data = data_access
        self.export_user_limit = export_user_limit

    def _latest_analysis(self, user: User) -> Optional[SkinAnalysis]:
        """비정규화 포인터(latestAnalysisId)를 먼저 따르고, 없으면 가장 최근 하위 문서를 사용합니다."""
        if user.latest_analysis_id:
            document = self.data.get_document(analyses_path(user.user_id), user.latest_analysis_id)
            if document:
                return SkinAnalysis.from_dict(document)
        documents = self.data.list_documents(analyses_path(user.user_id), 1, order_by='timestamp')
        return SkinAnalysis.from_dict(documents[0]) if documents else None

    def collect_rows(self, start: date, end: date) -> List[Dict[str, Any]]:
        start_dt, end_dt = DateTimeUtils.day_bounds(start, end)
        users = [User.from_dict(doc) for doc in
                 self.data.list_documents(USERS, self.export_user_limit, order_by='createdAt')]

        joined = []
        for user in users:
            analysis = self._latest_analysis(user)
            if analysis is None or analysis.timestamp is None:
                continue
            if start_dt <= analysis.timestamp <= end_dt:
                joined.append({'user': user, 'analysis': analysis})
        logger.info(f"Export: {len(joined)} of {len(users)} users have a latest analysis in {start}..{end}")
        return joined

    def export_csv(self, items: Sequence[str], start: date, end: date) -> str:
        validate_export_request(items, start, end)
        columns = []
        if USER_INFO in items:
            columns.extend(USER_COLUMNS)
        elif DIAGNOSTIC_RESULTS in items:
            # 진단 결과만 선택해도 행을 식별할 수 있도록 사용자 ID는 항상 포함합니다.
            columns.append(USER_COLUMNS[0])
        if DIAGNOSTIC_RESULTS in items:
            columns.extend(DIAGNOSTIC_COLUMNS)

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([name for name, _ in columns])
        for row in self.collect_rows(start, end):
            writer.writerow([getter(row['user'], row['analysis']) for _, getter in columns])
        return output.getvalue()
