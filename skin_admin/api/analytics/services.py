# skin_admin/api/analytics/services.py
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from skin_admin.models.product import Product
from skin_admin.models.skin_analysis import SCORE_FIELDS
from skin_admin.services.data_access import DataAccessLayer
from skin_admin.services.field_mapping import PRODUCT_FIELDS
from skin_admin.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

EMPTY_STATS = {
    'total_users': 0,
    'daily_users': 0,
    'daily_analyses': 0,
    'monthly_users': 0,
    'total_analyses': 0,
}


class AnalyticsService:
    """
    대시보드 지표를 계산하는 서비스.

    데이터베이스 측 집계 쿼리가 아니라 조회 상한(stats_limit)만큼 가져온 목록을
    클라이언트 측에서 시각 비교로 걸러 세는 근사치입니다. 저장소 문서가 상한을 넘으면 과소 집계됩니다.
    """

    def __init__(self, data_access: DataAccessLayer, stats_limit: int = 20):
        self.data = data_access
        self.stats_limit = stats_limit

    def _fetch_users(self) -> List[Dict[str, Any]]:
        return self.data.list_documents('users', self.stats_limit, order_by='createdAt')

    def _fetch_analyses(self) -> List[Dict[str, Any]]:
        return self.data.list_collection_group('skinAnalysis', self.stats_limit, order_by='timestamp')

    @staticmethod
    def _count_since(documents: List[Dict[str, Any]], field: str, boundary: datetime) -> int:
        count = 0
        for doc in documents:
            moment = DateTimeUtils.coerce_datetime(doc.get(field))
            if moment is not None and moment >= boundary:
                count += 1
        return count

    def get_dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        try:
            now = now or DateTimeUtils.now()
            users = self._fetch_users()
            analyses = self._fetch_analyses()
            yesterday = DateTimeUtils.days_ago(1, now)
            last_month = DateTimeUtils.days_ago(30, now)

            stats = {
                'total_users': len(users),
                'daily_users': self._count_since(users, 'lastLoginAt', yesterday),
                'daily_analyses': self._count_since(analyses, 'timestamp', yesterday),
                'monthly_users': self._count_since(users, 'createdAt', last_month),
                'total_analyses': len(analyses),
            }
            logger.info(f"Dashboard stats calculated: {stats}")
            return stats
        except Exception as e:
            logger.error(f"Error calculating dashboard stats: {e}", exc_info=True)
            return dict(EMPTY_STATS)

    def get_analytics_trends(self, days: int = 7, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """최근 days일(UTC 날짜 기준) 동안 일별 진단 수와 점수 평균(반올림)을 계산합니다."""
        try:
            today = (now or DateTimeUtils.now()).date()
            dates = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
            by_date: Dict[Any, List[Dict[str, Any]]] = {d: [] for d in dates}

            for analysis in self._fetch_analyses():
                moment = DateTimeUtils.coerce_datetime(analysis.get('timestamp'))
                if moment is not None and moment.date() in by_date:
                    by_date[moment.date()].append(analysis)

            trends = []
            for day in dates:
                day_analyses = by_date[day]
                entry = {'date': DateTimeUtils.to_date_string(day), 'diagnostics': len(day_analyses)}
                for score in SCORE_FIELDS:
                    if day_analyses:
                        total = sum(_as_number(a.get(score)) for a in day_analyses)
                        entry[score] = round(total / len(day_analyses))
                    else:
                        entry[score] = 0
                trends.append(entry)
            return trends
        except Exception as e:
            logger.error(f"Error calculating analytics trends: {e}", exc_info=True)
            return []

    def get_popular_products(self, limit: int = 5) -> List[Product]:
        """조회 상한 안의 상품을 평가 점수 내림차순으로 정렬해 상위 limit개를 반환합니다 (점수 없음은 0점)."""
        try:
            documents = self.data.list_documents('products', self.stats_limit, mapping=PRODUCT_FIELDS)
            products = [Product.from_dict(doc) for doc in documents]
            products.sort(key=lambda p: p.evaluation_score or 0, reverse=True)
            return products[:limit]
        except Exception as e:
            logger.error(f"Error ranking popular products: {e}", exc_info=True)
            return []


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value
