# skin_admin/utils/datetime_utils.py
"""
대시보드 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. Firestore Timestamp / REST timestampValue / ISO 문자열을 하나의 형태(UTC aware datetime)로 통일
2. 통계 집계용 기준 시각(하루 전, 30일 전) 계산
3. 내보내기(CSV)용 날짜 범위 계산과 API 응답용 JSON 변환
"""

import base64
import logging
import math
from datetime import datetime, date, timezone, time, timedelta
from typing import Any, Optional, Tuple
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def days_ago(days: int, reference: Optional[datetime] = None) -> datetime:
        """기준 시각(기본값: 현재)에서 days일 전의 시각을 반환"""
        base = reference or DateTimeUtils.now()
        return base - timedelta(days=days)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z  (REST API timestampValue 형식)
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # timezone-naive인 경우 UTC로 가정
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 ISO 포맷 문자열로 변환 (Z 접미사)"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def to_date_string(d: date) -> str:
        """date 객체를 YYYY-MM-DD 형식 문자열로 변환"""
        return d.strftime('%Y-%m-%d')

    @staticmethod
    def coerce_datetime(value: Any) -> Optional[datetime]:
        """
        저장소에서 읽은 임의의 시간 값을 UTC aware datetime으로 변환합니다.
        변환할 수 없는 값(None, 잘못된 문자열, 숫자 외 타입)은 None을 반환합니다.
        통계 집계처럼 '비교할 수 없으면 제외'하는 용도로 사용합니다.
        """
        if value is None or value == "":
            return None
        try:
            if isinstance(value, datetime):
                if value.tzinfo is None:
                    return value.replace(tzinfo=timezone.utc)
                return value.astimezone(timezone.utc)
            if isinstance(value, date):
                return datetime.combine(value, time.min).replace(tzinfo=timezone.utc)
            if isinstance(value, str):
                return DateTimeUtils.parse_iso_datetime(value)
            if isinstance(value, dict) and 'seconds' in value:
                # {seconds, nanoseconds} 형태로 직렬화된 Timestamp
                return datetime.fromtimestamp(int(value['seconds']), tz=timezone.utc)
            if hasattr(value, 'timestamp'):
                return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (ValueError, TypeError, OverflowError):
            return None
        return None

    @staticmethod
    def day_bounds(start: date, end: date) -> Tuple[datetime, datetime]:
        """[start 00:00:00, end 23:59:59.999999] UTC 범위를 반환"""
        start_dt = datetime.combine(start, time.min).replace(tzinfo=timezone.utc)
        end_dt = datetime.combine(end, time.max).replace(tzinfo=timezone.utc)
        return start_dt, end_dt

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, date) and not isinstance(obj, datetime):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        elif isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 적절히 변환

        변환 규칙:
        - Firestore timestamp (DatetimeWithNanoseconds) -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)
            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]
            return obj

        except Exception as e:
            logger.error(f"Firestore 읽기 변환 실패: {obj} ({type(obj)}) - {e}")
            # 변환 실패 시 원본 객체 반환 (로그만 남김)
            return obj

    @staticmethod
    def to_json_safe(obj: Any) -> Any:
        """
        API 응답용 변환. datetime은 ISO 문자열, bytes는 base64 문자열,
        문서 참조는 경로 문자열, GeoPoint는 위도/경도 dict로 바꾸고 dict/list는 재귀 변환합니다.
        그 밖에 JSON으로 표현할 수 없는 값은 문자열로 내보냅니다.
        """
        if isinstance(obj, datetime):
            return DateTimeUtils.to_iso_string(obj)
        elif isinstance(obj, date):
            return DateTimeUtils.to_date_string(obj)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.to_json_safe(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [DateTimeUtils.to_json_safe(item) for item in obj]
        elif isinstance(obj, float) and not math.isfinite(obj):
            return None
        elif isinstance(obj, (bytes, bytearray)):
            return base64.b64encode(bytes(obj)).decode('ascii')
        elif obj is None or isinstance(obj, (str, bool, int, float)):
            return obj
        elif hasattr(obj, 'path') and hasattr(obj, 'id'):
            return obj.path
        elif hasattr(obj, 'latitude') and hasattr(obj, 'longitude'):
            return {'latitude': obj.latitude, 'longitude': obj.longitude}
        return str(obj)
