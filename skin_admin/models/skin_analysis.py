# skin_admin/models/skin_analysis.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from skin_admin.utils.datetime_utils import DateTimeUtils

# 추세 집계에서 평균을 내는 점수 필드 (저장소 필드명)
SCORE_FIELDS = ('skinAge', 'pimples', 'pores', 'firmness', 'redness', 'sagging')


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class SkinAnalysis:
    """
    users/{user_id}/skinAnalysis 하위 컬렉션의 문서 구조.
    대시보드에서는 읽기 전용입니다.
    """
    analysis_id: str
    firmness: float = 0
    pores: float = 0
    pimples: float = 0
    redness: float = 0
    sagging: float = 0
    skin_age: float = 0
    skin_grade: float = 0
    image_path: Optional[str] = None
    analysis_results: str = ""
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkinAnalysis":
        return cls(
            analysis_id=data['id'],
            firmness=_number(data.get('firmness')),
            pores=_number(data.get('pores')),
            pimples=_number(data.get('pimples')),
            redness=_number(data.get('redness')),
            sagging=_number(data.get('sagging')),
            skin_age=_number(data.get('skinAge')),
            skin_grade=_number(data.get('skinGrade')),
            image_path=data.get('imagePath'),
            analysis_results=data.get('analysisResults') or "",
            timestamp=DateTimeUtils.coerce_datetime(data.get('timestamp')),
        )
