# skin_admin/models/prompt_setting.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from skin_admin.utils.datetime_utils import DateTimeUtils


@dataclass
class PromptHistoryEntry:
    """settings/{prompt_id}/history 하위 컬렉션 문서 (덮어쓰기 직전의 프롬프트)."""
    history_id: str
    prompt: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PromptHistoryEntry":
        return cls(
            history_id=data['id'],
            prompt=data.get('prompt') or "",
            timestamp=DateTimeUtils.coerce_datetime(data.get('timestamp')),
        )


@dataclass
class PromptSetting:
    """AI 피부 분석에 사용되는 현재 프롬프트 싱글톤과 그 변경 이력."""
    prompt: str = ""
    updated_at: Optional[datetime] = None
    history: List[PromptHistoryEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], history: List[PromptHistoryEntry]) -> "PromptSetting":
        data = data or {}
        return cls(
            prompt=data.get('prompt') or "",
            updated_at=DateTimeUtils.coerce_datetime(data.get('updatedAt')),
            history=history,
        )
