# skin_admin/api/prompts/services.py
import logging
from datetime import datetime, timezone
from typing import Optional

from skin_admin.models.prompt_setting import PromptHistoryEntry, PromptSetting
from skin_admin.services.data_access import DataAccessLayer

logger = logging.getLogger(__name__)

SETTINGS = 'settings'
PROMPT_DOC_ID = 'skin_analysis_prompt'
HISTORY = 'history'
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PromptService:
    """
    AI 피부 분석 프롬프트(settings/skin_analysis_prompt) 관리 서비스.
    덮어쓰기 전에 항상 이전 프롬프트를 history 하위 컬렉션에 남깁니다.
    """

    def __init__(self, data_access: DataAccessLayer, history_limit: int = 50):
        self.data = data_access
        self.history_limit = history_limit

    @property
    def history_path(self) -> str:
        return f"{SETTINGS}/{PROMPT_DOC_ID}/{HISTORY}"

    def get_history(self):
        documents = self.data.list_documents(self.history_path, self.history_limit)
        entries = [PromptHistoryEntry.from_dict(doc) for doc in documents]
        # 최신 항목이 먼저 오도록 정렬 (timestamp가 없는 항목은 맨 뒤)
        return sorted(entries, key=lambda e: e.timestamp or EPOCH, reverse=True)

    def get_prompt_setting(self) -> PromptSetting:
        document = self.data.get_document(SETTINGS, PROMPT_DOC_ID)
        return PromptSetting.from_dict(document, self.get_history())

    def update_prompt(self, new_prompt: str) -> PromptSetting:
        """
        현재 프롬프트를 이력에 추가한 뒤 새 프롬프트로 덮어씁니다.
        빈 프롬프트나 현재와 같은 프롬프트는 ValueError로 거부합니다.
        """
        if not new_prompt or not new_prompt.strip():
            raise ValueError("프롬프트는 비어 있을 수 없습니다.")

        current = self.data.get_document(SETTINGS, PROMPT_DOC_ID)
        if current is not None and current.get('prompt') == new_prompt:
            raise ValueError("현재 프롬프트와 동일합니다.")

        self.data.overwrite_with_history(SETTINGS, PROMPT_DOC_ID, 'prompt', new_prompt,
                                         history_collection=HISTORY)
        logger.info("Skin analysis prompt updated")
        return self.get_prompt_setting()

    def restore_prompt(self, history_id: str) -> Optional[PromptSetting]:
        """이력 항목의 프롬프트를 다시 현재 프롬프트로 만듭니다 (현재 값은 이력에 남습니다)."""
        document = self.data.get_document(self.history_path, history_id)
        if document is None:
            return None
        entry = PromptHistoryEntry.from_dict(document)
        logger.info(f"Restoring prompt from history entry {history_id}")
        return self.update_prompt(entry.prompt)
