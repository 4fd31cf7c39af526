# skin_admin/core/errors.py
from typing import Optional


class DegradedConnectionError(RuntimeError):
    """REST 폴백 연결에서 지원하지 않는 쓰기 작업을 시도했을 때 발생합니다."""

    def __init__(self, operation: str):
        super().__init__(f"'{operation}' is not available over the REST fallback connection")
        self.operation = operation


class OperationCancelled(Exception):
    """취소 토큰이 설정된 뒤 결과를 반환하려 할 때 발생합니다. 읽기 실패로 흡수되지 않습니다."""


class BulkImportError(RuntimeError):
    """
    일괄 업서트 중 한 건 이상이 실패했을 때 발생합니다.
    이미 성공한 행은 롤백되지 않으며, 부분 결과는 result 속성으로 전달됩니다.
    """

    def __init__(self, result, message: Optional[str] = None):
        failed = len(result.failed)
        super().__init__(message or f"{failed} of {result.attempted} rows failed to import")
        self.result = result
