# skin_admin/utils/cancellation.py
import threading

from skin_admin.core.errors import OperationCancelled


class CancelToken:
    """
    호출자가 더 이상 결과를 원하지 않음을 데이터 계층에 알리는 취소 신호.
    데이터 계층은 결과를 돌려주기 직전에 raise_if_cancelled()로 확인합니다.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "operation"):
        if self._event.is_set():
            raise OperationCancelled(f"{operation} was cancelled before its result was committed")
