# skin_admin/utils/test_cancellation.py
import pytest

from skin_admin.core.errors import OperationCancelled
from skin_admin.utils.cancellation import CancelToken


def test_token_starts_active():
    token = CancelToken()
    assert not token.cancelled
    token.raise_if_cancelled("list users")


def test_cancelled_token_raises():
    token = CancelToken()
    token.cancel()
    assert token.cancelled
    with pytest.raises(OperationCancelled, match="list users"):
        token.raise_if_cancelled("list users")
