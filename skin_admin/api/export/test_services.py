# skin_admin/api/export/test_services.py
import csv
import io
from datetime import date, datetime, timezone

import pytest

from skin_admin.api.export.services import ExportService, validate_export_request


@pytest.fixture
def export_service(data_access):
    return ExportService(data_access, export_user_limit=200)


@pytest.fixture
def seeded(fake_db):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    # u1: 포인터가 가리키는 분석이 범위 안
    fake_db.seed('users', 'u1', {'email': 'u1@example.com', 'createdAt': created, 'latestAnalysisId': 'a1'})
    fake_db.seed('users/u1/skinAnalysis', 'a1', {'timestamp': datetime(2024, 3, 2, 23, 0, tzinfo=timezone.utc),
                                                 'skinAge': 28})
    # u2: 포인터 없음, 가장 최근 분석이 범위 밖
    fake_db.seed('users', 'u2', {'email': 'u2@example.com', 'createdAt': created})
    fake_db.seed('users/u2/skinAnalysis', 'old', {'timestamp': datetime(2024, 3, 1, tzinfo=timezone.utc)})
    fake_db.seed('users/u2/skinAnalysis', 'new', {'timestamp': datetime(2024, 3, 20, tzinfo=timezone.utc)})
    # u3: 분석 없음
    fake_db.seed('users', 'u3', {'email': 'u3@example.com', 'createdAt': created})
    return fake_db


def _read(text):
    return list(csv.DictReader(io.StringIO(text)))


def test_only_users_with_latest_analysis_in_range(seeded, export_service):
    rows = _read(export_service.export_csv(['user-info', 'diagnostic-results'], date(2024, 3, 1), date(2024, 3, 2)))

    assert [row['user_id'] for row in rows] == ['u1']
    assert rows[0]['email'] == 'u1@example.com'
    assert rows[0]['analysis_id'] == 'a1'
    assert float(rows[0]['skin_age']) == 28


def test_latest_analysis_falls_back_to_newest_entry(seeded, export_service):
    rows = _read(export_service.export_csv(['diagnostic-results'], date(2024, 3, 20), date(2024, 3, 20)))

    assert [row['user_id'] for row in rows] == ['u2']
    assert rows[0]['analysis_id'] == 'new'
    assert 'email' not in rows[0]


def test_user_info_only_columns(seeded, export_service):
    text = export_service.export_csv(['user-info'], date(2024, 3, 1), date(2024, 3, 31))
    header = text.splitlines()[0].split(',')
    assert 'email' in header
    assert 'skin_age' not in header


@pytest.mark.parametrize("items, start, end", [
    ([], date(2024, 3, 1), date(2024, 3, 2)),
    (['everything'], date(2024, 3, 1), date(2024, 3, 2)),
    (['user-info'], date(2024, 3, 3), date(2024, 3, 2)),
])
def test_invalid_requests_are_rejected(items, start, end):
    with pytest.raises(ValueError):
        validate_export_request(items, start, end)
