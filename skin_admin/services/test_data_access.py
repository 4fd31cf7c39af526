# skin_admin/services/test_data_access.py
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from skin_admin.core.errors import BulkImportError, DegradedConnectionError, OperationCancelled
from skin_admin.services.data_access import DataAccessLayer, Page
from skin_admin.services.field_mapping import PRODUCT_FIELDS
from skin_admin.utils.cancellation import CancelToken


def _seed_products(fake_db, count):
    for i in range(count):
        fake_db.seed('products', f"p{i:02d}", {"商品名": f"Product {i}", "ブランド名": "Reme", "カテゴリ": "化粧水"})


class TestReads:
    def test_list_documents_orders_and_limits(self, fake_db, data_access):
        for i in range(5):
            fake_db.seed('users', f"u{i}", {'createdAt': datetime(2024, 1, i + 1, tzinfo=timezone.utc)})

        documents = data_access.list_documents('users', 3, order_by='createdAt')

        assert [doc['id'] for doc in documents] == ['u4', 'u3', 'u2']

    def test_list_documents_normalizes_labels(self, fake_db, data_access):
        _seed_products(fake_db, 1)
        [document] = data_access.list_documents('products', 10, mapping=PRODUCT_FIELDS)
        assert document == {'id': 'p00', 'productName': 'Product 0', 'brand': 'Reme', 'category': '化粧水'}

    def test_degraded_list_never_exceeds_limit(self, rest_session, degraded_data_access):
        for i in range(30):
            rest_session.add('users', f"u{i:02d}", {'email': {'stringValue': f"{i}@example.com"}})

        documents = degraded_data_access.list_documents('users', 20)

        assert len(documents) == 20
        assert rest_session.calls[-1].params['pageSize'] == 20

    def test_get_document_missing_returns_none(self, data_access, degraded_data_access):
        assert data_access.get_document('users', 'nobody') is None
        assert degraded_data_access.get_document('users', 'nobody') is None

    def test_read_failures_are_absorbed(self):
        manager = MagicMock()
        manager.get.return_value.is_degraded = False
        manager.get.return_value.client.collection.side_effect = RuntimeError("unavailable")
        data = DataAccessLayer(manager)

        assert data.list_documents('users', 20) == []
        assert data.get_document('users', 'u1') is None
        assert data.list_page('products', 20) == Page()

    def test_cancelled_reads_are_not_absorbed(self, fake_db, data_access):
        _seed_products(fake_db, 3)
        token = CancelToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            data_access.list_documents('products', 20, cancel_token=token)
        with pytest.raises(OperationCancelled):
            data_access.list_page('products', 2, cancel_token=token)

    def test_collection_group_reads_every_parent(self, fake_db, data_access):
        fake_db.seed('users/u1/skinAnalysis', 'a1', {'timestamp': datetime(2024, 1, 1, tzinfo=timezone.utc)})
        fake_db.seed('users/u2/skinAnalysis', 'a2', {'timestamp': datetime(2024, 1, 2, tzinfo=timezone.utc)})

        documents = data_access.list_collection_group('skinAnalysis', 20, order_by='timestamp')

        assert [doc['id'] for doc in documents] == ['a2', 'a1']


class TestPagination:
    def test_pages_walk_the_collection_without_overlap(self, fake_db, data_access):
        _seed_products(fake_db, 5)

        first = data_access.list_page('products', 2)
        second = data_access.list_page('products', 2, cursor=first.last_doc_id)
        third = data_access.list_page('products', 2, cursor=second.last_doc_id)

        assert [d['id'] for d in first.documents] == ['p00', 'p01']
        assert [d['id'] for d in second.documents] == ['p02', 'p03']
        assert [d['id'] for d in third.documents] == ['p04']
        assert (first.has_next_page, second.has_next_page, third.has_next_page) == (True, True, False)
        assert third.last_doc_id == 'p04'

    def test_exact_multiple_has_no_next_page(self, fake_db, data_access):
        _seed_products(fake_db, 4)
        second = data_access.list_page('products', 2, cursor='p01')
        assert second.has_next_page is False

    def test_empty_collection(self, data_access):
        page = data_access.list_page('products', 20)
        assert page == Page(documents=[], has_next_page=False, last_doc_id=None)

    def test_deleted_cursor_document_still_pages(self, fake_db, data_access):
        _seed_products(fake_db, 4)
        fake_db.docs.pop('products/p01')
        page = data_access.list_page('products', 2, cursor='p01')
        assert [d['id'] for d in page.documents] == ['p02', 'p03']

    def test_degraded_mode_returns_first_page_only(self, rest_session, degraded_data_access):
        for i in range(5):
            rest_session.add('products', f"p{i}", {"商品名": {'stringValue': f"Product {i}"}})

        page = degraded_data_access.list_page('products', 2, cursor='p1', mapping=PRODUCT_FIELDS)

        assert [d['id'] for d in page.documents] == ['p0', 'p1']
        assert page.documents[0]['productName'] == 'Product 0'
        assert page.has_next_page is False

    def test_page_query_orders_and_resumes_by_document_id(self):
        manager = MagicMock()
        manager.get.return_value.is_degraded = False
        collection_ref = manager.get.return_value.client.collection.return_value
        ordered = collection_ref.order_by.return_value

        DataAccessLayer(manager).list_page('products', 2, cursor='p1')

        collection_ref.order_by.assert_called_once_with('__name__')
        [cursor] = ordered.start_after.call_args.args
        assert list(cursor) == ['__name__']
        collection_ref.document.assert_called_with('p1')
        ordered.start_after.return_value.limit.assert_called_once_with(3)

    def test_non_positive_page_size_is_rejected(self, data_access):
        with pytest.raises(ValueError):
            data_access.list_page('products', 0)


class TestWrites:
    def test_create_document_stores_source_labels_and_timestamp(self, fake_db, data_access):
        doc_id = data_access.create_document('products', {'productName': 'Gel', 'brand': 'Reme'},
                                             mapping=PRODUCT_FIELDS)

        stored = fake_db.docs[f"products/{doc_id}"]
        assert stored["商品名"] == 'Gel'
        assert stored["ブランド名"] == 'Reme'
        assert isinstance(stored['createdAt'], datetime)

    def test_bulk_upsert_merges_by_id(self, fake_db, data_access):
        fake_db.seed('products', 'p1', {"商品名": "Old", "全成分": "水"})

        result = data_access.bulk_upsert('products', [{'id': 'p1', 'productName': 'New'}], mapping=PRODUCT_FIELDS)

        assert result.succeeded == ['p1']
        assert fake_db.docs['products/p1'] == {"商品名": "New", "全成分": "水"}

    def test_bulk_upsert_is_idempotent(self, fake_db, data_access):
        rows = [{'id': 'p1', 'productName': 'A'}, {'id': 'p2', 'productName': 'B'}]
        data_access.bulk_upsert('products', rows, mapping=PRODUCT_FIELDS)
        snapshot = dict(fake_db.docs)
        data_access.bulk_upsert('products', rows, mapping=PRODUCT_FIELDS)
        assert fake_db.docs == snapshot

    def test_bulk_upsert_reports_partial_failure(self, fake_db, data_access):
        fake_db.fail_writes_for.add('bad')
        rows = [{'id': 'ok1', 'productName': 'A'}, {'id': 'bad', 'productName': 'B'}, {'id': 'ok2'}]

        with pytest.raises(BulkImportError) as exc_info:
            data_access.bulk_upsert('products', rows, mapping=PRODUCT_FIELDS, max_workers=2)

        result = exc_info.value.result
        assert result.attempted == 3
        assert sorted(result.succeeded) == ['ok1', 'ok2']
        assert result.failed[0]['id'] == 'bad'
        assert 'products/ok1' in fake_db.docs

    def test_overwrite_with_history_appends_previous_value(self, fake_db, data_access):
        fake_db.seed('settings', 'skin_analysis_prompt', {'prompt': 'v1'})

        previous = data_access.overwrite_with_history('settings', 'skin_analysis_prompt', 'prompt', 'v2')

        assert previous == 'v1'
        history = [data for path, data in fake_db.docs.items()
                   if path.startswith('settings/skin_analysis_prompt/history/')]
        assert [entry['prompt'] for entry in history] == ['v1']
        assert fake_db.docs['settings/skin_analysis_prompt']['prompt'] == 'v2'

    def test_overwrite_without_previous_value_skips_history(self, fake_db, data_access):
        assert data_access.overwrite_with_history('settings', 'skin_analysis_prompt', 'prompt', 'v1') is None
        assert list(fake_db.docs) == ['settings/skin_analysis_prompt']

    def test_delete_does_not_cascade(self, fake_db, data_access):
        fake_db.seed('users', 'u1', {'email': 'a@example.com'})
        fake_db.seed('users/u1/skinAnalysis', 'a1', {'skinAge': 30})

        data_access.delete_document('users', 'u1')

        assert 'users/u1' not in fake_db.docs
        assert 'users/u1/skinAnalysis/a1' in fake_db.docs

    def test_delete_uses_rest_in_degraded_mode(self, rest_session, degraded_data_access):
        rest_session.add('users', 'u1', {})
        degraded_data_access.delete_document('users', 'u1')
        assert rest_session.calls[-1].method == 'DELETE'
        assert 'users/u1' not in rest_session.documents

    def test_writes_are_refused_in_degraded_mode(self, degraded_data_access):
        with pytest.raises(DegradedConnectionError):
            degraded_data_access.create_document('products', {'productName': 'x'})
        with pytest.raises(DegradedConnectionError):
            degraded_data_access.bulk_upsert('products', [{'productName': 'x'}])
        with pytest.raises(DegradedConnectionError):
            degraded_data_access.overwrite_with_history('settings', 'skin_analysis_prompt', 'prompt', 'x')

    def test_write_failures_propagate(self):
        manager = MagicMock()
        manager.get.return_value.is_degraded = False
        manager.get.return_value.client.collection.return_value.document.return_value.delete.side_effect = \
            RuntimeError("permission denied")

        with pytest.raises(RuntimeError):
            DataAccessLayer(manager).delete_document('users', 'u1')
