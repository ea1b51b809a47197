# petbiz/services/test_firestore_service.py
from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from petbiz.core.errors import ConflictError, InvalidTransitionError, StoreUnavailableError
from petbiz.services import firestore_service
from petbiz.services.firestore_service import DocumentStore


def _snapshot(data):
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.to_dict.return_value = data
    return snapshot


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return DocumentStore(client=client, timeout=5)


@pytest.fixture
def doc_ref(client):
    return client.collection.return_value.document.return_value


@pytest.fixture
def immediate_transactions(monkeypatch):
    # 재시도 루프 없이 함수를 한 번만 실행
    monkeypatch.setattr(firestore_service.firestore, "transactional", lambda fn: fn)


def test_get_returns_utc_dict(store, client, doc_ref):
    doc_ref.get.return_value = _snapshot({"created_at": datetime(2025, 3, 10, 9, 0)})

    data = store.get("vet_bookings", "b-1")

    client.collection.assert_called_with("vet_bookings")
    client.collection.return_value.document.assert_called_with("b-1")
    doc_ref.get.assert_called_once_with(timeout=5)
    assert data == {"created_at": datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)}


def test_get_missing_document(store, doc_ref):
    doc_ref.get.return_value = _snapshot(None)
    assert store.get("vet_bookings", "missing") is None


def test_create_converts_dates_and_maps_conflicts(store, doc_ref):
    store.create("vet_bookings", "b-1", {"appointment_details": {"date": date(2025, 3, 12)}})
    doc_ref.create.assert_called_once_with(
        {"appointment_details": {"date": datetime(2025, 3, 12, tzinfo=timezone.utc)}}, timeout=5)

    doc_ref.create.side_effect = google_exceptions.Conflict("already exists")
    with pytest.raises(ConflictError):
        store.create("vet_bookings", "b-1", {})


@pytest.mark.parametrize("error", [
    google_exceptions.ServiceUnavailable("down"),
    google_exceptions.DeadlineExceeded("slow"),
    TimeoutError("socket timeout"),
])
def test_unavailable_errors_are_retryable(store, doc_ref, error):
    doc_ref.set.side_effect = error
    with pytest.raises(StoreUnavailableError) as exc_info:
        store.set("vet_services", "s-1", {"name": "Checkup"})
    assert exc_info.value.retryable
    assert exc_info.value.status_code == 503


def test_query_builds_filters_order_and_limit(store, client):
    query = client.collection.return_value
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.stream.return_value = [_snapshot({"booking_id": "b-1"})]

    results = store.query("vet_bookings",
                          [("vet_id", "==", "vet-1"), ("appointment_details.date", ">=", date(2025, 3, 10))],
                          order_by="created_at", descending=True, limit=20)

    assert results == [{"booking_id": "b-1"}]
    query.where.assert_any_call("vet_id", "==", "vet-1")
    query.where.assert_any_call("appointment_details.date", ">=", datetime(2025, 3, 10, tzinfo=timezone.utc))
    query.order_by.assert_called_once_with("created_at", direction=firestore_service.firestore.Query.DESCENDING)
    query.limit.assert_called_once_with(20)
    query.stream.assert_called_once_with(timeout=5)


def test_query_timeout(store, client):
    client.collection.return_value.stream.side_effect = google_exceptions.DeadlineExceeded("slow")
    with pytest.raises(StoreUnavailableError):
        store.query("vet_bookings")


def test_update_atomic_writes_mutated_document(store, client, doc_ref, immediate_transactions):
    transaction = client.transaction.return_value
    doc_ref.get.return_value = _snapshot({"status": "scheduled", "count": 1})

    updated = store.update_atomic("vet_bookings", "b-1", lambda d: dict(d, status="confirmed"))

    assert updated == {"status": "confirmed", "count": 1}
    doc_ref.get.assert_called_once_with(transaction=transaction, timeout=5)
    transaction.set.assert_called_once_with(doc_ref, {"status": "confirmed", "count": 1})


def test_update_atomic_missing_document(store, client, doc_ref, immediate_transactions):
    doc_ref.get.return_value = _snapshot(None)
    mutate = MagicMock()

    assert store.update_atomic("vet_bookings", "missing", mutate) is None
    mutate.assert_not_called()
    client.transaction.return_value.set.assert_not_called()


def test_update_atomic_aborts_when_mutation_fails(store, client, doc_ref, immediate_transactions):
    doc_ref.get.return_value = _snapshot({"status": "completed"})

    def reject(_):
        raise InvalidTransitionError()

    with pytest.raises(InvalidTransitionError):
        store.update_atomic("vet_bookings", "b-1", reject)
    client.transaction.return_value.set.assert_not_called()


def test_update_atomic_unavailable(store, doc_ref, immediate_transactions):
    doc_ref.get.side_effect = google_exceptions.ServiceUnavailable("down")
    with pytest.raises(StoreUnavailableError):
        store.update_atomic("vet_bookings", "b-1", lambda d: d)
