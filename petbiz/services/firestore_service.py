# petbiz/services/firestore_service.py
"""
Firestore 접근을 담당하는 공용 저장소 어댑터.

- 모든 호출에 명시적인 타임아웃을 적용합니다.
- 연결 불가/타임아웃 계열 오류는 StoreUnavailableError로 변환합니다.
- 단일 문서 read-modify-write는 트랜잭션(update_atomic)으로만 수행합니다.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from petbiz.core.errors import ConflictError, StoreUnavailableError
from petbiz.utils.datetime_utils import DateTimeUtils

Filter = Tuple[str, str, Any]

UNAVAILABLE_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.GatewayTimeout,
    google_exceptions.RetryError,
    TimeoutError,
)


class DocumentStore:
    """컬렉션 이름과 문서 ID로 접근하는 Firestore 래퍼."""

    def __init__(self, client=None, timeout: float = 10.0):
        self.client = client if client is not None else firestore.client()
        self.timeout = timeout
        logging.info(f"DocumentStore initialized (timeout={timeout}s).")

    @contextmanager
    def _translate_errors(self, operation: str):
        try:
            yield
        except UNAVAILABLE_ERRORS as e:
            logging.error(f"Firestore unavailable during {operation}: {e}")
            raise StoreUnavailableError() from e
        except google_exceptions.Conflict as e:
            logging.warning(f"Firestore conflict during {operation}: {e}")
            raise ConflictError() from e

    def _doc(self, collection: str, doc_id: str):
        return self.client.collection(collection).document(doc_id)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """문서를 딕셔너리로 반환합니다. 없으면 None."""
        with self._translate_errors(f"get {collection}/{doc_id}"):
            snapshot = self._doc(collection, doc_id).get(timeout=self.timeout)
        if not snapshot.exists:
            return None
        return DateTimeUtils.from_firestore(snapshot.to_dict())

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """새 문서를 생성합니다. 같은 ID의 문서가 이미 있으면 ConflictError."""
        with self._translate_errors(f"create {collection}/{doc_id}"):
            self._doc(collection, doc_id).create(DateTimeUtils.for_firestore(data), timeout=self.timeout)

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._translate_errors(f"set {collection}/{doc_id}"):
            self._doc(collection, doc_id).set(DateTimeUtils.for_firestore(data), timeout=self.timeout)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._translate_errors(f"delete {collection}/{doc_id}"):
            self._doc(collection, doc_id).delete(timeout=self.timeout)

    def query(self, collection: str, filters: Iterable[Filter] = (),
              order_by: Optional[str] = None, descending: bool = False,
              limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        (필드, 연산자, 값) 필터 목록으로 컬렉션을 조회합니다.
        중첩 필드는 'appointment_details.date'처럼 점 표기법을 사용합니다.
        """
        query = self.client.collection(collection)
        for field_path, op, value in filters:
            query = query.where(field_path, op, DateTimeUtils.for_firestore(value))
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit:
            query = query.limit(limit)

        with self._translate_errors(f"query {collection}"):
            return [DateTimeUtils.from_firestore(doc.to_dict()) for doc in query.stream(timeout=self.timeout)]

    def update_atomic(self, collection: str, doc_id: str,
                      mutate: Callable[[Dict[str, Any]], Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """
        [트랜잭션] 문서 하나를 읽고, mutate로 변경한 전체 문서를 다시 씁니다.
        mutate에서 예외가 발생하면 트랜잭션이 롤백되고 문서는 변경되지 않습니다.
        문서가 없으면 None을 반환합니다.
        """
        doc_ref = self._doc(collection, doc_id)
        transaction = self.client.transaction()

        @firestore.transactional
        def _update_in_transaction(transaction):
            snapshot = doc_ref.get(transaction=transaction, timeout=self.timeout)
            if not snapshot.exists:
                return None
            updated = mutate(DateTimeUtils.from_firestore(snapshot.to_dict()))
            transaction.set(doc_ref, DateTimeUtils.for_firestore(updated))
            return updated

        with self._translate_errors(f"update {collection}/{doc_id}"):
            return _update_in_transaction(transaction)
