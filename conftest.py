# conftest.py
"""
공용 pytest 픽스처.

Firestore/Storage 대신 메모리 기반 대역(double)을 사용하므로 클라우드 인증 정보 없이 실행됩니다.
"""
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import pytest
from flask_jwt_extended import create_access_token

from petbiz import create_app
from petbiz.api.auth.services import AuthService
from petbiz.api.bookings.services import BookingService
from petbiz.api.catalog.services import CatalogService
from petbiz.api.users.services import UserService
from petbiz.core.errors import ConflictError, StoreUnavailableError
from petbiz.core.security import Session, hash_password
from petbiz.models.user import AccountRole, BusinessType, BusinessUser, PetProfile, User
from petbiz.utils.datetime_utils import DateTimeUtils

FIXED_NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
TEST_PASSWORD = "password123"

_MISSING = object()


def _lookup(data: Dict[str, Any], field_path: str) -> Any:
    value = data
    for part in field_path.split('.'):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


_OPERATORS = {
    '==': lambda a, b: a == b,
    '!=': lambda a, b: a != b,
    '<': lambda a, b: a < b,
    '<=': lambda a, b: a <= b,
    '>': lambda a, b: a > b,
    '>=': lambda a, b: a >= b,
    'in': lambda a, b: a in b,
}


class InMemoryDocumentStore:
    """DocumentStore와 같은 인터페이스를 가진 메모리 저장소."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.unavailable = False
        self.atomic_updates = 0

    def _check(self):
        if self.unavailable:
            raise StoreUnavailableError()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._check()
        data = self._collection(collection).get(doc_id)
        return copy.deepcopy(DateTimeUtils.from_firestore(data)) if data is not None else None

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._check()
        if doc_id in self._collection(collection):
            raise ConflictError()
        self._collection(collection)[doc_id] = DateTimeUtils.for_firestore(copy.deepcopy(data))

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._check()
        self._collection(collection)[doc_id] = DateTimeUtils.for_firestore(copy.deepcopy(data))

    def delete(self, collection: str, doc_id: str) -> None:
        self._check()
        self._collection(collection).pop(doc_id, None)

    def query(self, collection: str, filters=(), order_by=None, descending=False, limit=None):
        self._check()
        docs = list(self._collection(collection).values())
        for field_path, op, value in filters:
            value = DateTimeUtils.for_firestore(value)
            docs = [d for d in docs
                    if _lookup(d, field_path) is not _MISSING and _OPERATORS[op](_lookup(d, field_path), value)]
        if order_by:
            docs = [d for d in docs if _lookup(d, order_by) is not _MISSING]
            docs.sort(key=lambda d: _lookup(d, order_by), reverse=descending)
        if limit:
            docs = docs[:limit]
        return [copy.deepcopy(DateTimeUtils.from_firestore(d)) for d in docs]

    def update_atomic(self, collection: str, doc_id: str, mutate: Callable[[Dict[str, Any]], Dict[str, Any]]):
        self._check()
        current = self._collection(collection).get(doc_id)
        if current is None:
            return None
        updated = mutate(copy.deepcopy(DateTimeUtils.from_firestore(current)))
        self._collection(collection)[doc_id] = DateTimeUtils.for_firestore(copy.deepcopy(updated))
        self.atomic_updates += 1
        return updated


class FakeStorageService:
    """StorageService 대역. 발급된 업로드 경로는 업로드가 끝난 것으로 간주합니다."""

    def __init__(self):
        self.uploaded = set()
        self.published = []

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        if upload_type != "booking_document":
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")
        file_path = f"booking_documents/{user_id}/{filename}"
        self.uploaded.add(file_path)
        return {"upload_url": f"https://upload.example.com/{file_path}", "file_path": file_path}

    def make_public_and_get_url(self, file_path: str) -> str:
        if file_path not in self.uploaded:
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {file_path}")
        self.published.append(file_path)
        return f"https://storage.googleapis.com/petbiz-testing/{file_path}"


class FixedClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


# --- 저장소 / 시계 ---

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def storage():
    return FakeStorageService()


@pytest.fixture
def clock():
    return FixedClock()


# --- 계정 시드 ---

def seed_owner(store, user_id: str, email: str, pets=None) -> User:
    user = User(
        user_id=user_id,
        name="Kim Owner",
        email=email,
        contact_no="0101234567",
        address="Seoul",
        password_hash=hash_password(TEST_PASSWORD),
        pets=pets or [],
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    store.set('users', user_id, user.to_dict())
    return user


def seed_business(store, user_id: str, email: str, business_type=BusinessType.VET) -> BusinessUser:
    business = BusinessUser(
        user_id=user_id,
        business_name="Happy Paws Clinic",
        name="Dr. Lee",
        email=email,
        contact_no="0209876543",
        business_type=business_type,
        address="Busan",
        password_hash=hash_password(TEST_PASSWORD),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    store.set('business_users', user_id, business.to_dict())
    return business


@pytest.fixture
def accounts(store):
    """반려인 2명, 수의사 2명, 훈련사 1명."""
    return {
        "owner": seed_owner(store, "owner-1", "owner@example.com", pets=[
            PetProfile(pet_id="pet-1", name="Bori", species="dog", breed="Jindo", age="3", weight="12kg"),
        ]),
        "other_owner": seed_owner(store, "owner-2", "other@example.com"),
        "vet": seed_business(store, "vet-1", "vet@example.com"),
        "other_vet": seed_business(store, "vet-2", "vet2@example.com"),
        "trainer": seed_business(store, "trainer-1", "trainer@example.com", BusinessType.TRAINER),
    }


@pytest.fixture
def owner_session(accounts):
    return Session(user_id="owner-1", role=AccountRole.OWNER)


@pytest.fixture
def other_owner_session(accounts):
    return Session(user_id="owner-2", role=AccountRole.OWNER)


@pytest.fixture
def vet_session(accounts):
    return Session(user_id="vet-1", role=AccountRole.BUSINESS, business_type="vet")


@pytest.fixture
def other_vet_session(accounts):
    return Session(user_id="vet-2", role=AccountRole.BUSINESS, business_type="vet")


# --- 서비스 ---

@pytest.fixture
def user_service(store, clock):
    return UserService(store, clock=clock)


@pytest.fixture
def catalog_service(store, clock):
    return CatalogService(store, clock=clock)


@pytest.fixture
def booking_service(store, user_service, catalog_service, clock):
    return BookingService(store, user_service=user_service, catalog_service=catalog_service, clock=clock)


@pytest.fixture
def auth_service(store):
    return AuthService(store)


# --- Flask 앱 ---

@pytest.fixture
def app(store, storage, clock):
    app = create_app('testing', store=store, storage_service=storage)
    for name in ('users', 'catalog', 'bookings'):
        app.services[name].clock = clock
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """Session으로 Authorization 헤더를 만드는 함수를 반환합니다."""
    def _make(session: Session) -> dict:
        with app.app_context():
            token = create_access_token(identity=session.user_id, additional_claims=session.token_claims())
        return {"Authorization": f"Bearer {token}"}
    return _make
