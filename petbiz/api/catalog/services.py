# petbiz/api/catalog/services.py
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from petbiz.api.catalog.schemas import ServiceCreateSchema, ServiceUpdateSchema
from petbiz.core.errors import ConflictError, NotFoundError, load_payload
from petbiz.core.security import Session
from petbiz.models.vet_service import VetService
from petbiz.services.firestore_service import DocumentStore
from petbiz.utils.datetime_utils import DateTimeUtils


class CatalogService:
    """사업자 계정이 제공하는 서비스 카탈로그(진료 항목, 가격)를 관리하는 서비스."""
    COLLECTION = 'vet_services'

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = DateTimeUtils.now):
        self.store = store
        self.clock = clock
        logging.info("CatalogService initialized.")

    def create_service(self, session: Session, payload: Dict[str, Any]) -> VetService:
        data = load_payload(ServiceCreateSchema(), payload)
        self._ensure_unique_name(session.user_id, data['name'])

        now = self.clock()
        service = VetService(
            service_id=str(uuid.uuid4()),
            user_id=session.user_id,
            business_type=session.business_type or "vet",
            created_at=now,
            updated_at=now,
            **data,
        )
        self.store.create(self.COLLECTION, service.service_id, service.to_dict())
        logging.info(f"Service '{service.name}' ({service.service_id}) created by business {session.user_id}")
        return service

    def list_services(self, session: Session) -> List[VetService]:
        """[사업자 전용] 본인의 전체 서비스 목록 (비활성 포함)."""
        docs = self.store.query(self.COLLECTION, [('user_id', '==', session.user_id)], order_by='created_at')
        return [VetService.from_dict(d) for d in docs]

    def list_active(self, business_id: str) -> List[VetService]:
        """[공개용] 특정 사업자의 예약 가능한 서비스 목록."""
        docs = self.store.query(self.COLLECTION, [
            ('user_id', '==', business_id),
            ('is_active', '==', True),
        ])
        return sorted((VetService.from_dict(d) for d in docs), key=lambda s: s.name.lower())

    def get_service(self, business_id: str, service_id: str) -> VetService:
        """해당 사업자 소유의 서비스를 반환합니다. 없거나 다른 사업자의 것이면 NotFoundError."""
        service = self._find(business_id, service_id)
        if service is None:
            raise NotFoundError("서비스를 찾을 수 없습니다.")
        return service

    def update_service(self, session: Session, service_id: str, payload: Dict[str, Any]) -> VetService:
        """부분 업데이트. 이름을 바꾸는 경우 중복 여부를 다시 확인합니다."""
        service = self.get_service(session.user_id, service_id)
        data = load_payload(ServiceUpdateSchema(), payload, partial=True)
        if 'name' in data and data['name'].lower() != service.name.lower():
            self._ensure_unique_name(session.user_id, data['name'], exclude_id=service_id)

        updated = replace(service, updated_at=self.clock(), **data)
        self.store.set(self.COLLECTION, service_id, updated.to_dict())
        logging.info(f"Service {service_id} updated by business {session.user_id}")
        return updated

    def toggle_active(self, session: Session, service_id: str) -> Optional[VetService]:
        """활성 상태를 뒤집습니다. 서비스가 없으면 None."""
        service = self._find(session.user_id, service_id)
        if service is None:
            return None

        updated = replace(service, is_active=not service.is_active, updated_at=self.clock())
        self.store.set(self.COLLECTION, service_id, updated.to_dict())
        logging.info(f"Service {service_id} is_active set to {updated.is_active}")
        return updated

    def delete_service(self, session: Session, service_id: str) -> bool:
        """
        서비스를 삭제합니다. 없으면 False.
        기존 예약에는 서비스명과 가격이 복사되어 있으므로 영향을 받지 않습니다.
        """
        if self._find(session.user_id, service_id) is None:
            return False
        self.store.delete(self.COLLECTION, service_id)
        logging.info(f"Service {service_id} deleted by business {session.user_id}")
        return True

    def _find(self, business_id: str, service_id: str) -> Optional[VetService]:
        data = self.store.get(self.COLLECTION, service_id)
        if data is None or data.get('user_id') != business_id:
            return None
        return VetService.from_dict(data)

    def _ensure_unique_name(self, business_id: str, name: str, exclude_id: Optional[str] = None) -> None:
        """같은 사업자 안에서 서비스명은 대소문자 구분 없이 고유해야 합니다."""
        docs = self.store.query(self.COLLECTION, [('user_id', '==', business_id)])
        for doc in docs:
            if doc.get('service_id') != exclude_id and (doc.get('name') or '').lower() == name.lower():
                raise ConflictError(f"'{name}' 서비스가 이미 존재합니다.")
