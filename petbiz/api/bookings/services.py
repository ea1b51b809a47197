# petbiz/api/bookings/services.py
import logging
import uuid
from dataclasses import replace
from datetime import datetime, time
from typing import Any, Callable, Dict, List, Optional

from petbiz.api.bookings import lifecycle, pricing as pricing_ledger
from petbiz.api.bookings.schemas import (
    BookingCreateSchema,
    CompletionSchema,
    DocumentInputSchema,
)
from petbiz.api.catalog.services import CatalogService
from petbiz.api.users.services import UserService
from petbiz.core.errors import (
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    load_payload,
)
from petbiz.core.security import Session
from petbiz.models.booking import (
    AppointmentDetails,
    Booking,
    BookingStatus,
    Completion,
    CompletionDocument,
    DocumentType,
    Medication,
    PaymentStatus,
    PetSnapshot,
    Prescription,
)
from petbiz.models.user import User
from petbiz.services.firestore_service import DocumentStore
from petbiz.utils.datetime_utils import DateTimeUtils


class BookingService:
    """
    예약(진료 예약)의 생성, 조회, 상태 전이, 완료 기록, 결제 상태 관리를 전담하는 서비스.
    모든 변경은 DocumentStore.update_atomic을 통해 문서 단위 트랜잭션으로 적용됩니다.
    """
    COLLECTION = 'vet_bookings'

    def __init__(self,
                 store: DocumentStore,
                 user_service: UserService,
                 catalog_service: CatalogService,
                 clock: Callable[[], datetime] = DateTimeUtils.now,
                 list_limit: int = 50,
                 upcoming_days: int = 7):
        self.store = store
        self.user_service = user_service
        self.catalog_service = catalog_service
        self.clock = clock
        self.list_limit = list_limit
        self.upcoming_days = upcoming_days
        logging.info("BookingService initialized with dependencies.")

    # --- 생성 ---

    def create_booking(self, session: Session, payload: Dict[str, Any]) -> Booking:
        """
        새 예약을 scheduled 상태로 생성합니다.
        반려인은 본인 명의로, 사업자는 본인 계정을 제공자로 하는 방문 접수 예약을 만듭니다.
        """
        data = load_payload(BookingCreateSchema(), payload)

        if session.is_business:
            vet_id = session.user_id
            pet_owner_id = data.get('pet_owner_id')
            if not pet_owner_id:
                raise ValidationError(details={"pet_owner_id": ["사업자가 예약을 생성할 때는 필수입니다."]})
        else:
            pet_owner_id = session.user_id
            vet_id = data.get('vet_id')
            if not vet_id:
                raise ValidationError(details={"vet_id": ["필수 항목입니다."]})

        self.user_service.get_business_user(vet_id)
        owner = self.user_service.get_user(pet_owner_id)
        pet_details = self._snapshot_pet(owner, data)

        service = None
        if data.get('service_id'):
            service = self.catalog_service.get_service(vet_id, data['service_id'])
            if not service.is_active:
                raise PreconditionError("현재 예약을 받지 않는 서비스입니다.")

        appointment_data = data['appointment_details']
        appointment = AppointmentDetails(
            date=appointment_data['date'],
            time=appointment_data['time'].strip(),
            service_type=appointment_data.get('service_type') or service.name,
            duration=appointment_data.get('duration') or (service.duration if service and service.duration else "30 minutes"),
            notes=appointment_data.get('notes'),
        )

        pricing_data = data.get('pricing') or {}
        service_price = pricing_data.get('service_price')
        if service_price is None and service:
            service_price = service.price
        booking_pricing = pricing_ledger.build_pricing(
            service_price,
            pricing_data.get('additional_charges', 0),
            pricing_data.get('total_amount'),
        )

        now = self.clock()
        booking = Booking(
            booking_id=str(uuid.uuid4()),
            vet_id=vet_id,
            pet_owner_id=pet_owner_id,
            pet_details=pet_details,
            appointment_details=appointment,
            pricing=booking_pricing,
            created_at=now,
            updated_at=now,
            status=BookingStatus.SCHEDULED,
            service_id=service.service_id if service else None,
        )
        self.store.create(self.COLLECTION, booking.booking_id, booking.to_dict())
        logging.info(f"Booking {booking.booking_id} created (vet: {vet_id}, owner: {pet_owner_id}, by: {session.role.value})")
        return booking

    def _snapshot_pet(self, owner: User, data: Dict[str, Any]) -> PetSnapshot:
        """반려동물 정보를 예약 시점의 복사본으로 만듭니다."""
        if data.get('pet_details'):
            return PetSnapshot(**data['pet_details'])

        profile = owner.find_pet(data['pet_id'])
        if profile is None:
            raise NotFoundError("해당 반려동물을 찾을 수 없습니다.")
        return PetSnapshot(
            name=profile.name,
            species=profile.species,
            breed=profile.breed,
            age=profile.age,
            weight=profile.weight,
            medical_history=profile.medical_history,
        )

    # --- 조회 ---

    def get_booking(self, session: Session, booking_id: str) -> Booking:
        """예약 당사자(반려인 또는 제공자)만 조회할 수 있습니다. 그 외에는 NotFoundError."""
        data = self.store.get(self.COLLECTION, booking_id)
        if data is None:
            raise NotFoundError("예약을 찾을 수 없습니다.")
        booking = Booking.from_dict(data)
        if session.user_id not in (booking.vet_id, booking.pet_owner_id):
            raise NotFoundError("예약을 찾을 수 없습니다.")
        return booking

    def list_for_provider(self, session: Session, on_date=None, status: Optional[str] = None,
                          limit: Optional[int] = None) -> List[Booking]:
        """[제공자 캘린더] 날짜, 상태로 필터링한 예약 목록을 날짜/시간 순으로 반환합니다."""
        self._require_business(session)
        filters = [('vet_id', '==', session.user_id)]
        if on_date:
            filters.append(('appointment_details.date', '==', DateTimeUtils.validate_date_field(on_date)))
        if status:
            filters.append(('status', '==', self._parse_status(status).value))

        limit = limit or self.list_limit
        docs = self.store.query(self.COLLECTION, filters,
                                order_by='appointment_details.date',
                                limit=limit)
        if docs and len(docs) == limit:
            # 저장소는 날짜까지만 정렬하므로 잘린 마지막 날짜는 전부 읽어 시간순으로 다시 자름
            last_date = docs[-1]['appointment_details']['date']
            seen = {d['booking_id'] for d in docs}
            day_filters = [f for f in filters if f[0] != 'appointment_details.date']
            day_filters.append(('appointment_details.date', '==', last_date))
            same_day = self.store.query(self.COLLECTION, day_filters)
            docs.extend(d for d in same_day if d['booking_id'] not in seen)
        return self._sorted_by_appointment([Booking.from_dict(d) for d in docs])[:limit]

    def list_for_owner(self, session: Session, status: Optional[str] = None,
                       limit: Optional[int] = None) -> List[Booking]:
        """[반려인 이력] 최근 생성 순으로 반환합니다."""
        if not session.is_owner:
            raise ForbiddenError("반려인 계정만 예약 이력을 조회할 수 있습니다.")
        filters = [('pet_owner_id', '==', session.user_id)]
        if status:
            filters.append(('status', '==', self._parse_status(status).value))

        docs = self.store.query(self.COLLECTION, filters,
                                order_by='created_at', descending=True,
                                limit=limit or self.list_limit)
        return [Booking.from_dict(d) for d in docs]

    def list_upcoming(self, session: Session, days: Optional[int] = None) -> List[Booking]:
        """오늘부터 N일 이내의 진행 중인(종료되지 않은) 예약을 반환합니다."""
        self._require_business(session)
        start = self.clock().date()
        end = DateTimeUtils.add_days(start, days if days is not None else self.upcoming_days)
        docs = self.store.query(self.COLLECTION, [
            ('vet_id', '==', session.user_id),
            ('appointment_details.date', '>=', start),
            ('appointment_details.date', '<=', end),
        ], order_by='appointment_details.date')

        bookings = [Booking.from_dict(d) for d in docs]
        return self._sorted_by_appointment([b for b in bookings if b.status in lifecycle.ACTIVE_STATUSES])

    # --- 상태 전이 ---

    def advance(self, session: Session, booking_id: str, target_status) -> Booking:
        """
        허용된 다음 상태로 전이합니다.
        in_progress → completed는 빈 완료 기록과 함께 complete와 같은 경로로 처리됩니다.
        """
        target = self._parse_status(target_status)

        def change(booking: Booking, now: datetime) -> Booking:
            lifecycle.ensure_transition(booking.status, target)
            if target == BookingStatus.COMPLETED:
                return self._completed(booking, now, {})
            if target == BookingStatus.CANCELLED:
                return self._cancelled(booking, now, session, None)
            return lifecycle.transition(booking, target, now)

        booking = self._mutate(session, booking_id, change)
        logging.info(f"Booking {booking_id} advanced to {target.value}")
        return booking

    def complete(self, session: Session, booking_id: str, payload: Optional[Dict[str, Any]] = None) -> Booking:
        """in_progress 상태에서만 진료 완료 기록을 남기고 completed로 전이합니다."""
        data = load_payload(CompletionSchema(), payload or {})

        def change(booking: Booking, now: datetime) -> Booking:
            if booking.status != BookingStatus.IN_PROGRESS:
                raise PreconditionError(
                    f"진행 중(in_progress)인 예약만 완료할 수 있습니다. 현재 상태: {booking.status.value}",
                    details={"current_status": booking.status.value},
                )
            return self._completed(booking, now, data)

        booking = self._mutate(session, booking_id, change)
        logging.info(f"Booking {booking_id} completed (follow-up: {booking.completion.follow_up_required})")
        return booking

    def cancel(self, session: Session, booking_id: str, reason: Optional[str] = None) -> Booking:
        """종료되지 않은 예약을 취소합니다. 반려인과 제공자 모두 가능합니다."""
        def change(booking: Booking, now: datetime) -> Booking:
            lifecycle.ensure_transition(booking.status, BookingStatus.CANCELLED)
            return self._cancelled(booking, now, session, reason)

        booking = self._mutate(session, booking_id, change, provider_only=False)
        logging.info(f"Booking {booking_id} cancelled by {session.role.value}")
        return booking

    def _completed(self, booking: Booking, now: datetime, data: Dict[str, Any]) -> Booking:
        prescription_data = data.get('prescription')
        prescription = None
        if prescription_data:
            prescription = Prescription(
                medications=[Medication(**m) for m in prescription_data.get('medications', [])],
                instructions=prescription_data.get('instructions'),
            )

        completion = Completion(
            completed_at=now,
            diagnosis=data.get('diagnosis'),
            treatment=data.get('treatment'),
            prescription=prescription,
            follow_up_required=data.get('follow_up_required', False),
            follow_up_date=data.get('follow_up_date'),
            documents=[
                CompletionDocument(type=DocumentType(d['type']), url=d['url'], uploaded_at=now)
                for d in data.get('documents', [])
            ],
        )
        return lifecycle.transition(replace(booking, completion=completion), BookingStatus.COMPLETED, now)

    def _cancelled(self, booking: Booking, now: datetime, session: Session, reason: Optional[str]) -> Booking:
        cancelled = lifecycle.transition(booking, BookingStatus.CANCELLED, now)
        return replace(cancelled, cancellation_reason=reason, cancelled_by=session.role.value)

    # --- 결제 / 금액 ---

    def set_payment_status(self, session: Session, booking_id: str, payment_status) -> Booking:
        """결제 상태를 pending → paid → refunded 순서로 변경합니다."""
        target = self._parse_enum(PaymentStatus, payment_status, 'payment_status')

        def change(booking: Booking, now: datetime) -> Booking:
            return replace(booking,
                           pricing=pricing_ledger.set_payment_status(booking.pricing, target),
                           updated_at=now)

        booking = self._mutate(session, booking_id, change)
        logging.info(f"Booking {booking_id} payment status set to {target.value}")
        return booking

    def update_charges(self, session: Session, booking_id: str, additional_charges) -> Booking:
        """진행 중인 예약의 추가 요금을 변경하고 총액을 다시 계산합니다."""
        def change(booking: Booking, now: datetime) -> Booking:
            if booking.is_terminal:
                raise PreconditionError("종료된 예약의 요금은 변경할 수 없습니다.")
            return replace(booking,
                           pricing=pricing_ledger.update_additional_charges(booking.pricing, additional_charges),
                           updated_at=now)

        booking = self._mutate(session, booking_id, change)
        logging.info(f"Booking {booking_id} additional charges updated (total: {booking.pricing.total_amount})")
        return booking

    # --- 완료 문서 ---

    def add_document(self, session: Session, booking_id: str, doc_type: str, url: str) -> Booking:
        """완료된 예약의 완료 기록에 문서(처방전/영수증/보고서) URL을 추가합니다."""
        data = load_payload(DocumentInputSchema(), {"type": doc_type, "url": url})

        def change(booking: Booking, now: datetime) -> Booking:
            if booking.status != BookingStatus.COMPLETED or booking.completion is None:
                raise PreconditionError("완료된 예약에만 문서를 첨부할 수 있습니다.")
            document = CompletionDocument(type=DocumentType(data['type']), url=data['url'], uploaded_at=now)
            completion = replace(booking.completion, documents=booking.completion.documents + [document])
            return replace(booking, completion=completion, updated_at=now)

        booking = self._mutate(session, booking_id, change)
        logging.info(f"Document ({data['type']}) attached to booking {booking_id}")
        return booking

    # --- 내부 도우미 ---

    def _mutate(self, session: Session, booking_id: str,
                change: Callable[[Booking, datetime], Booking],
                provider_only: bool = True) -> Booking:
        """권한 확인과 변경을 하나의 트랜잭션 안에서 수행합니다."""
        now = self.clock()

        def _apply(data: Dict[str, Any]) -> Dict[str, Any]:
            booking = Booking.from_dict(data)
            self._authorize_write(session, booking, provider_only)
            return change(booking, now).to_dict()

        updated = self.store.update_atomic(self.COLLECTION, booking_id, _apply)
        if updated is None:
            raise NotFoundError("예약을 찾을 수 없습니다.")
        return Booking.from_dict(updated)

    @staticmethod
    def _authorize_write(session: Session, booking: Booking, provider_only: bool) -> None:
        if session.is_business and session.user_id == booking.vet_id:
            return
        if session.is_owner and session.user_id == booking.pet_owner_id:
            if provider_only:
                raise ForbiddenError("예약을 담당하는 사업자만 수행할 수 있는 작업입니다.")
            return
        raise NotFoundError("예약을 찾을 수 없습니다.")

    @staticmethod
    def _require_business(session: Session) -> None:
        if not session.is_business:
            raise ForbiddenError("사업자 계정만 사용할 수 있는 기능입니다.")

    @staticmethod
    def _parse_enum(enum_cls, value, field_name: str):
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            allowed = [e.value for e in enum_cls]
            raise ValidationError(details={field_name: [f"{allowed} 중 하나여야 합니다."]})

    def _parse_status(self, value) -> BookingStatus:
        return self._parse_enum(BookingStatus, value, 'status')

    @staticmethod
    def _sorted_by_appointment(bookings: List[Booking]) -> List[Booking]:
        def time_key(booking: Booking) -> time:
            try:
                return DateTimeUtils.parse_time_string(booking.appointment_details.time)
            except ValueError:
                return time.max
        return sorted(bookings, key=lambda b: (b.appointment_details.date, time_key(b)))
