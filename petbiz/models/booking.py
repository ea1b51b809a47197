# petbiz/models/booking.py
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from petbiz.utils.datetime_utils import DateTimeUtils


class BookingStatus(Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class DocumentType(Enum):
    PRESCRIPTION = "prescription"
    RECEIPT = "receipt"
    REPORT = "report"


@dataclass
class PetSnapshot:
    """예약 시점의 반려동물 프로필 복사본. 이후 프로필이 바뀌어도 변경되지 않습니다."""
    name: str
    species: str
    breed: Optional[str] = None
    age: Optional[str] = None
    weight: Optional[str] = None
    medical_history: Optional[str] = None


@dataclass
class AppointmentDetails:
    date: date
    time: str  # "09:00 AM"
    service_type: str  # "Checkup", "Surgery" 등 서비스명의 복사본
    duration: str = "30 minutes"
    notes: Optional[str] = None


@dataclass
class Pricing:
    service_price: float
    total_amount: float
    additional_charges: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING


@dataclass
class Medication:
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class Prescription:
    medications: List[Medication] = field(default_factory=list)
    instructions: Optional[str] = None


@dataclass
class CompletionDocument:
    type: DocumentType
    url: str
    uploaded_at: datetime


@dataclass
class Completion:
    """진료 종료 후에만 채워지는 완료 기록."""
    completed_at: datetime
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    prescription: Optional[Prescription] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    documents: List[CompletionDocument] = field(default_factory=list)


@dataclass
class Booking:
    """
    Firestore 'vet_bookings' 컬렉션 문서 구조.
    반려동물/예약 정보는 생성 시점의 스냅샷으로 임베드되며, 외래 키로 다시 조회하지 않습니다.
    """
    booking_id: str
    vet_id: str
    pet_owner_id: str
    pet_details: PetSnapshot
    appointment_details: AppointmentDetails
    pricing: Pricing
    created_at: datetime
    updated_at: datetime
    status: BookingStatus = BookingStatus.SCHEDULED
    service_id: Optional[str] = None
    completion: Optional[Completion] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

    def to_dict(self) -> Dict[str, Any]:
        """저장용 레코드 형태로 변환합니다. Enum은 문자열 값으로 바뀝니다."""
        return _enum_values(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """
        저장소에서 읽은 딕셔너리로부터 Booking 인스턴스를 생성합니다.
        자정(UTC) datetime으로 저장된 날짜 필드는 date로 되돌립니다.
        """
        appointment = dict(data['appointment_details'])
        appointment['date'] = DateTimeUtils.validate_date_field(appointment.get('date'), 'appointment_details.date')

        pricing = dict(data['pricing'])
        pricing['payment_status'] = PaymentStatus(pricing.get('payment_status') or PaymentStatus.PENDING.value)
        pricing['service_price'] = float(pricing['service_price'])
        pricing['additional_charges'] = float(pricing.get('additional_charges') or 0)
        pricing['total_amount'] = float(pricing['total_amount'])

        completion_data = data.get('completion')
        return cls(
            booking_id=data['booking_id'],
            vet_id=data['vet_id'],
            pet_owner_id=data['pet_owner_id'],
            pet_details=PetSnapshot(**data['pet_details']),
            appointment_details=AppointmentDetails(**appointment),
            pricing=Pricing(**pricing),
            created_at=DateTimeUtils.validate_datetime_field(data.get('created_at'), 'created_at'),
            updated_at=DateTimeUtils.validate_datetime_field(data.get('updated_at'), 'updated_at'),
            status=BookingStatus(data.get('status') or BookingStatus.SCHEDULED.value),
            service_id=data.get('service_id'),
            completion=_completion_from_dict(completion_data) if completion_data else None,
            cancellation_reason=data.get('cancellation_reason'),
            cancelled_by=data.get('cancelled_by'),
        )


def _completion_from_dict(data: Dict[str, Any]) -> Completion:
    prescription_data = data.get('prescription')
    prescription = None
    if prescription_data:
        prescription = Prescription(
            medications=[Medication(**m) for m in prescription_data.get('medications') or []],
            instructions=prescription_data.get('instructions'),
        )

    follow_up_date = data.get('follow_up_date')
    return Completion(
        completed_at=DateTimeUtils.validate_datetime_field(data.get('completed_at'), 'completion.completed_at'),
        diagnosis=data.get('diagnosis'),
        treatment=data.get('treatment'),
        prescription=prescription,
        follow_up_required=bool(data.get('follow_up_required', False)),
        follow_up_date=DateTimeUtils.validate_date_field(follow_up_date) if follow_up_date else None,
        documents=[
            CompletionDocument(
                type=DocumentType(d['type']),
                url=d['url'],
                uploaded_at=DateTimeUtils.validate_datetime_field(d.get('uploaded_at'), 'uploaded_at'),
            )
            for d in data.get('documents') or []
        ],
    )


def _enum_values(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _enum_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_enum_values(v) for v in obj]
    return obj
