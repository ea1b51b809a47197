# petbiz/models/test_booking.py
from datetime import date, datetime, timezone

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
    Pricing,
)
from petbiz.utils.datetime_utils import DateTimeUtils

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def _completed_booking() -> Booking:
    return Booking(
        booking_id="b-1",
        vet_id="vet-1",
        pet_owner_id="owner-1",
        pet_details=PetSnapshot(name="Bori", species="dog", breed="Jindo"),
        appointment_details=AppointmentDetails(date=date(2025, 3, 12), time="10:00 AM", service_type="Checkup"),
        pricing=Pricing(service_price=50.0, additional_charges=10.0, total_amount=60.0,
                        payment_status=PaymentStatus.PAID),
        created_at=NOW,
        updated_at=NOW,
        status=BookingStatus.COMPLETED,
        completion=Completion(
            completed_at=NOW,
            diagnosis="Healthy",
            prescription=Prescription(medications=[Medication(name="Vitamin", dosage="1 tablet")]),
            follow_up_required=True,
            follow_up_date=date(2025, 4, 1),
            documents=[CompletionDocument(type=DocumentType.RECEIPT, url="https://files.example.com/r.pdf",
                                          uploaded_at=NOW)],
        ),
    )


def test_to_dict_uses_plain_values():
    data = _completed_booking().to_dict()
    assert data['status'] == "completed"
    assert data['pricing']['payment_status'] == "paid"
    assert data['completion']['documents'][0]['type'] == "receipt"
    assert data['appointment_details']['date'] == date(2025, 3, 12)


def test_stored_record_restores_dates_and_enums():
    """Firestore에 저장된 형태(날짜는 자정 UTC datetime)에서 원래 Booking으로 복원된다."""
    booking = _completed_booking()
    stored = DateTimeUtils.from_firestore(DateTimeUtils.for_firestore(booking.to_dict()))
    assert isinstance(stored['appointment_details']['date'], datetime)

    restored = Booking.from_dict(stored)
    assert restored == booking
    assert restored.appointment_details.date == date(2025, 3, 12)
    assert restored.completion.follow_up_date == date(2025, 4, 1)
    assert restored.is_terminal


def test_from_dict_defaults():
    data = _completed_booking().to_dict()
    data.update(status=None, completion=None)
    data['pricing'].pop('payment_status')
    data['pricing'].pop('additional_charges')
    data['pricing']['total_amount'] = 50
    data['pricing']['service_price'] = 50

    booking = Booking.from_dict(data)
    assert booking.status == BookingStatus.SCHEDULED
    assert booking.pricing.payment_status == PaymentStatus.PENDING
    assert booking.pricing.additional_charges == 0.0
    assert booking.completion is None
    assert not booking.is_terminal
