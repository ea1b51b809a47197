# petbiz/api/bookings/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError, pre_load

from petbiz.models.booking import BookingStatus, PaymentStatus, DocumentType
from petbiz.utils.datetime_utils import DateTimeUtils

BOOKING_STATUS_VALUES = [s.value for s in BookingStatus]
PAYMENT_STATUS_VALUES = [s.value for s in PaymentStatus]
DOCUMENT_TYPE_VALUES = [t.value for t in DocumentType]


def validate_time_string(value):
    """"09:00 AM", "14:30" 같은 예약 시간 문자열인지 검증합니다."""
    try:
        DateTimeUtils.parse_time_string(value)
    except ValueError:
        raise ValidationError("'09:00 AM' 또는 '14:30' 형식의 시간이어야 합니다.")


# --- 요청 스키마 ---

class PetDetailsSchema(Schema):
    """예약에 복사될 반려동물 정보. name과 species는 필수입니다."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    species = fields.Str(required=True, validate=validate.Length(min=1, max=30))
    breed = fields.Str(allow_none=True)
    age = fields.Str(allow_none=True)
    weight = fields.Str(allow_none=True)
    medical_history = fields.Str(allow_none=True)


class AppointmentDetailsSchema(Schema):
    date = fields.Date(required=True, format="%Y-%m-%d")
    time = fields.Str(required=True, validate=validate_time_string)
    service_type = fields.Str(validate=validate.Length(min=1, max=100))
    duration = fields.Str(validate=validate.Length(min=1, max=50))
    notes = fields.Str(allow_none=True, validate=validate.Length(max=1000))


class PricingInputSchema(Schema):
    service_price = fields.Float(validate=validate.Range(min=0, error="금액은 0 이상이어야 합니다."))
    additional_charges = fields.Float(validate=validate.Range(min=0, error="금액은 0 이상이어야 합니다."))
    total_amount = fields.Float(allow_none=True, validate=validate.Range(min=0))


class BookingCreateSchema(Schema):
    """
    POST /api/bookings/ 예약 생성 요청 스키마.
    - 반려인은 vet_id를, 사업자(방문 접수)는 pet_owner_id를 지정합니다.
    - pet_id(프로필 참조) 또는 pet_details(직접 입력) 중 하나가 필요합니다.
    - service_id가 있으면 서비스명/가격/소요시간을 카탈로그에서 복사합니다.
    """
    vet_id = fields.Str()
    pet_owner_id = fields.Str()
    pet_id = fields.Str()
    pet_details = fields.Nested(PetDetailsSchema)
    service_id = fields.Str()
    appointment_details = fields.Nested(AppointmentDetailsSchema, required=True)
    pricing = fields.Nested(PricingInputSchema, load_default=dict)

    @validates_schema
    def validate_sources(self, data, **kwargs):
        if data.get('pet_id') and data.get('pet_details'):
            raise ValidationError("'pet_id'와 'pet_details'는 동시에 사용할 수 없습니다.", 'pet_details')
        if not data.get('pet_id') and not data.get('pet_details'):
            raise ValidationError("'pet_id' 또는 'pet_details'가 필요합니다.", 'pet_details')

        pricing = data.get('pricing') or {}
        # 가격을 직접 지정하면 service_id 유무와 상관없이 합계도 함께 받아야 함
        if pricing.get('service_price') is not None and pricing.get('total_amount') is None:
            raise ValidationError("service_price를 지정하면 total_amount는 필수입니다.", 'pricing')

        if data.get('service_id'):
            return
        appointment = data.get('appointment_details') or {}
        if not appointment.get('service_type'):
            raise ValidationError("service_id가 없으면 service_type은 필수입니다.", 'appointment_details')
        if pricing.get('service_price') is None:
            raise ValidationError("service_id가 없으면 service_price는 필수입니다.", 'pricing')
        if pricing.get('total_amount') is None:
            raise ValidationError("service_id가 없으면 total_amount는 필수입니다.", 'pricing')


class StatusUpdateSchema(Schema):
    """PATCH /api/bookings/<id>/status"""
    status = fields.Str(required=True, validate=validate.OneOf(BOOKING_STATUS_VALUES))


class MedicationSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    dosage = fields.Str(allow_none=True)
    frequency = fields.Str(allow_none=True)
    duration = fields.Str(allow_none=True)


class PrescriptionSchema(Schema):
    medications = fields.List(fields.Nested(MedicationSchema), load_default=list)
    instructions = fields.Str(allow_none=True)


class DocumentInputSchema(Schema):
    type = fields.Str(required=True, validate=validate.OneOf(DOCUMENT_TYPE_VALUES))
    url = fields.URL(required=True)


class CompletionSchema(Schema):
    """PATCH /api/bookings/<id>/complete 진료 완료 기록."""
    diagnosis = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    treatment = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    prescription = fields.Nested(PrescriptionSchema, allow_none=True)
    follow_up_required = fields.Bool(load_default=False)
    follow_up_date = fields.Date(allow_none=True, format="%Y-%m-%d")
    documents = fields.List(fields.Nested(DocumentInputSchema), load_default=list)

    @validates_schema
    def validate_follow_up(self, data, **kwargs):
        if data.get('follow_up_date') and not data.get('follow_up_required'):
            raise ValidationError("follow_up_required가 true일 때만 follow_up_date를 지정할 수 있습니다.", 'follow_up_date')
        if data.get('follow_up_required') and not data.get('follow_up_date'):
            raise ValidationError("재진이 필요하면 follow_up_date는 필수입니다.", 'follow_up_date')


class CancelSchema(Schema):
    reason = fields.Str(allow_none=True, validate=validate.Length(max=500))


class PaymentStatusSchema(Schema):
    payment_status = fields.Str(required=True, validate=validate.OneOf(PAYMENT_STATUS_VALUES))


class ChargesUpdateSchema(Schema):
    additional_charges = fields.Float(required=True, validate=validate.Range(min=0, error="금액은 0 이상이어야 합니다."))


class DocumentAttachSchema(Schema):
    """POST /api/bookings/<id>/documents. file_path는 업로드 URL 발급 시 받은 경로입니다."""
    type = fields.Str(required=True, validate=validate.OneOf(DOCUMENT_TYPE_VALUES))
    file_path = fields.Str(required=True, error_messages={"required": "업로드된 파일 경로(file_path)는 필수입니다."})


class BookingQuerySchema(Schema):
    """GET /api/bookings/ 쿼리 파라미터 검증 스키마."""
    date = fields.Date(format="%Y-%m-%d")
    status = fields.Str(validate=validate.OneOf(BOOKING_STATUS_VALUES))
    limit = fields.Int(validate=validate.Range(min=1, max=100))

    @pre_load
    def preprocess_data(self, data, **kwargs):
        # ImmutableMultiDict를 수정 가능한 딕셔너리로 변환하고 빈 값은 제거
        return {k: v for k, v in dict(data).items() if v not in (None, '')}


# --- 응답 스키마 ---

class AppointmentResponseSchema(Schema):
    date = fields.Date()
    time = fields.Str()
    service_type = fields.Str()
    duration = fields.Str()
    notes = fields.Str(allow_none=True)


class PricingResponseSchema(Schema):
    service_price = fields.Float()
    additional_charges = fields.Float()
    total_amount = fields.Float()
    payment_status = fields.Str()


class DocumentResponseSchema(Schema):
    type = fields.Str()
    url = fields.Str()
    uploaded_at = fields.DateTime()


class CompletionResponseSchema(Schema):
    completed_at = fields.DateTime()
    diagnosis = fields.Str(allow_none=True)
    treatment = fields.Str(allow_none=True)
    prescription = fields.Nested(PrescriptionSchema, allow_none=True)
    follow_up_required = fields.Bool()
    follow_up_date = fields.Date(allow_none=True)
    documents = fields.List(fields.Nested(DocumentResponseSchema))


class BookingResponseSchema(Schema):
    """예약 정보 응답 스키마. Booking.to_dict() 결과를 직렬화합니다."""
    booking_id = fields.Str()
    vet_id = fields.Str()
    pet_owner_id = fields.Str()
    service_id = fields.Str(allow_none=True)
    pet_details = fields.Nested(PetDetailsSchema)
    appointment_details = fields.Nested(AppointmentResponseSchema)
    status = fields.Str()
    pricing = fields.Nested(PricingResponseSchema)
    completion = fields.Nested(CompletionResponseSchema, allow_none=True)
    cancellation_reason = fields.Str(allow_none=True)
    cancelled_by = fields.Str(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
