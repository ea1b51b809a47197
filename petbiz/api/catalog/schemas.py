# petbiz/api/catalog/schemas.py
from marshmallow import Schema, fields, validate, pre_load

from petbiz.models.user import BusinessType


class ServiceCreateSchema(Schema):
    """POST /api/services/ 서비스 카탈로그 항목 생성 요청."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    category = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    price = fields.Float(required=True, validate=validate.Range(min=0, error="가격은 0 이상이어야 합니다."))
    description = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    duration = fields.Str(allow_none=True, validate=validate.Length(max=50))
    is_active = fields.Bool(load_default=True)
    is_emergency = fields.Bool(load_default=False)
    requires_appointment = fields.Bool(load_default=True)
    equipment_needed = fields.List(fields.Str(), load_default=list)

    @pre_load
    def strip_name(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('name'), str):
            data = dict(data)
            data['name'] = data['name'].strip()
        return data


class ServiceUpdateSchema(ServiceCreateSchema):
    """부분 업데이트용. partial=True로 로드하면 load_default는 적용되지 않습니다."""
    pass


class ServiceResponseSchema(Schema):
    service_id = fields.Str()
    user_id = fields.Str()
    business_type = fields.Str(validate=validate.OneOf([t.value for t in BusinessType]))
    name = fields.Str()
    category = fields.Str()
    price = fields.Float()
    description = fields.Str(allow_none=True)
    duration = fields.Str(allow_none=True)
    is_active = fields.Bool()
    is_emergency = fields.Bool()
    requires_appointment = fields.Bool()
    equipment_needed = fields.List(fields.Str())
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
