# petbiz/api/users/schemas.py
from marshmallow import Schema, fields, validate

CONTACT_NO_RULE = validate.Regexp(r'^\d{10}$', error="연락처는 숫자 10자리여야 합니다.")


class ProfileUpdateSchema(Schema):
    """
    PATCH /api/users/me
    이메일과 비밀번호는 이 API로 변경할 수 없습니다.
    """
    name = fields.Str(validate=validate.Length(min=1, max=50))
    contact_no = fields.Str(validate=CONTACT_NO_RULE)
    address = fields.Str(validate=validate.Length(min=1, max=200))


class BusinessProfileUpdateSchema(Schema):
    """
    PATCH /api/users/business/me
    사업자 유형, 이메일, 비밀번호는 이 API로 변경할 수 없습니다.
    """
    business_name = fields.Str(validate=validate.Length(min=1, max=100))
    name = fields.Str(validate=validate.Length(min=1, max=50))
    contact_no = fields.Str(validate=CONTACT_NO_RULE)
    address = fields.Str(validate=validate.Length(min=1, max=200))
    emergency_24hrs = fields.Bool(strict=True)


class PetProfileSchema(Schema):
    """POST /api/users/me/pets, PATCH /api/users/me/pets/<pet_id>"""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    species = fields.Str(required=True, validate=validate.Length(min=1, max=30))
    breed = fields.Str(allow_none=True)
    age = fields.Str(allow_none=True)
    weight = fields.Str(allow_none=True)
    medical_history = fields.Str(allow_none=True, validate=validate.Length(max=2000))


class PetProfileResponseSchema(PetProfileSchema):
    pet_id = fields.Str(dump_only=True)


class UserProfileResponseSchema(Schema):
    """반려인 본인 프로필 응답. password_hash는 절대 포함하지 않습니다."""
    user_id = fields.Str(dump_only=True)
    name = fields.Str()
    email = fields.Email()
    contact_no = fields.Str()
    address = fields.Str()
    pets = fields.List(fields.Nested(PetProfileResponseSchema))
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class BusinessProfileResponseSchema(Schema):
    user_id = fields.Str(dump_only=True)
    business_name = fields.Str()
    name = fields.Str()
    email = fields.Email()
    contact_no = fields.Str()
    business_type = fields.Str()
    address = fields.Str()
    emergency_24hrs = fields.Bool()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
