# petbiz/api/auth/schemas.py
from marshmallow import Schema, fields, validate, pre_load

from petbiz.api.users.schemas import CONTACT_NO_RULE, PetProfileSchema
from petbiz.models.user import AccountRole, BusinessType


class _EmailNormalizingSchema(Schema):
    @pre_load
    def normalize_email(self, data, **kwargs):
        # 이메일은 소문자로 저장하고 비교
        if isinstance(data, dict) and isinstance(data.get('email'), str):
            data = dict(data)
            data['email'] = data['email'].strip().lower()
        return data


class OwnerRegisterSchema(_EmailNormalizingSchema):
    """POST /api/auth/register 반려인 회원가입 요청."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    email = fields.Email(required=True)
    contact_no = fields.Str(required=True, validate=CONTACT_NO_RULE)
    address = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    password = fields.Str(required=True, load_only=True, validate=validate.Regexp(r'\s*\S', error="비밀번호는 비어 있을 수 없습니다."))
    pets = fields.List(fields.Nested(PetProfileSchema), load_default=list)


class BusinessRegisterSchema(_EmailNormalizingSchema):
    """POST /api/auth/business/register 사업자 회원가입 요청."""
    business_name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    email = fields.Email(required=True)
    contact_no = fields.Str(required=True, validate=CONTACT_NO_RULE)
    business_type = fields.Str(required=True, validate=validate.OneOf([t.value for t in BusinessType]))
    address = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    password = fields.Str(required=True, load_only=True, validate=validate.Regexp(r'\s*\S', error="비밀번호는 비어 있을 수 없습니다."))


class LoginSchema(_EmailNormalizingSchema):
    """
    POST /api/auth/login
    같은 이메일로 여러 업종에 가입한 사업자는 business_type으로 계정을 지정할 수 있습니다.
    """
    email = fields.Str(required=True)
    password = fields.Str(required=True, load_only=True)
    account_type = fields.Str(load_default=AccountRole.OWNER.value,
                              validate=validate.OneOf([r.value for r in AccountRole]))
    business_type = fields.Str(validate=validate.OneOf([t.value for t in BusinessType]))


class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
