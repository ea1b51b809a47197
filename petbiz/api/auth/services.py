# petbiz/api/auth/services.py
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Tuple, Union

from petbiz.api.auth.schemas import BusinessRegisterSchema, LoginSchema, OwnerRegisterSchema
from petbiz.core.errors import AuthenticationError, ConflictError, load_payload
from petbiz.core.security import Session, hash_password, verify_password
from petbiz.models.user import AccountRole, BusinessType, BusinessUser, PetProfile, User
from petbiz.services.firestore_service import DocumentStore
from petbiz.utils.datetime_utils import DateTimeUtils

Account = Union[User, BusinessUser]


class AuthService:
    """회원가입, 로그인, 토큰 무효화 목록(Blocklist)을 담당합니다."""
    USERS = 'users'
    BUSINESS_USERS = 'business_users'
    REVOKED_TOKENS = 'revoked_tokens'

    def __init__(self, store: DocumentStore):
        self.store = store

    # --- 회원가입 ---

    def register_owner(self, payload: Dict[str, Any]) -> Tuple[User, Session]:
        data = load_payload(OwnerRegisterSchema(), payload)
        if self.store.query(self.USERS, [('email', '==', data['email'])], limit=1):
            raise ConflictError("이미 가입된 이메일입니다.")

        now = DateTimeUtils.now()
        user = User(
            user_id=str(uuid.uuid4()),
            name=data['name'],
            email=data['email'],
            contact_no=data['contact_no'],
            address=data['address'],
            password_hash=hash_password(data['password']),
            pets=[PetProfile(pet_id=str(uuid.uuid4()), **p) for p in data['pets']],
            created_at=now,
            updated_at=now,
        )
        self.store.create(self.USERS, user.user_id, user.to_dict())
        logging.info(f"Pet owner registered: {user.user_id}")
        return user, Session(user_id=user.user_id, role=AccountRole.OWNER)

    def register_business(self, payload: Dict[str, Any]) -> Tuple[BusinessUser, Session]:
        """같은 이메일이라도 업종(business_type)이 다르면 별도 계정으로 가입할 수 있습니다."""
        data = load_payload(BusinessRegisterSchema(), payload)
        existing = self.store.query(self.BUSINESS_USERS, [
            ('email', '==', data['email']),
            ('business_type', '==', data['business_type']),
        ], limit=1)
        if existing:
            raise ConflictError("해당 업종으로 이미 가입된 이메일입니다.")

        now = DateTimeUtils.now()
        business = BusinessUser(
            user_id=str(uuid.uuid4()),
            business_name=data['business_name'],
            name=data['name'],
            email=data['email'],
            contact_no=data['contact_no'],
            business_type=BusinessType(data['business_type']),
            address=data['address'],
            password_hash=hash_password(data['password']),
            created_at=now,
            updated_at=now,
        )
        self.store.create(self.BUSINESS_USERS, business.user_id, business.to_dict())
        logging.info(f"Business account registered: {business.user_id} ({business.business_type.value})")
        return business, self._business_session(business)

    # --- 로그인 ---

    def authenticate(self, payload: Dict[str, Any]) -> Tuple[Account, Session]:
        """
        이메일/비밀번호를 확인하고 Session을 반환합니다.
        실패 원인(이메일 없음, 비밀번호 불일치)과 관계없이 같은 AuthenticationError를 발생시킵니다.
        """
        data = load_payload(LoginSchema(), payload)

        if data['account_type'] == AccountRole.BUSINESS.value:
            filters = [('email', '==', data['email'])]
            if data.get('business_type'):
                filters.append(('business_type', '==', data['business_type']))
            for doc in self.store.query(self.BUSINESS_USERS, filters):
                business = BusinessUser.from_dict(doc)
                if verify_password(data['password'], business.password_hash):
                    logging.info(f"Business account logged in: {business.user_id}")
                    return business, self._business_session(business)
        else:
            for doc in self.store.query(self.USERS, [('email', '==', data['email'])], limit=1):
                user = User.from_dict(doc)
                if verify_password(data['password'], user.password_hash):
                    logging.info(f"Pet owner logged in: {user.user_id}")
                    return user, Session(user_id=user.user_id, role=AccountRole.OWNER)

        logging.warning(f"Failed login attempt ({data['account_type']})")
        raise AuthenticationError()

    @staticmethod
    def _business_session(business: BusinessUser) -> Session:
        return Session(user_id=business.user_id, role=AccountRole.BUSINESS,
                       business_type=business.business_type.value)

    # --- Blocklist 관련 로직 ---

    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 저장합니다."""
        token_data = {
            'revoked_at': DateTimeUtils.now(),
            'expires_at': expires
        }
        self.store.set(self.REVOKED_TOKENS, jti, token_data)

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        return self.store.get(self.REVOKED_TOKENS, jwt_payload['jti']) is not None

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
        logging.info(f"User logged out. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")
