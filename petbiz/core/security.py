# petbiz/core/security.py
"""
인증 관련 공용 도구.

전역 상태 대신 요청마다 검증된 JWT로부터 Session 객체를 만들어
서비스 계층에 명시적으로 전달합니다.
"""
from dataclasses import dataclass
from functools import wraps
from typing import Optional, Dict, Any

from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from werkzeug.security import generate_password_hash, check_password_hash

from petbiz.core.errors import ForbiddenError
from petbiz.models.user import AccountRole


@dataclass(frozen=True)
class Session:
    """요청 단위로 생성되는 인증 세션."""
    user_id: str
    role: AccountRole
    business_type: Optional[str] = None

    @property
    def is_business(self) -> bool:
        return self.role == AccountRole.BUSINESS

    @property
    def is_owner(self) -> bool:
        return self.role == AccountRole.OWNER

    def token_claims(self) -> Dict[str, Any]:
        """액세스 토큰에 담을 추가 클레임."""
        return {"role": self.role.value, "business_type": self.business_type}


def current_session() -> Session:
    """현재 요청의 JWT에서 Session을 생성합니다. jwt_required 이후에 호출해야 합니다."""
    claims = get_jwt()
    return Session(
        user_id=get_jwt_identity(),
        role=AccountRole(claims.get("role", AccountRole.OWNER.value)),
        business_type=claims.get("business_type"),
    )


def business_required(fn):
    """사업자 계정 토큰만 허용하는 데코레이터."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not current_session().is_business:
            raise ForbiddenError("사업자 계정만 사용할 수 있는 기능입니다.")
        return fn(*args, **kwargs)
    return wrapper


def owner_required(fn):
    """반려인 계정 토큰만 허용하는 데코레이터."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not current_session().is_owner:
            raise ForbiddenError("반려인 계정만 사용할 수 있는 기능입니다.")
        return fn(*args, **kwargs)
    return wrapper


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)
