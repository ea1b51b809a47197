# petbiz/core/errors.py
"""
서비스 계층 전체에서 사용하는 도메인 예외 정의.

모든 예외는 안정적인 error_code와 HTTP 상태 코드를 가지며,
라우트와 전역 에러 핸들러는 이 값을 그대로 응답에 사용합니다.
"""
from typing import Any, Dict, Optional

from marshmallow import ValidationError as MarshmallowValidationError


class PetBizError(Exception):
    """모든 도메인 예외의 기반 클래스."""
    error_code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    retryable = False
    default_message = "서버 내부에서 예상치 못한 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error_code": self.error_code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        if self.retryable:
            payload["retryable"] = True
        return payload


class ValidationError(PetBizError):
    """필수 값 누락 또는 형식 오류. 재시도하지 않습니다."""
    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "입력값 유효성 검사에 실패했습니다."


class InvalidTransitionError(PetBizError):
    """허용되지 않는 예약 상태 또는 결제 상태 전이."""
    error_code = "INVALID_TRANSITION"
    status_code = 409
    default_message = "허용되지 않는 상태 변경입니다."


class PreconditionError(PetBizError):
    """현재 상태에서는 수행할 수 없는 작업."""
    error_code = "PRECONDITION_FAILED"
    status_code = 409
    default_message = "현재 상태에서는 요청한 작업을 수행할 수 없습니다."


class NotFoundError(PetBizError):
    """요청자의 범위 안에서 대상을 찾을 수 없음."""
    error_code = "NOT_FOUND"
    status_code = 404
    default_message = "요청한 대상을 찾을 수 없습니다."


class AuthenticationError(PetBizError):
    error_code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "이메일 또는 비밀번호가 올바르지 않습니다."


class ForbiddenError(PetBizError):
    error_code = "FORBIDDEN"
    status_code = 403
    default_message = "요청한 작업을 수행할 권한이 없습니다."


class ConflictError(PetBizError):
    error_code = "CONFLICT"
    status_code = 409
    default_message = "이미 존재하는 데이터입니다."


class StoreUnavailableError(PetBizError):
    """저장소에 연결할 수 없거나 응답 시간이 초과됨. 호출자가 재시도할 수 있습니다."""
    error_code = "STORE_UNAVAILABLE"
    status_code = 503
    retryable = True
    default_message = "일시적으로 서비스를 이용할 수 없습니다. 잠시 후 다시 시도해주세요."


def load_payload(schema, data, partial: bool = False) -> Dict[str, Any]:
    """
    marshmallow 스키마로 요청 데이터를 검증합니다.
    스키마 오류는 필드별 상세 정보를 담은 도메인 ValidationError로 변환됩니다.
    """
    if data is None:
        raise ValidationError("요청 본문이 비어있거나 JSON 형식이 아닙니다.")
    try:
        return schema.load(data, partial=partial)
    except MarshmallowValidationError as err:
        raise ValidationError(details=err.messages) from err
