# petbiz/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
)

from petbiz.core.errors import PetBizError, load_payload
from petbiz.core.security import Session, current_session
from petbiz.api.auth.schemas import LogoutRequestSchema

auth_bp = Blueprint('auth_bp', __name__)


def _issue_tokens(session: Session) -> dict:
    claims = session.token_claims()
    return {
        "access_token": create_access_token(identity=session.user_id, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=session.user_id, additional_claims=claims),
        "user_id": session.user_id,
        "role": session.role.value,
        "business_type": session.business_type,
    }


@auth_bp.route('/register', methods=['POST'])
def register_owner():
    """반려인 회원가입. 가입과 동시에 토큰을 발급합니다."""
    auth_service = current_app.services['auth']
    try:
        _, session = auth_service.register_owner(request.get_json(silent=True))
        return jsonify(_issue_tokens(session)), 201
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Owner registration error: {e}", exc_info=True)
        return jsonify({"error_code": "REGISTRATION_FAILED", "message": "회원가입 처리 중 오류가 발생했습니다."}), 500


@auth_bp.route('/business/register', methods=['POST'])
def register_business():
    """사업자(수의사, 훈련사, 위탁, 산책, 보호소, 미용) 회원가입."""
    auth_service = current_app.services['auth']
    try:
        _, session = auth_service.register_business(request.get_json(silent=True))
        return jsonify(_issue_tokens(session)), 201
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Business registration error: {e}", exc_info=True)
        return jsonify({"error_code": "REGISTRATION_FAILED", "message": "회원가입 처리 중 오류가 발생했습니다."}), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    auth_service = current_app.services['auth']
    try:
        _, session = auth_service.authenticate(request.get_json(silent=True))
        return jsonify(_issue_tokens(session)), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Login error: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부 오류가 발생했습니다."}), 500


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다. 역할 클레임은 그대로 유지됩니다."""
    session = current_session()
    new_access_token = create_access_token(identity=session.user_id, additional_claims=session.token_claims())
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = load_payload(LogoutRequestSchema(), request.get_json(silent=True))

        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        # 만료된 토큰도 무효화할 수 있도록 만료 검사는 생략
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(decoded_access['jti'], decoded_access['exp'],
                                 decoded_refresh['jti'], decoded_refresh['exp'])

        return jsonify({"message": "로그아웃 되었습니다."}), 200

    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except jwt.PyJWTError as e:
        logging.warning(f"JWT decode failed during logout: {e}")
        return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
    except Exception as e:
        logging.error(f"Logout error: {e}", exc_info=True)
        return jsonify({"error_code": "LOGOUT_FAILED", "message": "로그아웃 처리 중 오류가 발생했습니다."}), 500


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    """현재 토큰의 세션 정보."""
    session = current_session()
    return jsonify({
        "user_id": session.user_id,
        "role": session.role.value,
        "business_type": session.business_type,
    }), 200
