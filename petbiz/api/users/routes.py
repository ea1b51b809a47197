# petbiz/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from petbiz.core.errors import PetBizError
from petbiz.core.security import current_session, business_required, owner_required
from .schemas import (
    UserProfileResponseSchema,
    BusinessProfileResponseSchema,
    PetProfileResponseSchema,
)

users_bp = Blueprint('users_bp', __name__)


def _public_user(user):
    data = user.to_dict()
    data.pop('password_hash', None)
    return data


@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_profile():
    """로그인한 계정의 프로필. 계정 종류에 따라 응답 형태가 다릅니다."""
    user_service = current_app.services['users']
    session = current_session()
    try:
        if session.is_business:
            business = user_service.get_business_user(session.user_id)
            return jsonify(BusinessProfileResponseSchema().dump(_public_user(business))), 200
        user = user_service.get_user(session.user_id)
        return jsonify(UserProfileResponseSchema().dump(_public_user(user))), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Get my profile API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "프로필 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/me', methods=['PATCH'])
@owner_required
def update_my_profile():
    user_service = current_app.services['users']
    try:
        user = user_service.update_profile(current_session().user_id, request.get_json(silent=True))
        return jsonify(UserProfileResponseSchema().dump(_public_user(user))), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update my profile API error: {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "프로필 수정 중 오류가 발생했습니다."}), 500


@users_bp.route('/business/me', methods=['GET'])
@business_required
def get_my_business_profile():
    user_service = current_app.services['users']
    try:
        business = user_service.get_business_user(current_session().user_id)
        return jsonify(BusinessProfileResponseSchema().dump(_public_user(business))), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Get business profile API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "사업자 프로필 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/business/me', methods=['PATCH'])
@business_required
def update_my_business_profile():
    """[사업자 전용] 상호, 연락처, 주소, 24시간 응급 대응 여부 등을 수정합니다."""
    user_service = current_app.services['users']
    try:
        business = user_service.update_business_profile(current_session().user_id, request.get_json(silent=True))
        return jsonify(BusinessProfileResponseSchema().dump(_public_user(business))), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update business profile API error: {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "사업자 프로필 수정 중 오류가 발생했습니다."}), 500


@users_bp.route('/me/pets', methods=['GET'])
@owner_required
def list_my_pets():
    user_service = current_app.services['users']
    try:
        pets = user_service.list_pets(current_session().user_id)
        return jsonify(PetProfileResponseSchema(many=True).dump(pets)), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"List pets API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "반려동물 목록 조회 중 오류가 발생했습니다."}), 500


@users_bp.route('/me/pets', methods=['POST'])
@owner_required
def add_my_pet():
    user_service = current_app.services['users']
    try:
        pet = user_service.add_pet(current_session().user_id, request.get_json(silent=True))
        return jsonify(PetProfileResponseSchema().dump(pet)), 201
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Add pet API error: {e}", exc_info=True)
        return jsonify({"error_code": "PET_REGISTRATION_FAILED", "message": "반려동물 등록 중 오류가 발생했습니다."}), 500


@users_bp.route('/me/pets/<string:pet_id>', methods=['PATCH'])
@owner_required
def update_my_pet(pet_id: str):
    user_service = current_app.services['users']
    try:
        pet = user_service.update_pet(current_session().user_id, pet_id, request.get_json(silent=True))
        return jsonify(PetProfileResponseSchema().dump(pet)), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update pet API error (pet_id: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "반려동물 정보 수정 중 오류가 발생했습니다."}), 500


@users_bp.route('/me/pets/<string:pet_id>', methods=['DELETE'])
@owner_required
def remove_my_pet(pet_id: str):
    user_service = current_app.services['users']
    try:
        user_service.remove_pet(current_session().user_id, pet_id)
        return jsonify({"message": "반려동물이 삭제되었습니다."}), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Remove pet API error (pet_id: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "DELETE_FAILED", "message": "반려동물 삭제 중 오류가 발생했습니다."}), 500
