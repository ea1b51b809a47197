# petbiz/api/catalog/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from petbiz.core.errors import PetBizError
from petbiz.core.security import current_session, business_required
from .schemas import ServiceResponseSchema

catalog_bp = Blueprint('catalog_bp', __name__)


@catalog_bp.route('/', methods=['GET'])
@business_required
def list_my_services():
    """[사업자 전용] 내 서비스 카탈로그 전체 조회."""
    catalog_service = current_app.services['catalog']
    try:
        services = catalog_service.list_services(current_session())
        return jsonify(ServiceResponseSchema(many=True).dump([s.to_dict() for s in services])), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"List services API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "서비스 목록 조회 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/business/<string:business_id>', methods=['GET'])
@jwt_required()
def list_business_services(business_id: str):
    """예약 화면에서 사용할 특정 사업자의 활성 서비스 목록."""
    catalog_service = current_app.services['catalog']
    try:
        services = catalog_service.list_active(business_id)
        return jsonify(ServiceResponseSchema(many=True).dump([s.to_dict() for s in services])), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"List business services API error (business_id: {business_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "서비스 목록 조회 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/', methods=['POST'])
@business_required
def create_service():
    catalog_service = current_app.services['catalog']
    try:
        service = catalog_service.create_service(current_session(), request.get_json(silent=True))
        return jsonify(ServiceResponseSchema().dump(service.to_dict())), 201
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Create service API error: {e}", exc_info=True)
        return jsonify({"error_code": "SERVICE_CREATION_FAILED", "message": "서비스 생성 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/<string:service_id>', methods=['GET'])
@business_required
def get_service(service_id: str):
    catalog_service = current_app.services['catalog']
    try:
        service = catalog_service.get_service(current_session().user_id, service_id)
        return jsonify(ServiceResponseSchema().dump(service.to_dict())), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Get service API error (service_id: {service_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "서비스 조회 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/<string:service_id>', methods=['PUT', 'PATCH'])
@business_required
def update_service(service_id: str):
    """서비스 정보 수정 (부분 업데이트)."""
    catalog_service = current_app.services['catalog']
    try:
        service = catalog_service.update_service(current_session(), service_id, request.get_json(silent=True))
        return jsonify(ServiceResponseSchema().dump(service.to_dict())), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update service API error (service_id: {service_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "서비스 수정 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/<string:service_id>/toggle', methods=['PATCH'])
@business_required
def toggle_service(service_id: str):
    catalog_service = current_app.services['catalog']
    try:
        service = catalog_service.toggle_active(current_session(), service_id)
        if service is None:
            return jsonify({"error_code": "NOT_FOUND", "message": "서비스를 찾을 수 없습니다."}), 404
        return jsonify(ServiceResponseSchema().dump(service.to_dict())), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Toggle service API error (service_id: {service_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "서비스 상태 변경 중 오류가 발생했습니다."}), 500


@catalog_bp.route('/<string:service_id>', methods=['DELETE'])
@business_required
def delete_service(service_id: str):
    catalog_service = current_app.services['catalog']
    try:
        if not catalog_service.delete_service(current_session(), service_id):
            return jsonify({"error_code": "NOT_FOUND", "message": "서비스를 찾을 수 없습니다."}), 404
        return jsonify({"message": "서비스가 삭제되었습니다."}), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Delete service API error (service_id: {service_id}): {e}", exc_info=True)
        return jsonify({"error_code": "DELETE_FAILED", "message": "서비스 삭제 중 오류가 발생했습니다."}), 500
