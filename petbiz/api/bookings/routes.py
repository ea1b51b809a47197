# petbiz/api/bookings/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from petbiz.core.errors import PetBizError, PreconditionError, load_payload
from petbiz.core.security import current_session, business_required
from petbiz.models.booking import BookingStatus
from .schemas import (
    BookingResponseSchema,
    BookingQuerySchema,
    StatusUpdateSchema,
    CancelSchema,
    PaymentStatusSchema,
    ChargesUpdateSchema,
    DocumentAttachSchema,
)

bookings_bp = Blueprint('bookings_bp', __name__)


def _booking_json(booking, status_code: int = 200):
    return jsonify(BookingResponseSchema().dump(booking.to_dict())), status_code


@bookings_bp.route('/', methods=['POST'])
@jwt_required()
def create_booking():
    """예약 생성 API. 반려인은 vet_id로, 사업자는 pet_owner_id로 방문 접수 예약을 만듭니다."""
    booking_service = current_app.services['bookings']
    try:
        booking = booking_service.create_booking(current_session(), request.get_json(silent=True))
        return _booking_json(booking, 201)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Create booking API error: {e}", exc_info=True)
        return jsonify({"error_code": "BOOKING_CREATION_FAILED", "message": "예약 생성 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/', methods=['GET'])
@jwt_required()
def list_bookings():
    """
    예약 목록 조회 API.
    사업자는 캘린더(날짜/시간 순), 반려인은 이력(최신순)을 받습니다.
    """
    booking_service = current_app.services['bookings']
    session = current_session()
    try:
        query = load_payload(BookingQuerySchema(), request.args)
        if session.is_business:
            bookings = booking_service.list_for_provider(
                session, on_date=query.get('date'), status=query.get('status'), limit=query.get('limit'))
        else:
            bookings = booking_service.list_for_owner(
                session, status=query.get('status'), limit=query.get('limit'))
        return jsonify(BookingResponseSchema(many=True).dump([b.to_dict() for b in bookings])), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"List bookings API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "예약 목록 조회 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/upcoming', methods=['GET'])
@business_required
def list_upcoming_bookings():
    """[사업자 전용] 오늘부터 N일(기본 7일) 이내의 진행 예정 예약."""
    booking_service = current_app.services['bookings']
    try:
        days = request.args.get('days', type=int)
        bookings = booking_service.list_upcoming(current_session(), days=days)
        return jsonify(BookingResponseSchema(many=True).dump([b.to_dict() for b in bookings])), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"List upcoming bookings API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "예정된 예약 조회 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>', methods=['GET'])
@jwt_required()
def get_booking(booking_id: str):
    booking_service = current_app.services['bookings']
    try:
        return _booking_json(booking_service.get_booking(current_session(), booking_id))
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Get booking API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "예약 조회 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/status', methods=['PATCH'])
@jwt_required()
def update_booking_status(booking_id: str):
    """[담당 사업자 전용] 예약 상태를 다음 단계로 변경합니다."""
    booking_service = current_app.services['bookings']
    try:
        data = load_payload(StatusUpdateSchema(), request.get_json(silent=True))
        booking = booking_service.advance(current_session(), booking_id, data['status'])
        return _booking_json(booking)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update booking status API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "예약 상태 변경 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/complete', methods=['PATCH'])
@jwt_required()
def complete_booking(booking_id: str):
    """[담당 사업자 전용] 진료 완료 기록(진단, 처치, 처방, 재진)을 남깁니다."""
    booking_service = current_app.services['bookings']
    try:
        booking = booking_service.complete(current_session(), booking_id, request.get_json(silent=True) or {})
        return _booking_json(booking)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Complete booking API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "진료 완료 처리 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/cancel', methods=['POST'])
@jwt_required()
def cancel_booking(booking_id: str):
    """예약 취소 API. 반려인과 담당 사업자 모두 호출할 수 있습니다."""
    booking_service = current_app.services['bookings']
    try:
        data = load_payload(CancelSchema(), request.get_json(silent=True) or {})
        booking = booking_service.cancel(current_session(), booking_id, data.get('reason'))
        return _booking_json(booking)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Cancel booking API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "예약 취소 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/payment', methods=['PATCH'])
@jwt_required()
def update_payment_status(booking_id: str):
    booking_service = current_app.services['bookings']
    try:
        data = load_payload(PaymentStatusSchema(), request.get_json(silent=True))
        booking = booking_service.set_payment_status(current_session(), booking_id, data['payment_status'])
        return _booking_json(booking)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update payment status API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "결제 상태 변경 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/charges', methods=['PATCH'])
@jwt_required()
def update_charges(booking_id: str):
    booking_service = current_app.services['bookings']
    try:
        data = load_payload(ChargesUpdateSchema(), request.get_json(silent=True))
        booking = booking_service.update_charges(current_session(), booking_id, data['additional_charges'])
        return _booking_json(booking)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update charges API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "추가 요금 변경 중 오류가 발생했습니다."}), 500


@bookings_bp.route('/<string:booking_id>/documents', methods=['POST'])
@business_required
def attach_document(booking_id: str):
    """
    [담당 사업자 전용] 업로드가 끝난 파일을 완료 기록에 첨부합니다.
    클라이언트는 /api/uploads/url에서 받은 file_path를 전달합니다.
    """
    booking_service = current_app.services['bookings']
    storage_service = current_app.services['storage']
    session = current_session()
    try:
        data = load_payload(DocumentAttachSchema(), request.get_json(silent=True))
        # 업로드 경로는 본인 계정 폴더만 허용
        if not data['file_path'].startswith(f"booking_documents/{session.user_id}/"):
            return jsonify({"error_code": "FORBIDDEN", "message": "본인이 업로드한 파일만 첨부할 수 있습니다."}), 403

        # 권한과 상태를 먼저 확인한 뒤 파일을 공개
        booking = booking_service.get_booking(session, booking_id)
        if booking.status != BookingStatus.COMPLETED:
            raise PreconditionError("완료된 예약에만 문서를 첨부할 수 있습니다.")
        public_url = storage_service.make_public_and_get_url(data['file_path'])
        booking = booking_service.add_document(session, booking_id, data['type'], public_url)
        return _booking_json(booking, 201)
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except FileNotFoundError as e:
        return jsonify({"error_code": "FILE_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"Attach document API error (booking_id: {booking_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "문서 첨부 중 오류가 발생했습니다."}), 500
