# petbiz/api/uploads/routes.py

import logging
from flask import request, jsonify, Blueprint, current_app
from marshmallow import Schema, fields, validate

from petbiz.core.errors import PetBizError, load_payload
from petbiz.core.security import current_session, business_required

uploads_bp = Blueprint('uploads', __name__)


class UploadUrlRequestSchema(Schema):
    upload_type = fields.Str(required=True, validate=validate.OneOf(["booking_document"]))
    filename = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    content_type = fields.Str(required=True)


@uploads_bp.route('/url', methods=['POST'])
@business_required
def get_upload_url():
    """
    진료 문서 업로드를 위한 Pre-signed URL을 발급합니다.
    클라이언트는 업로드 후 받은 file_path로 POST /api/bookings/<id>/documents를 호출합니다.
    """
    storage_service = current_app.services['storage']
    try:
        data = load_payload(UploadUrlRequestSchema(), request.get_json(silent=True))
        url_info = storage_service.generate_upload_url(
            current_session().user_id, data['upload_type'], data['filename'], data['content_type'])
        return jsonify(url_info), 200
    except PetBizError as e:
        return jsonify(e.to_dict()), e.status_code
    except ValueError as e:
        logging.warning(f"Upload URL request rejected (invalid upload type): {e}")
        return jsonify({"error_code": "INVALID_UPLOAD_TYPE", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"Pre-signed URL generation failed: {e}", exc_info=True)
        return jsonify({"error_code": "URL_GENERATION_FAILED", "message": "URL 생성 중 서버 오류가 발생했습니다."}), 500
