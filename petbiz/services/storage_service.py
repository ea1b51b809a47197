# petbiz/services/storage_service.py
import uuid
import logging
from datetime import timedelta
from flask import Flask
from firebase_admin import storage


class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 범용 서비스 클래스입니다.
    진료 문서(처방전, 영수증, 보고서) 업로드용 Pre-signed URL 발급과 공개 URL 전환을 제공합니다.
    """

    # 업로드 목적별 저장 경로
    PATH_MAP = {
        "booking_document": "booking_documents/{user_id}",
    }

    def __init__(self):
        """실제 버킷 객체는 init_app 메서드를 통해 주입됩니다."""
        self.bucket = None

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Firebase Storage bucket initialized.")

    def generate_upload_url(self, user_id: str, upload_type: str, filename: str, content_type: str) -> dict:
        """
        업로드 목적에 맞는 경로로 직접 업로드할 수 있는 Pre-signed URL을 생성합니다.

        :param user_id: 현재 로그인된 계정 ID
        :param upload_type: 업로드 목적 (현재는 "booking_document")
        :param filename: 원본 파일명 (확장자 파악에 사용)
        :param content_type: 업로드할 파일의 MIME 타입
        :return: 업로드 URL과 서버에서 사용할 파일 경로
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        folder_template = self.PATH_MAP.get(upload_type)
        if not folder_template:
            raise ValueError(f"'{upload_type}'은(는) 유효한 업로드 타입이 아닙니다.")

        extension = filename.split('.')[-1] if '.' in filename else ''
        unique_filename = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        destination_blob_name = f"{folder_template.format(user_id=user_id)}/{unique_filename}"

        blob = self.bucket.blob(destination_blob_name)

        # 15분 동안 유효한 업로드 전용 URL
        upload_url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=15),
            method="PUT",
            content_type=content_type
        )

        return {
            "upload_url": upload_url,
            "file_path": destination_blob_name
        }

    def make_public_and_get_url(self, file_path: str) -> str:
        """
        지정된 파일을 공개로 설정하고 해당 URL을 반환합니다.
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        blob = self.bucket.blob(file_path)

        if not blob.exists():
            raise FileNotFoundError(f"파일을 찾을 수 없습니다: {file_path}")

        try:
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logging.error(f"Failed to make blob public ({file_path}): {e}", exc_info=True)
            raise
