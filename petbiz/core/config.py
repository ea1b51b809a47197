# petbiz/core/config.py

import os
from datetime import timedelta


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    return float(value) if value else default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    return int(value) if value else default


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명에 사용되는 키. 토큰 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=_env_int('JWT_ACCESS_TOKEN_HOURS', 24))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=_env_int('JWT_REFRESH_TOKEN_DAYS', 14))

    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # 저장소 호출마다 적용되는 타임아웃(초). 초과 시 STORE_UNAVAILABLE로 응답합니다.
    FIRESTORE_TIMEOUT_SECONDS = _env_float('FIRESTORE_TIMEOUT_SECONDS', 10.0)

    BOOKING_LIST_LIMIT = _env_int('BOOKING_LIST_LIMIT', 50)
    UPCOMING_WINDOW_DAYS = _env_int('UPCOMING_WINDOW_DAYS', 7)


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. 저장소는 create_app 인자로 주입됩니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('TEST_JWT_SECRET_KEY', 'petbiz-testing-secret-key-please-change-me')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = 'petbiz-testing.appspot.com'


class ProductionConfig(Config):
    """운영 환경 설정. 디버그 모드를 끄고 환경 변수 값만 사용합니다."""
    DEBUG = False


# FLASK_ENV 값에 따라 create_app에서 적절한 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
