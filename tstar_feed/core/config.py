# tstar_feed/core/config.py

import os
import tempfile
from pathlib import Path

# 로컬 모드 저장소 기본 위치. LOCAL_STORE_DIR 환경 변수로 변경할 수 있습니다.
_DEFAULT_STORE_DIR = Path(tempfile.gettempdir()) / "tstar-feed-runtime"

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # 'auto': Firebase 설정이 있으면 클라우드 모드, 'local': 항상 로컬 모드
    FEED_BACKEND = os.getenv('FEED_BACKEND', 'auto')

    # Firebase 서비스 계정 키, Storage 버킷, 비밀번호 로그인용 Web API 키
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')

    LOCAL_STORE_DIR = os.getenv('LOCAL_STORE_DIR', str(_DEFAULT_STORE_DIR))

    # 쉼표로 구분된 추가 금칙어
    DISALLOWED_WORDS = os.getenv('DISALLOWED_WORDS', '')

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. 클라우드 백엔드를 사용하지 않습니다."""
    TESTING = True
    DEBUG = False
    FEED_BACKEND = 'local'

# create_app에서 FLASK_ENV 값에 따라 설정 클래스를 선택할 때 사용합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig
)
