# tstar_feed/core/context.py
import logging
import os
import uuid
from typing import Any, Mapping, Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage

from tstar_feed.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

BACKENDS = ("auto", "local")


class CloudContext:
    """
    클라우드 백엔드 핸들(Firebase 앱, Firestore 클라이언트, Storage 버킷)을 묶는 객체.
    프로세스 시작 시 한 번 생성되어 클라우드 저장소/인증/업로드 서비스에 명시적으로 주입되며,
    종료 시 dispose()로 Firebase 앱을 해제합니다.
    """

    def __init__(self, app: Any, db: Any, bucket: Any, web_api_key: Optional[str] = None):
        self.app = app
        self.db = db
        self.bucket = bucket
        self.web_api_key = web_api_key
        self._disposed = False

    @classmethod
    def try_initialize(cls, config: Mapping[str, Any]) -> Optional["CloudContext"]:
        """
        설정이 유효하고 Firebase 초기화가 성공하면 CloudContext를, 아니면 None을 반환합니다.
        None이면 프로세스 전체가 로컬 모드로 동작합니다. 이 판단은 다시 수행되지 않습니다.
        """
        backend = (config.get('FEED_BACKEND') or 'auto').lower()
        if backend not in BACKENDS:
            raise ConfigurationError(f"FEED_BACKEND 값이 올바르지 않습니다: {backend}", details={"allowed": list(BACKENDS)})
        if backend == 'local':
            logger.info("FEED_BACKEND=local: 클라우드 백엔드를 사용하지 않습니다.")
            return None

        cred_path = config.get('FIREBASE_CREDENTIALS_PATH')
        bucket_name = config.get('FIREBASE_STORAGE_BUCKET')
        if not cred_path or not bucket_name:
            logger.info("Firebase 설정이 없어 로컬 모드로 실행합니다.")
            return None

        app = None
        try:
            if not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            app = firebase_admin.initialize_app(
                cred,
                {'storageBucket': bucket_name},
                name=f"tstar-feed-{uuid.uuid4().hex[:8]}",
            )
            db = firestore.client(app)
            bucket = storage.bucket(bucket_name, app=app)
        except Exception as e:
            logger.warning(f"Firebase 초기화 실패, 로컬 모드로 실행합니다: {e}", exc_info=True)
            if app is not None:
                firebase_admin.delete_app(app)
            return None

        logger.info(f"Firebase 초기화 성공 (app: {app.name}, bucket: {bucket_name})")
        return cls(app, db, bucket, config.get('FIREBASE_WEB_API_KEY'))

    def dispose(self) -> None:
        """Firebase 앱을 해제합니다. 여러 번 호출해도 안전합니다."""
        if self._disposed:
            return
        self._disposed = True
        try:
            firebase_admin.delete_app(self.app)
            logger.info("Firebase 앱 해제 완료")
        except ValueError as e:
            logger.warning(f"Firebase 앱 해제 실패: {e}")
