# tstar_feed/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import atexit
import os
import logging
import weakref
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

# - 설정
from tstar_feed.core.config import config_by_name
from tstar_feed.core.context import CloudContext
from tstar_feed.core.errors import AuthenticationError, ConfigurationError, ContentRejectedError

# - API 블루프린트
from tstar_feed.api.auth.routes import auth_bp
from tstar_feed.api.posts.routes import posts_bp
from tstar_feed.api.comments.routes import comments_bp
from tstar_feed.api.moderation.routes import moderation_bp

# - 서비스 모듈
from tstar_feed.api.auth.services import CloudAuthProvider, LocalAuthProvider
from tstar_feed.api.posts.services import FeedCoordinator, FeedMode
from tstar_feed.services.cloud_feed import CloudFeedRepository
from tstar_feed.services.kv_store import KeyValueStore
from tstar_feed.services.local_feed import LocalFeedRepository
from tstar_feed.services.moderation import ModerationStore
from tstar_feed.services.storage_service import BlobStorageService
from tstar_feed.utils.content_filter import parse_word_list

# 살아 있는 앱들의 종료 함수. 프로세스 종료 시 한 번에 정리합니다.
_shutdown_hooks = weakref.WeakSet()

@atexit.register
def _shutdown_all():
    for hook in list(_shutdown_hooks):
        hook()

def create_app(config_overrides=None):
    """
    Flask 애플리케이션 팩토리 함수.
    :param config_overrides: 설정 클래스 값을 덮어쓸 dict (테스트용)
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = os.getenv('FLASK_ENV', 'development')

    if config_name not in config_by_name:
        raise ConfigurationError(f"알 수 없는 FLASK_ENV 값입니다: {config_name}", details={"allowed": sorted(config_by_name)})

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if config_overrides:
        app.config.update(config_overrides)
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 백엔드 선택 (프로세스 시작 시 한 번만 결정)
    # =====================================================================================
    # Firebase 설정이 없거나 초기화에 실패하면 None -> 로컬 모드
    cloud_context = CloudContext.try_initialize(app.config)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 로컬 저장소는 모드와 관계없이 항상 생성 (폴백, 신고/차단 용도)
    store = KeyValueStore(app.config['LOCAL_STORE_DIR'])
    local_repository = LocalFeedRepository(store)
    app.services['store'] = store
    app.services['local_feed'] = local_repository
    app.services['moderation'] = ModerationStore(store)
    app.services['cloud_context'] = cloud_context

    # 5-2. 모드에 따른 저장소/인증 서비스
    if cloud_context is not None:
        mode = FeedMode.CLOUD
        repository = CloudFeedRepository(cloud_context.db, BlobStorageService(cloud_context.bucket))
        auth_provider = CloudAuthProvider(cloud_context)
    else:
        mode = FeedMode.LOCAL
        repository = local_repository
        auth_provider = LocalAuthProvider(store)

    feed = FeedCoordinator(
        repository=repository,
        local=local_repository,
        moderation=app.services['moderation'],
        auth=auth_provider,
        mode=mode,
        disallowed_words=parse_word_list(app.config.get('DISALLOWED_WORDS')),
    )
    feed.start()
    app.services['feed'] = feed
    logging.info(f"Feed service initialized (mode: {mode.value})")

    def _shutdown():
        _shutdown_hooks.discard(_shutdown)
        feed.close()
        if cloud_context is not None:
            cloud_context.dispose()
    app.shutdown = _shutdown
    _shutdown_hooks.add(_shutdown)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(moderation_bp, url_prefix='/api/moderation')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(ContentRejectedError)
    def handle_content_rejected(err):
        return jsonify(err.to_dict()), 400

    @app.errorhandler(AuthenticationError)
    def handle_authentication_error(err):
        return jsonify(err.to_dict()), 401

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"error_code": err.name.upper().replace(' ', '_'), "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
