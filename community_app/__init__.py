# community_app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from community_app.core.config import config_by_name

# - API 블루프린트
from community_app.api.auth.routes import auth_bp
from community_app.api.communities.routes import communities_bp
from community_app.api.posts.routes import posts_bp
from community_app.api.timeline.routes import timeline_bp
from community_app.api.tags.routes import tags_bp
from community_app.api.users.routes import users_bp, me_bp

# - 서비스 모듈
from community_app.services.firestore_service import FirestoreDocumentStore
from community_app.services.identity_service import IdentityService
from community_app.services.session_service import SessionRegistry
from community_app.engine.toggle_store import ToggleFailedError
from community_app.api.auth.services import AuthService
from community_app.api.users.services import UserService
from community_app.api.communities.services import CommunityService
from community_app.api.posts.services import PostService
from community_app.api.timeline.services import TimelineService
from community_app.api.tags.services import TagService

def create_app(config_name=None, document_store=None, identity_service=None, live_updates=True):
    """
    Flask 애플리케이션 팩토리 함수.

    document_store / identity_service를 넘기면 Firebase 초기화를 건너뛰고 그것을 사용합니다
    (테스트에서 인메모리 저장소를 주입할 때).
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt_manager = JWTManager(app)

    if document_store is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)
        document_store = FirestoreDocumentStore()
        document_store.init_app(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용/핵심 서비스 먼저 생성
    app.services['store'] = document_store

    if identity_service is None:
        identity_service = IdentityService()
    identity_service.init_app(app)
    app.services['identity'] = identity_service

    sessions = SessionRegistry()
    sessions.init_app(app, document_store)
    app.services['sessions'] = sessions

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    auth_service = AuthService()
    auth_service.init_app(app, document_store)
    app.services['auth'] = auth_service

    user_service = UserService()
    user_service.init_app(app, document_store)
    app.services['users'] = user_service

    community_service = CommunityService(sessions=sessions, user_service=user_service)
    community_service.init_app(app, document_store)
    app.services['communities'] = community_service

    post_service = PostService(sessions=sessions, community_service=community_service)
    post_service.init_app(app, document_store)
    app.services['posts'] = post_service

    timeline_service = TimelineService()
    timeline_service.init_app(app, document_store)
    app.services['timeline'] = timeline_service

    tag_service = TagService()
    tag_service.init_app(app, document_store)
    app.services['tags'] = tag_service

    if live_updates:
        try:
            community_service.start_live_updates()
        except Exception as e:
            # 감시를 못 열어도 목록은 요청마다 다시 읽어서 동작합니다.
            logging.warning(f"커뮤니티 목록 실시간 감시 시작 실패: {e}")

    # 무효화된 토큰(로그아웃)인지 확인하는 콜백
    @jwt_manager.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(communities_bp, url_prefix='/api/communities')
    app.register_blueprint(posts_bp, url_prefix='/api/communities/<string:community_id>/posts')
    app.register_blueprint(timeline_bp, url_prefix='/api/timeline')
    app.register_blueprint(tags_bp, url_prefix='/api/tags')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(me_bp, url_prefix='/api/me')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(ToggleFailedError)
    def handle_toggle_failed(err):
        # 로컬 상태는 이미 롤백된 상태입니다. 재시도는 사용자가 다시 누르는 것으로만.
        response = {"error_code": "TOGGLE_FAILED", "message": "更新に失敗しました"}
        return jsonify(response), 503

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "サーバー内部で予期しないエラーが発生しました。"}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
