# saenggibu/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import atexit
import logging
from datetime import timedelta
from typing import Optional
from flask import Flask, jsonify
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

# - 설정
from saenggibu.core.config import config_by_name

# - API 블루프린트
from saenggibu.api.explore.routes import explore_bp
from saenggibu.api.interactions.routes import interactions_bp
from saenggibu.api.comments.routes import comments_bp
from saenggibu.api.records.routes import records_bp

# - 서비스 모듈
from saenggibu.services.kv_store import KeyValueStore, create_store
from saenggibu.services.record_store import RecordStore
from saenggibu.services.interaction_store import InteractionStore
from saenggibu.api.interactions.services import InteractionService
from saenggibu.api.explore.services import FeedService
from saenggibu.api.comments.services import CommentService

def create_app(config_name: Optional[str] = None, store: Optional[KeyValueStore] = None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' 또는 'testing'. 없으면 FLASK_ENV 값을 사용합니다.
    :param store: 주입할 키-값 저장소. 없으면 설정(STORAGE_PATH)에 따라 생성합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 초기화
    # =====================================================================================
    JWTManager(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 모든 서비스가 공유하는 저장소를 먼저 연다
    try:
        store_instance = store or create_store(app.config)
        store_instance.open()
        atexit.register(store_instance.close)
        app.services['store'] = store_instance
        logging.info(f"Storage initialized successfully ({type(store_instance).__name__})")
    except Exception as e:
        logging.error(f"Failed to initialize storage: {e}")
        raise

    # 5-2. 저장소를 주입받는 도메인 서비스 생성
    app.services['records'] = RecordStore(
        store_instance,
        agents_key=app.config['AGENTS_KEY'],
        analyses_key=app.config['ANALYSES_KEY']
    )
    interaction_store = InteractionStore(store_instance, key=app.config['INTERACTION_KEY'])
    app.services['interactions'] = InteractionService(
        record_store=app.services['records'],
        interaction_store=interaction_store
    )
    app.services['feed'] = FeedService(
        record_store=app.services['records'],
        interaction_store=interaction_store,
        trending_window=timedelta(hours=app.config['TRENDING_WINDOW_HOURS']),
        trending_limit=app.config['TRENDING_LIMIT'],
        recommendation_limit=app.config['RECOMMENDATION_LIMIT']
    )
    app.services['comments'] = CommentService(record_store=app.services['records'])

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(explore_bp, url_prefix='/api/explore')
    app.register_blueprint(interactions_bp, url_prefix='/api/interactions')
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(records_bp, url_prefix='/api/records')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        # 404, 405 등은 원래 상태 코드를 그대로 돌려준다
        response = {"error_code": err.name.upper().replace(' ', '_'), "message": err.description}
        return jsonify(response), err.code

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
