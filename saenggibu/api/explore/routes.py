# saenggibu/api/explore/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from saenggibu.api.explore.schemas import (
    FeedQuerySchema, RecommendQuerySchema, VisibilityUpdateSchema, SessionResponseSchema, RESPONSE_SCHEMAS
)
from saenggibu.core.security import get_session_context, member_required
from saenggibu.services.record_store import Collection


explore_bp = Blueprint('explore_bp', __name__)

COLLECTION_PATH = '<any(agents, analyses):collection>'

@explore_bp.route('/session', methods=['GET'])
def get_session():
    """현재 세션 정보와 회원 전용 기능 사용 가능 여부를 반환합니다."""
    session = get_session_context()
    return jsonify(SessionResponseSchema().dump({
        "current_user": session.current_user,
        "is_guest": session.is_guest,
        "features": session.features()
    })), 200

@explore_bp.route(f'/{COLLECTION_PATH}', methods=['GET'])
def list_records(collection: str):
    """
    공개 레코드 목록을 탭(all/saved), 검색어, 정렬 기준(recent/popular)에 따라 조회합니다.
    - popular 정렬일 때 1위 레코드의 ID가 top_id로 함께 반환됩니다.
    """
    feed_service = current_app.services['feed']
    session = get_session_context()
    try:
        params = FeedQuerySchema().load(request.args)
        records, top_id = feed_service.list_and_filter(
            tab=params['tab'], query=params['q'], sort_by=params['sort'],
            collection=Collection(collection), scope=session.scope
        )
        return jsonify({
            "records": RESPONSE_SCHEMAS[collection](many=True).dump(records),
            "top_id": top_id,
            "count": len(records)
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"피드 목록 조회 중 오류 발생 (collection: {collection}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "목록 조회 중 오류가 발생했습니다."}), 500

@explore_bp.route(f'/{COLLECTION_PATH}/trending', methods=['GET'])
def get_trending(collection: str):
    """최근 24시간 안에 올라온 공개 레코드 중 좋아요가 많은 순으로 최대 3개를 반환합니다."""
    feed_service = current_app.services['feed']
    session = get_session_context()
    try:
        records = feed_service.trending(collection=Collection(collection), scope=session.scope)
        return jsonify({"records": RESPONSE_SCHEMAS[collection](many=True).dump(records)}), 200
    except Exception as e:
        logging.error(f"트렌딩 조회 중 오류 발생 (collection: {collection}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "트렌딩 조회 중 오류가 발생했습니다."}), 500

@explore_bp.route(f'/{COLLECTION_PATH}/recommended', methods=['GET'])
def get_recommended(collection: str):
    """검색어 매칭, 인기도, 최신성을 합산한 맞춤 추천 목록을 반환합니다."""
    feed_service = current_app.services['feed']
    session = get_session_context()
    try:
        params = RecommendQuerySchema().load(request.args)
        records = feed_service.recommended(query=params['q'], collection=Collection(collection), scope=session.scope)
        return jsonify({"records": RESPONSE_SCHEMAS[collection](many=True).dump(records)}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"추천 조회 중 오류 발생 (collection: {collection}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "추천 조회 중 오류가 발생했습니다."}), 500

@explore_bp.route(f'/{COLLECTION_PATH}/<string:record_id>/visibility', methods=['PATCH'])
@member_required
def update_visibility(collection: str, record_id: str):
    """
    레코드의 공개 여부를 변경합니다 (탐색 피드 공유). 회원만 사용할 수 있습니다.
    """
    record_store = current_app.services['records']
    try:
        data = VisibilityUpdateSchema().load(request.get_json(silent=True) or {})
        if not record_store.update(Collection(collection), record_id, {'is_private': data['is_private']}):
            return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "레코드를 찾을 수 없습니다."}), 404
        return jsonify({"id": record_id, "is_private": data['is_private']}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
