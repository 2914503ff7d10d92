# saenggibu/api/interactions/routes.py
import logging
from flask import Blueprint, jsonify, current_app

from saenggibu.core.security import get_session_context, session_required
from saenggibu.services.record_store import Collection


interactions_bp = Blueprint('interactions_bp', __name__)

@interactions_bp.route('/me', methods=['GET'])
def get_my_interactions():
    """현재 세션의 좋아요/저장/댓글 좋아요 ID 목록을 조회합니다."""
    interaction_service = current_app.services['interactions']
    session = get_session_context()
    state = interaction_service.get_state(session.scope)
    return jsonify(state.to_blob()), 200

@interactions_bp.route('/<any(agents, analyses):collection>/<string:record_id>/like', methods=['POST'])
@session_required
def toggle_like(collection: str, record_id: str):
    """
    레코드의 좋아요를 누르거나 취소합니다.
    - 응답의 likes는 변경 후 좋아요 수입니다.
    """
    interaction_service = current_app.services['interactions']
    session = get_session_context()
    try:
        result = interaction_service.toggle_like(Collection(collection), record_id, session.scope)
        if result is None:
            return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "레코드를 찾을 수 없습니다."}), 404
        return jsonify(result), 200
    except Exception as e:
        logging.error(f"좋아요 토글 실패 (record_id: {record_id}): {e}", exc_info=True)
        return jsonify({"error_code": "LIKE_TOGGLE_FAILED", "message": "좋아요 처리 중 오류가 발생했습니다."}), 500

@interactions_bp.route('/<any(agents, analyses):collection>/<string:record_id>/save', methods=['POST'])
@session_required
def toggle_save(collection: str, record_id: str):
    """레코드를 저장하거나 저장을 취소합니다."""
    interaction_service = current_app.services['interactions']
    session = get_session_context()
    try:
        result = interaction_service.toggle_save(Collection(collection), record_id, session.scope)
        if result is None:
            return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "레코드를 찾을 수 없습니다."}), 404
        return jsonify(result), 200
    except Exception as e:
        logging.error(f"저장 토글 실패 (record_id: {record_id}): {e}", exc_info=True)
        return jsonify({"error_code": "SAVE_TOGGLE_FAILED", "message": "저장 처리 중 오류가 발생했습니다."}), 500

@interactions_bp.route('/analyses/<string:record_id>/comments/<string:comment_id>/like', methods=['POST'])
@session_required
def toggle_comment_like(record_id: str, comment_id: str):
    """특정 댓글의 좋아요를 누르거나 취소합니다."""
    interaction_service = current_app.services['interactions']
    session = get_session_context()
    try:
        result = interaction_service.toggle_comment_like(record_id, comment_id, session.scope)
        if result is None:
            return jsonify({"error_code": "COMMENT_NOT_FOUND", "message": "댓글을 찾을 수 없습니다."}), 404
        return jsonify(result), 200
    except Exception as e:
        logging.error(f"댓글 좋아요 토글 실패 (comment_id: {comment_id}): {e}", exc_info=True)
        return jsonify({"error_code": "LIKE_TOGGLE_FAILED", "message": "좋아요 처리 중 오류가 발생했습니다."}), 500
