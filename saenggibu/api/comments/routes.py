# saenggibu/api/comments/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from saenggibu.api.comments.schemas import CommentCreateSchema, ReplyCreateSchema, CommentResponseSchema, ReplyResponseSchema
from saenggibu.core.security import get_session_context


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/analyses/<string:record_id>/comments', methods=['GET'])
def get_comments(record_id: str):
    """
    분석 기록의 댓글 목록을 최신순으로 조회합니다.
    답글은 저장된 순서대로 댓글 아래에 한 단계 들여쓰기 되어 포함됩니다.
    """
    comment_service = current_app.services['comments']
    interaction_service = current_app.services['interactions']
    session = get_session_context()
    try:
        state = interaction_service.get_state(session.scope)
        comments = comment_service.get_thread(record_id, state.liked_comment_ids)
        if comments is None:
            return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "분석 기록을 찾을 수 없습니다."}), 404
        return jsonify({"comments": CommentResponseSchema(many=True).dump(comments)}), 200
    except Exception as e:
        logging.error(f"댓글 목록 조회 중 오류 발생 (record_id: {record_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "댓글 목록 조회 중 오류가 발생했습니다."}), 500

@comments_bp.route('/analyses/<string:record_id>/comments', methods=['POST'])
def create_comment(record_id: str):
    """
    분석 기록에 새로운 댓글을 작성합니다.
    - 성공 시, 생성된 댓글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    comment_service = current_app.services['comments']
    session = get_session_context()
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
        new_comment = comment_service.add_comment(record_id, data['content'], session.author())
        if new_comment is None:
            return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "분석 기록을 찾을 수 없습니다."}), 404
        return jsonify(CommentResponseSchema().dump(new_comment)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"댓글 생성 중 오류 발생 (record_id: {record_id}): {e}", exc_info=True)
        return jsonify({"error_code": "COMMENT_CREATION_FAILED", "message": "댓글 생성 중 오류가 발생했습니다."}), 500

@comments_bp.route('/analyses/<string:record_id>/comments/<string:comment_id>/replies', methods=['POST'])
def create_reply(record_id: str, comment_id: str):
    """
    댓글에 답글을 작성합니다.
    - parent_reply_id를 보내면 해당 답글에 대한 답글로 저장됩니다 (저장 구조는 평평한 목록).
    """
    comment_service = current_app.services['comments']
    session = get_session_context()
    try:
        data = ReplyCreateSchema().load(request.get_json(silent=True) or {})
        if data['parent_reply_id']:
            new_reply = comment_service.add_nested_reply(
                record_id, comment_id, data['parent_reply_id'], data['content'], session.author()
            )
        else:
            new_reply = comment_service.add_reply(record_id, comment_id, data['content'], session.author())
        if new_reply is None:
            return jsonify({"error_code": "RESOURCE_NOT_FOUND", "message": "분석 기록, 댓글 또는 부모 답글을 찾을 수 없습니다."}), 404
        return jsonify(ReplyResponseSchema().dump(new_reply)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"답글 생성 중 오류 발생 (comment_id: {comment_id}): {e}", exc_info=True)
        return jsonify({"error_code": "REPLY_CREATION_FAILED", "message": "답글 생성 중 오류가 발생했습니다."}), 500
