# saenggibu/api/records/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from marshmallow import ValidationError

from saenggibu.api.explore.schemas import RESPONSE_SCHEMAS, AnalysisResponseSchema
from saenggibu.api.records.schemas import CREATE_SCHEMAS
from saenggibu.services.record_store import Collection


records_bp = Blueprint('records_bp', __name__)

@records_bp.route('/<any(agents, analyses):collection>', methods=['POST'])
def create_record(collection: str):
    """
    새 레코드를 컬렉션에 추가합니다. (업로드 파이프라인 연동용)
    - 같은 ID가 이미 있으면 409를 반환합니다.
    """
    record_store = current_app.services['records']
    try:
        record = CREATE_SCHEMAS[collection]().load(request.get_json(silent=True) or {})
        record_store.insert(Collection(collection), record)
        return jsonify(RESPONSE_SCHEMAS[collection]().dump(record)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e: # 중복 ID
        return jsonify({"error_code": "DUPLICATE_RECORD", "message": str(e)}), 409
    except Exception as e:
        logging.error(f"레코드 생성 중 오류 발생 (collection: {collection}): {e}", exc_info=True)
        return jsonify({"error_code": "RECORD_CREATION_FAILED", "message": "레코드 생성 중 오류가 발생했습니다."}), 500

@records_bp.route('/<any(agents, analyses):collection>/<string:record_id>', methods=['GET'])
def get_record(collection: str, record_id: str):
    """레코드 하나를 조회합니다."""
    record_store = current_app.services['records']
    record = record_store.get(Collection(collection), record_id)
    if record is None:
        return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "레코드를 찾을 수 없습니다."}), 404
    return jsonify(RESPONSE_SCHEMAS[collection]().dump(record)), 200

@records_bp.route('/users/<string:user_id>/analyses', methods=['GET'])
def get_user_analyses(user_id: str):
    """특정 사용자의 분석 기록 목록을 공개 여부와 관계없이 조회합니다."""
    record_store = current_app.services['records']
    analyses = record_store.list_by_user(Collection.ANALYSES, user_id)
    return jsonify({"records": AnalysisResponseSchema(many=True).dump(analyses)}), 200

@records_bp.route('/agents/<string:record_id>', methods=['DELETE'])
def delete_agent(record_id: str):
    """에이전트를 삭제합니다."""
    record_store = current_app.services['records']
    if not record_store.remove(Collection.AGENTS, record_id):
        return jsonify({"error_code": "RECORD_NOT_FOUND", "message": "삭제할 에이전트가 없습니다."}), 404
    return Response(status=204)
