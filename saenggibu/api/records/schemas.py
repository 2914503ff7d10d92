# saenggibu/api/records/schemas.py
from dataclasses import asdict
from marshmallow import Schema, fields, validate, post_load

from saenggibu.models.agent import AgentRecord
from saenggibu.models.analysis import AnalysisRecord
from saenggibu.utils.datetime_utils import DateTimeUtils, now_iso

class AnalysisCreateSchema(Schema):
    """
    업로드 파이프라인이 새 분석 기록을 넣을 때의 요청 본문.
    - 역직렬화 (load): JSON -> AnalysisRecord -> 저장용 딕셔너리 (시각은 UTC ISO 문자열로 변환)
    """
    id = fields.Str(required=True, validate=validate.Length(min=1))
    user_id = fields.Str(required=True)
    student_id = fields.Str(load_default=None, allow_none=True)
    student_name = fields.Str(required=True, validate=validate.Length(min=1))
    overall_score = fields.Float(required=True)
    strengths = fields.List(fields.Str(), load_default=list)
    improvements = fields.List(fields.Str(), load_default=list)
    likes = fields.Int(load_default=0, validate=validate.Range(min=0))
    saves = fields.Int(load_default=0, validate=validate.Range(min=0))
    is_private = fields.Bool(load_default=False)
    upload_date = fields.DateTime(load_default=None)
    comments = fields.List(fields.Dict(), load_default=list)

    @post_load
    def normalize_dates(self, data, **kwargs):
        upload_date = data.get('upload_date')
        data['upload_date'] = DateTimeUtils.to_iso_string(upload_date) if upload_date else now_iso()
        return asdict(AnalysisRecord(**data))

class AgentCreateSchema(Schema):
    """새 에이전트를 저장할 때의 요청 본문."""
    id = fields.Str(required=True, validate=validate.Length(min=1))
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str(load_default="")
    goal = fields.Str(load_default="")
    user_id = fields.Str(load_default=None, allow_none=True)
    likes = fields.Int(load_default=0, validate=validate.Range(min=0))
    saves = fields.Int(load_default=0, validate=validate.Range(min=0))
    is_private = fields.Bool(load_default=False)
    created_at = fields.DateTime(load_default=None)

    @post_load
    def normalize_dates(self, data, **kwargs):
        created_at = data.get('created_at')
        data['created_at'] = DateTimeUtils.to_iso_string(created_at) if created_at else now_iso()
        return asdict(AgentRecord(**data))

CREATE_SCHEMAS = {
    'analyses': AnalysisCreateSchema,
    'agents': AgentCreateSchema,
}
