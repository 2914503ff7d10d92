# saenggibu/api/explore/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE

from saenggibu.api.comments.schemas import CommentResponseSchema # 댓글 형식은 댓글 스키마의 것을 재사용
from saenggibu.api.explore.services import TAB_OPTIONS, SORT_OPTIONS

# --- 요청 스키마 ---
class FeedQuerySchema(Schema):
    """GET /api/explore/{collection} 쿼리 파라미터의 유효성을 검사합니다."""
    class Meta:
        unknown = EXCLUDE

    tab = fields.Str(load_default='all', validate=validate.OneOf(TAB_OPTIONS))
    q = fields.Str(load_default='')
    sort = fields.Str(load_default='recent', validate=validate.OneOf(SORT_OPTIONS))

class RecommendQuerySchema(Schema):
    """GET /api/explore/{collection}/recommended 쿼리 파라미터."""
    class Meta:
        unknown = EXCLUDE

    q = fields.Str(load_default='')

class VisibilityUpdateSchema(Schema):
    """PATCH /api/explore/{collection}/{record_id}/visibility 요청 본문."""
    is_private = fields.Bool(required=True)

# --- 응답 스키마 ---
class AnalysisResponseSchema(Schema):
    """분석 기록 응답 형식. 세션 기준 좋아요/저장 여부가 함께 표시됩니다."""
    id = fields.Str(required=True)
    user_id = fields.Str(allow_none=True)
    student_id = fields.Str(allow_none=True)
    student_name = fields.Str(required=True)
    overall_score = fields.Float(allow_none=True)
    strengths = fields.List(fields.Str(), dump_default=list)
    improvements = fields.List(fields.Str(), dump_default=list)
    likes = fields.Int(dump_default=0)
    saves = fields.Int(dump_default=0)
    is_private = fields.Bool(dump_default=False)
    upload_date = fields.Str(allow_none=True)
    comments = fields.List(fields.Nested(CommentResponseSchema), dump_default=list)

    is_liked = fields.Bool(dump_only=True, dump_default=False)
    is_saved = fields.Bool(dump_only=True, dump_default=False)
    is_top = fields.Bool(dump_only=True, dump_default=False)

class AgentResponseSchema(Schema):
    """에이전트 응답 형식."""
    id = fields.Str(required=True)
    name = fields.Str(required=True)
    description = fields.Str(dump_default="")
    goal = fields.Str(dump_default="")
    user_id = fields.Str(allow_none=True)
    likes = fields.Int(dump_default=0)
    saves = fields.Int(dump_default=0)
    is_private = fields.Bool(dump_default=False)
    created_at = fields.Str(allow_none=True)

    is_liked = fields.Bool(dump_only=True, dump_default=False)
    is_saved = fields.Bool(dump_only=True, dump_default=False)
    is_top = fields.Bool(dump_only=True, dump_default=False)

class SessionResponseSchema(Schema):
    """GET /api/explore/session 응답 형식."""
    current_user = fields.Str(allow_none=True)
    is_guest = fields.Bool(required=True)
    features = fields.Dict(keys=fields.Str(), values=fields.Bool())

RESPONSE_SCHEMAS = {
    'analyses': AnalysisResponseSchema,
    'agents': AgentResponseSchema,
}
