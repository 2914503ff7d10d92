# saenggibu/api/comments/schemas.py
from marshmallow import Schema, fields, validate, ValidationError

def _not_blank(value: str) -> None:
    if not value.strip():
        raise ValidationError("내용을 입력해주세요.")

class CommentCreateSchema(Schema):
    """
    POST /api/analyses/{record_id}/comments
    댓글 생성을 요청할 때의 데이터 형식을 정의하고 유효성을 검사합니다.
    """
    content = fields.Str(required=True, validate=[validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."), _not_blank])

class ReplyCreateSchema(Schema):
    """
    POST /api/analyses/{record_id}/comments/{comment_id}/replies
    parent_reply_id가 있으면 답글에 대한 답글로 저장됩니다.
    """
    content = fields.Str(required=True, validate=[validate.Length(min=1, max=1000, error="답글은 1~1000자 사이여야 합니다."), _not_blank])
    parent_reply_id = fields.Str(load_default=None, allow_none=True)

class ReplyResponseSchema(Schema):
    """답글 정보 응답 형식. 답글은 항상 한 단계만 들여쓰기 됩니다."""
    id = fields.Str(required=True)
    author_id = fields.Str(required=True)
    author_name = fields.Str(required=True)
    content = fields.Str(required=True)
    created_at = fields.Str(required=True)
    likes = fields.Int(dump_default=0)
    parent_reply_id = fields.Str(allow_none=True)

    # get_thread에서 채워주는 표시용 필드
    depth = fields.Int(dump_only=True)
    is_nested = fields.Bool(dump_only=True)

class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    """
    id = fields.Str(required=True)
    author_id = fields.Str(required=True)
    author_name = fields.Str(required=True)
    content = fields.Str(required=True)
    created_at = fields.Str(required=True)
    likes = fields.Int(dump_default=0)
    replies = fields.List(fields.Nested(ReplyResponseSchema), dump_default=list)

    # 서비스 로직에서 채워주는 응답 전용 필드
    is_liked = fields.Bool(dump_only=True, dump_default=False)
