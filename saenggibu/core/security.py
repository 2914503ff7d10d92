# saenggibu/core/security.py
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, Optional

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from saenggibu.models.analysis import Author

ANONYMOUS_SCOPE = "anonymous"
DEFAULT_DISPLAY_NAME = "사용자"

@dataclass
class SessionContext:
    """
    인증 협력자가 제공하는 세션 정보 {current_user, is_guest}.
    데이터 작업 자체의 권한 검사는 하지 않고, 회원 전용 기능(멘토링, 공유) 노출 여부에만 사용합니다.
    """
    current_user: Optional[str]
    is_guest: bool
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def scope(self) -> Optional[str]:
        """
        상호작용 상태 blob을 구분하는 세션 범위.
        토큰 없는 요청은 None(범위 없는 키)이며, HTTP 경로에서는 이 키에 쓰지 않으므로 읽기 결과가 항상 비어 있습니다.
        """
        return self.current_user

    @property
    def display_name(self) -> str:
        # 학번+이름이 있으면 그대로 붙여서 표시합니다. (예: 1405홍길동)
        student_id = self.claims.get('student_id')
        student_name = self.claims.get('student_name')
        if student_id and student_name:
            return f"{student_id}{student_name}"
        return self.claims.get('name') or DEFAULT_DISPLAY_NAME

    def author(self) -> Author:
        return Author(user_id=self.current_user or ANONYMOUS_SCOPE, display_name=self.display_name)

    def features(self) -> Dict[str, bool]:
        is_member = not self.is_guest
        return {"mentoring": is_member, "sharing": is_member}


def get_session_context() -> SessionContext:
    """요청의 JWT(선택)에서 세션 정보를 읽습니다. 토큰이 없으면 비회원으로 취급합니다."""
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is None:
        return SessionContext(current_user=None, is_guest=True)
    claims = get_jwt()
    return SessionContext(current_user=str(identity), is_guest=bool(claims.get('is_guest', False)), claims=claims)


def member_required(fn):
    """비회원 세션의 요청을 403으로 거절하는 데코레이터 (멘토링/공유 기능 전용)"""
    @wraps(fn)
    def decorated_function(*args, **kwargs):
        session = get_session_context()
        if session.is_guest:
            return jsonify({"error_code": "MEMBERS_ONLY", "message": "회원만 사용할 수 있는 기능입니다."}), 403
        return fn(*args, **kwargs)

    return decorated_function


def session_required(fn):
    """토큰 없는 요청을 401로 거절하는 데코레이터 (세션별 상호작용 상태를 변경하는 요청 전용)"""
    @wraps(fn)
    def decorated_function(*args, **kwargs):
        session = get_session_context()
        if session.current_user is None:
            return jsonify({"error_code": "SESSION_REQUIRED", "message": "로그인 또는 게스트 세션이 필요합니다."}), 401
        return fn(*args, **kwargs)

    return decorated_function
