# saenggibu/api/test_routes.py
"""
API 엔드포인트 통합 테스트

사용법: python -m pytest saenggibu/api/test_routes.py -v
"""
import pytest
from flask_jwt_extended import create_access_token

from saenggibu import create_app
from saenggibu.services.kv_store import MemoryKeyValueStore

ANALYSIS = {
    "id": "a1",
    "user_id": "user-1",
    "student_id": "1405",
    "student_name": "홍길동",
    "overall_score": 91.5,
    "strengths": ["리더십"],
    "improvements": ["수리 탐구"],
}

@pytest.fixture
def app():
    return create_app('testing', store=MemoryKeyValueStore())

@pytest.fixture
def client(app):
    return app.test_client()

def auth_headers(app, identity="user-1", **claims):
    with app.app_context():
        token = create_access_token(identity=identity, additional_claims=claims)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def member(app):
    return auth_headers(app, is_guest=False, student_id="1405", student_name="홍길동")

def create_analysis(client, **overrides):
    response = client.post('/api/records/analyses', json={**ANALYSIS, **overrides})
    assert response.status_code == 201
    return response.get_json()

def test_session_without_token_is_guest(client):
    response = client.get('/api/explore/session')
    assert response.status_code == 200
    assert response.get_json() == {
        "current_user": None,
        "is_guest": True,
        "features": {"mentoring": False, "sharing": False},
    }

def test_session_with_member_token(client, member):
    body = client.get('/api/explore/session', headers=member).get_json()
    assert body["current_user"] == "user-1"
    assert body["is_guest"] is False
    assert body["features"] == {"mentoring": True, "sharing": True}

def test_guest_token_keeps_member_features_off(app, client):
    headers = auth_headers(app, identity="guest-7", is_guest=True)
    body = client.get('/api/explore/session', headers=headers).get_json()
    assert body["current_user"] == "guest-7"
    assert body["is_guest"] is True
    assert body["features"]["sharing"] is False

def test_create_and_fetch_record(client):
    created = create_analysis(client, upload_date="2025-03-01T09:00:00+09:00")
    assert created["upload_date"] == "2025-03-01T00:00:00Z"
    assert created["likes"] == 0

    response = client.get('/api/records/analyses/a1')
    assert response.status_code == 200
    assert response.get_json()["student_name"] == "홍길동"
    assert client.get('/api/records/analyses/missing').status_code == 404

def test_duplicate_and_invalid_records_are_rejected(client):
    create_analysis(client)
    assert client.post('/api/records/analyses', json=ANALYSIS).status_code == 409

    response = client.post('/api/records/analyses', json={"id": "a2"})
    assert response.status_code == 400
    assert response.get_json()["error_code"] == "VALIDATION_ERROR"

def test_unknown_collection_is_404(client):
    assert client.get('/api/explore/videos').status_code == 404

def test_feed_listing_and_validation(client):
    create_analysis(client, id="a1", likes=1)
    create_analysis(client, id="a2", likes=5, student_name="김철수", student_id="3201")
    create_analysis(client, id="a3", likes=9, is_private=True)

    body = client.get('/api/explore/analyses?sort=popular').get_json()
    assert [r["id"] for r in body["records"]] == ["a2", "a1"]
    assert body["top_id"] == "a2"
    assert body["count"] == 2
    assert body["records"][0]["is_top"] is True

    body = client.get('/api/explore/analyses?q=3201').get_json()
    assert [r["id"] for r in body["records"]] == ["a2"]
    assert body["top_id"] is None

    response = client.get('/api/explore/analyses?sort=oldest')
    assert response.status_code == 400

def test_trending_and_recommended(client):
    create_analysis(client, id="a1", likes=1)
    create_analysis(client, id="a2", likes=5)

    trending = client.get('/api/explore/analyses/trending').get_json()["records"]
    assert [r["id"] for r in trending] == ["a2", "a1"]

    response = client.get('/api/explore/analyses/recommended', query_string={"q": "리더십"})
    recommended = response.get_json()["records"]
    assert [r["id"] for r in recommended] == ["a2", "a1"]

def test_like_and_save_toggles_are_per_session(app, client, member):
    create_analysis(client)

    response = client.post('/api/interactions/analyses/a1/like', headers=member)
    assert response.get_json() == {"id": "a1", "is_liked": True, "likes": 1}

    listed = client.get('/api/explore/analyses', headers=member).get_json()["records"]
    assert listed[0]["is_liked"] is True
    # 다른 세션에서는 좋아요 표시가 없음
    other = auth_headers(app, identity="user-2", is_guest=False)
    assert client.get('/api/explore/analyses', headers=other).get_json()["records"][0]["is_liked"] is False

    response = client.post('/api/interactions/analyses/a1/like', headers=member)
    assert response.get_json() == {"id": "a1", "is_liked": False, "likes": 0}

    client.post('/api/interactions/analyses/a1/save', headers=member)
    saved = client.get('/api/explore/analyses?tab=saved', headers=member).get_json()
    assert [r["id"] for r in saved["records"]] == ["a1"]
    assert client.get('/api/interactions/me', headers=member).get_json() == {
        "liked_ids": [], "saved_ids": ["analyses:a1"], "liked_comment_ids": []
    }

def test_toggle_unknown_record_is_404(client, member):
    assert client.post('/api/interactions/analyses/missing/like', headers=member).status_code == 404
    assert client.post('/api/interactions/agents/missing/save', headers=member).status_code == 404

def test_comment_thread_flow(client, member):
    create_analysis(client)

    response = client.post('/api/analyses/a1/comments', json={"content": "  멋진 기록이에요 "}, headers=member)
    assert response.status_code == 201
    comment = response.get_json()
    assert comment["content"] == "멋진 기록이에요"
    assert comment["author_name"] == "1405홍길동"

    reply = client.post(f'/api/analyses/a1/comments/{comment["id"]}/replies',
                        json={"content": "감사합니다"}, headers=member).get_json()
    nested = client.post(f'/api/analyses/a1/comments/{comment["id"]}/replies',
                         json={"content": "저도요", "parent_reply_id": reply["id"]}, headers=member)
    assert nested.status_code == 201

    missing_parent = client.post(f'/api/analyses/a1/comments/{comment["id"]}/replies',
                                 json={"content": "저도요", "parent_reply_id": "nope"}, headers=member)
    assert missing_parent.status_code == 404

    liked = client.post(f'/api/interactions/analyses/a1/comments/{comment["id"]}/like', headers=member)
    assert liked.get_json()["likes"] == 1

    thread = client.get('/api/analyses/a1/comments', headers=member).get_json()["comments"]
    assert len(thread) == 1
    assert thread[0]["is_liked"] is True
    assert [r["is_nested"] for r in thread[0]["replies"]] == [False, True]
    assert [r["depth"] for r in thread[0]["replies"]] == [1, 1]

def test_blank_comment_and_unknown_record(client):
    create_analysis(client)
    assert client.post('/api/analyses/a1/comments', json={"content": "   "}).status_code == 400
    assert client.post('/api/analyses/a1/comments', json={}).status_code == 400
    assert client.post('/api/analyses/missing/comments', json={"content": "안녕"}).status_code == 404
    assert client.get('/api/analyses/missing/comments').status_code == 404

def test_anonymous_comment_uses_fallback_name(client):
    create_analysis(client)
    comment = client.post('/api/analyses/a1/comments', json={"content": "안녕하세요"}).get_json()
    assert comment["author_name"] == "사용자"
    assert comment["author_id"] == "anonymous"

def test_visibility_change_is_member_only(app, client, member):
    create_analysis(client)

    response = client.patch('/api/explore/analyses/a1/visibility', json={"is_private": True})
    assert response.status_code == 403
    assert response.get_json()["error_code"] == "MEMBERS_ONLY"

    guest = auth_headers(app, identity="guest-7", is_guest=True)
    assert client.patch('/api/explore/analyses/a1/visibility', json={"is_private": True}, headers=guest).status_code == 403

    response = client.patch('/api/explore/analyses/a1/visibility', json={"is_private": True}, headers=member)
    assert response.get_json() == {"id": "a1", "is_private": True}
    assert client.get('/api/explore/analyses').get_json()["records"] == []
    assert client.patch('/api/explore/analyses/missing/visibility', json={"is_private": True}, headers=member).status_code == 404

def test_user_analyses_and_agent_deletion(client):
    create_analysis(client, id="a1", is_private=True)
    create_analysis(client, id="a2", user_id="user-2")
    body = client.get('/api/records/users/user-1/analyses').get_json()
    assert [r["id"] for r in body["records"]] == ["a1"]

    response = client.post('/api/records/agents', json={"id": "g1", "name": "면접 코치"})
    assert response.status_code == 201
    assert client.delete('/api/records/agents/g1').status_code == 204
    assert client.delete('/api/records/agents/g1').status_code == 404

def test_toggles_without_token_are_rejected(app, client, member):
    """토큰 없는 요청끼리 좋아요/저장 상태를 공유하지 않도록 토글은 401로 거절되어야 함"""
    create_analysis(client)

    for path in ['/api/interactions/analyses/a1/like', '/api/interactions/analyses/a1/save',
                 '/api/interactions/analyses/a1/comments/c1/like']:
        response = client.post(path)
        assert response.status_code == 401
        assert response.get_json()["error_code"] == "SESSION_REQUIRED"
    assert client.get('/api/records/analyses/a1').get_json()["likes"] == 0

    # 게스트 토큰은 자기 세션 범위에서 토글할 수 있음
    guest = auth_headers(app, identity="guest-7", is_guest=True)
    assert client.post('/api/interactions/analyses/a1/like', headers=guest).get_json()["is_liked"] is True
    client.post('/api/interactions/analyses/a1/save', headers=member)

    # 토큰 없는 조회에는 어떤 세션의 상태도 보이지 않음
    assert client.get('/api/interactions/me').get_json() == {
        "liked_ids": [], "saved_ids": [], "liked_comment_ids": []
    }
    listed = client.get('/api/explore/analyses').get_json()["records"]
    assert (listed[0]["is_liked"], listed[0]["is_saved"]) == (False, False)
    assert client.get('/api/explore/analyses?tab=saved').get_json()["records"] == []
