# =============================================================================
# HTTP surface: status codes, error bodies and auth wiring through TestClient
# =============================================================================

import json
from datetime import timedelta
from unittest.mock import MagicMock

from quizhub.auth_util import create_access_token
from quizhub.model import Answer, Question, Quiz, User
from quizhub.router.api.logics.ai_logic import get_ai_client

from .test_ai_logic import TRIVIA, _mock_client


def _create_quiz(client, headers, payload):
    response = client.post("/api/quizz", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestRootEndpoints:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"name": "QuizHub", "environment": "test", "version": "1.0.0"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestAccountFlow:
    """Register, log in, use the token."""

    def test_register_login_me(self, client):
        response = client.post(
            "/api/user/register",
            json={"name": "Ada", "email": "ada@quizhub.io", "password": "lovelace"},
        )
        assert response.status_code == 201
        user = response.json()
        assert user["email"] == "ada@quizhub.io"
        assert "password" not in user and "hashed_password" not in user

        login = client.post("/api/user/login", json={"email": "ada@quizhub.io", "password": "lovelace"})
        assert login.status_code == 200
        body = login.json()
        assert body["user_id"] == user["id"]
        assert body["username"] == "Ada"
        assert body["token_type"] == "bearer"

        me = client.get("/api/user/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json() == {"user": {"id": user["id"], "name": "Ada", "email": "ada@quizhub.io"}}

    def test_register_missing_fields(self, client):
        response = client.post("/api/user/register", json={"email": "x@quizhub.io"})
        assert response.status_code == 400
        assert response.json() == {"error": "name, email and password are required"}

    def test_register_bad_email(self, client):
        response = client.post(
            "/api/user/register", json={"name": "X", "email": "not-an-email", "password": "pw"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email format"}

    def test_login_bad_email(self, client):
        response = client.post("/api/user/login", json={"email": "ada@", "password": "pw"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email format"}

    def test_duplicate_email(self, client, make_user):
        make_user(email="taken@quizhub.io")
        response = client.post(
            "/api/user/register", json={"name": "Dup", "email": "taken@quizhub.io", "password": "pw"}
        )
        assert response.status_code == 409
        assert response.json() == {"error": "Email already in use"}

    def test_wrong_password(self, client, make_user):
        make_user(email="bob@quizhub.io", password="right")
        response = client.post("/api/user/login", json={"email": "bob@quizhub.io", "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    def test_unknown_email(self, client):
        response = client.post("/api/user/login", json={"email": "ghost@quizhub.io", "password": "pw"})
        assert response.status_code == 401

    def test_deactivated_account(self, client, make_user):
        make_user(email="gone@quizhub.io", password="pw", is_active=False)
        response = client.post("/api/user/login", json={"email": "gone@quizhub.io", "password": "pw"})
        assert response.status_code == 401
        assert response.json() == {"error": "Account is deactivated"}


class TestTokenHandling:
    def test_missing_token(self, client):
        response = client.get("/api/quizz")
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_garbage_token(self, client):
        response = client.get("/api/user/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_expired_token(self, client, make_user):
        user = make_user()
        token = create_access_token(subject=user.id, email=user.email, expires_delta=timedelta(minutes=-5))
        response = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"error": "Token expired"}


class TestUserProfile:
    def test_public_profile(self, client, make_user):
        user = make_user(name="Grace")
        response = client.get(f"/api/user/{user.id}")
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Grace"

    def test_non_numeric_id(self, client):
        response = client.get("/api/user/abc")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid user ID"}

    def test_unknown_id(self, client):
        assert client.get("/api/user/9999").status_code == 404

    def test_update_self(self, client, make_user, auth_headers):
        user = make_user()
        response = client.put(f"/api/user/{user.id}", json={"name": "Renamed"}, headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_update_rejects_bad_email(self, client, make_user, auth_headers):
        user = make_user()
        response = client.put(f"/api/user/{user.id}", json={"email": "nope"}, headers=auth_headers(user))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email format"}

    def test_cannot_update_someone_else(self, client, make_user, auth_headers):
        alice, bob = make_user(), make_user()
        response = client.put(f"/api/user/{bob.id}", json={"name": "Hijacked"}, headers=auth_headers(alice))
        assert response.status_code == 403

    def test_cannot_delete_someone_else(self, client, make_user, auth_headers, row_count):
        alice, bob = make_user(), make_user()
        response = client.delete(f"/api/user/{bob.id}", headers=auth_headers(alice))
        assert response.status_code == 403
        assert row_count(User) == 2

    def test_delete_self_removes_owned_quizzes(
        self, client, make_user, auth_headers, capitals_payload, row_count
    ):
        alice, bob = make_user(), make_user()
        _create_quiz(client, auth_headers(alice), capitals_payload)
        bobs = _create_quiz(client, auth_headers(bob), capitals_payload)

        response = client.delete(f"/api/user/{alice.id}", headers=auth_headers(alice))

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert row_count(User) == 1
        assert row_count(Quiz) == 1
        assert row_count(Question, Question.quiz_id == bobs["id"]) == 1
        assert row_count(Answer) == 2


class TestQuizEndpoints:
    def test_create_and_get(self, client, make_user, auth_headers, capitals_payload):
        user = make_user()
        headers = auth_headers(user)
        created = _create_quiz(client, headers, capitals_payload)

        assert created["owner_user_id"] == user.id
        assert created["questions"][0]["points"] == 1000

        response = client.get(f"/api/quizz/{created['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json() == created

    def test_create_ignores_owner_in_payload(self, client, make_user, auth_headers, capitals_payload):
        alice, bob = make_user(), make_user()
        capitals_payload["owner_user_id"] = bob.id
        created = _create_quiz(client, auth_headers(alice), capitals_payload)
        assert created["owner_user_id"] == alice.id

    def test_create_rejects_invalid_payload(self, client, make_user, auth_headers, capitals_payload, row_count):
        capitals_payload["questions"][0]["answers"] = [{"text": "Paris"}]
        response = client.post("/api/quizz", json=capitals_payload, headers=auth_headers(make_user()))

        assert response.status_code == 400
        assert response.json() == {"error": "Question #1 must have at least 1 correct answer"}
        assert row_count(Quiz) == 0

    def test_create_with_oversized_points(self, client, make_user, auth_headers, capitals_payload):
        capitals_payload["questions"][0]["points"] = 10 ** 20
        created = _create_quiz(client, auth_headers(make_user()), capitals_payload)
        assert created["questions"][0]["points"] == 1000

    def test_create_with_object_description(self, client, make_user, auth_headers, capitals_payload, row_count):
        capitals_payload["description"] = {"x": 1}
        response = client.post("/api/quizz", json=capitals_payload, headers=auth_headers(make_user()))

        assert response.status_code == 400
        assert response.json() == {"error": "description must be a string"}
        assert row_count(Quiz) == 0

    def test_create_without_body(self, client, make_user, auth_headers):
        response = client.post("/api/quizz", headers=auth_headers(make_user()))
        assert response.status_code == 400

    def test_get_missing_quiz(self, client, make_user, auth_headers):
        response = client.get("/api/quizz/4242", headers=auth_headers(make_user()))
        assert response.status_code == 404
        assert response.json() == {"error": "Quiz not found"}

    def test_non_integer_quiz_id(self, client, make_user, auth_headers):
        response = client.get("/api/quizz/abc", headers=auth_headers(make_user()))
        assert response.status_code == 400

    def test_replace_by_owner(self, client, make_user, auth_headers, capitals_payload):
        user = make_user()
        headers = auth_headers(user)
        created = _create_quiz(client, headers, capitals_payload)

        capitals_payload["title"] = "Capitals v2"
        response = client.put(f"/api/quizz/{created['id']}", json=capitals_payload, headers=headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Capitals v2"
        assert response.json()["questions"][0]["id"] != created["questions"][0]["id"]

    def test_replace_by_stranger(self, client, make_user, auth_headers, capitals_payload):
        owner, other = make_user(), make_user()
        created = _create_quiz(client, auth_headers(owner), capitals_payload)

        response = client.put(f"/api/quizz/{created['id']}", json=capitals_payload, headers=auth_headers(other))

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_delete(self, client, make_user, auth_headers, capitals_payload, row_count):
        owner, other = make_user(), make_user()
        created = _create_quiz(client, auth_headers(owner), capitals_payload)

        assert client.delete(f"/api/quizz/{created['id']}", headers=auth_headers(other)).status_code == 403
        response = client.delete(f"/api/quizz/{created['id']}", headers=auth_headers(owner))

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert row_count(Quiz) == 0
        assert row_count(Answer) == 0

    def test_visibility_and_public_listing(self, client, make_user, auth_headers, capitals_payload):
        owner, other = make_user(), make_user()
        created = _create_quiz(client, auth_headers(owner), capitals_payload)

        response = client.patch(
            f"/api/quizz/{created['id']}/public", json={"is_public": False}, headers=auth_headers(owner)
        )
        assert response.status_code == 200
        assert response.json() == {"id": created["id"], "is_public": False}

        public = client.get("/api/quizz", params={"scope": "public"}, headers=auth_headers(other))
        assert public.json() == []

        mine = client.get("/api/quizz", params={"scope": "mine"}, headers=auth_headers(owner))
        assert [q["id"] for q in mine.json()] == [created["id"]]
        assert "questions" not in mine.json()[0]

    def test_search(self, client, make_user, auth_headers, capitals_payload):
        headers = auth_headers(make_user())
        created = _create_quiz(client, headers, capitals_payload)

        hits = client.get("/api/quizz", params={"search": "capit"}, headers=headers).json()
        misses = client.get("/api/quizz", params={"search": "rivers"}, headers=headers).json()

        assert [q["id"] for q in hits] == [created["id"]]
        assert misses == []


class TestGenerateAI:
    def test_returns_augmented_quiz_without_saving(self, app, client, make_user, auth_headers, row_count):
        augmented = json.loads(json.dumps(TRIVIA))
        augmented["questions"].append(
            {"statement": "Capital of Italy?", "answers": [{"text": "Rome", "is_correct": True}]}
        )
        ai_client = _mock_client("```json\n" + json.dumps(augmented) + "\n```")
        app.dependency_overrides[get_ai_client] = lambda: ai_client

        response = client.post(
            "/api/quizz/generate-ai",
            json={"trivia": TRIVIA, "context": "Europe"},
            headers=auth_headers(make_user()),
        )

        assert response.status_code == 200
        assert response.json()["questions"][-1]["statement"] == "Capital of Italy?"
        assert row_count(Quiz) == 0
        ai_client.chat.completions.create.assert_called_once()

    def test_unparseable_reply(self, app, client, make_user, auth_headers):
        app.dependency_overrides[get_ai_client] = lambda: _mock_client("I would rather not.")

        response = client.post(
            "/api/quizz/generate-ai", json={"trivia": TRIVIA}, headers=auth_headers(make_user())
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON from AI", "raw": "I would rather not."}

    def test_requires_authentication(self, app, client):
        ai_client = MagicMock()
        app.dependency_overrides[get_ai_client] = lambda: ai_client

        response = client.post("/api/quizz/generate-ai", json={"trivia": TRIVIA})

        assert response.status_code == 401
        ai_client.chat.completions.create.assert_not_called()
