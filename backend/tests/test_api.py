"""HTTP-level tests: auth guards, the error envelope and route wiring."""

from __future__ import annotations

import unittest
from unittest import mock

from fastapi.testclient import TestClient

from fakes import (
    FakeActivityRepository,
    FakeCommentRepository,
    FakeFollowRepository,
    FakeLikeRepository,
    FakeMessageRepository,
    FakeProfileRepository,
)
from pulse.config import get_settings
from pulse.main import app
from pulse.repositories.read_state import TimestampReadState
from pulse.routers.activities import get_activity_service
from pulse.routers.auth import get_user_service
from pulse.routers.follows import get_follow_service
from pulse.routers.messages import get_chat_service
from pulse.services.activity_service import FEED_MAX_LIMIT, ActivityService
from pulse.services.chat_service import ChatService
from pulse.services.follow_service import FollowService
from pulse.services.user_service import UserService
from pulse.utils.documents import new_id
from pulse.utils.security import create_access_token


class _FakeUserRepository:
    def __init__(self) -> None:
        self.users = {}

    async def get_user_by_email(self, email):
        return next((u for u in self.users.values() if u["email"] == email), None)

    async def create_user(self, user_id, email, hashed_password):
        self.users[user_id] = {"_id": user_id, "email": email, "hashed_password": hashed_password}

    async def delete_user(self, user_id):
        self.users.pop(user_id, None)


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.me, self.other = new_id(), new_id()
        self.profiles = FakeProfileRepository([{"_id": self.me, "username": "me"}, {"_id": self.other, "username": "other"}])
        self.follows = FakeFollowRepository()
        self.messages = FakeMessageRepository(TimestampReadState())
        self.users = _FakeUserRepository()

        app.dependency_overrides[get_follow_service] = lambda: FollowService(self.follows, self.profiles)
        app.dependency_overrides[get_chat_service] = lambda: ChatService(self.messages, self.profiles)
        app.dependency_overrides[get_user_service] = lambda: UserService(self.users, self.profiles)
        self.client = TestClient(app, raise_server_exceptions=False)
        self.auth = {"Authorization": f"Bearer {create_access_token(self.me, 'me@example.com')}"}

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_missing_token_is_401_envelope(self) -> None:
        response = self.client.get(f"/api/follows/{self.other}/status")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Unauthorized")
        self.assertEqual(response.headers["www-authenticate"], "Bearer")

    def test_garbage_token_is_401(self) -> None:
        response = self.client.get(f"/api/follows/{self.other}/status", headers={"Authorization": "Bearer not.a.jwt"})
        self.assertEqual(response.status_code, 401)

    def test_follow_flow(self) -> None:
        created = self.client.post(f"/api/follows/{self.other}", headers=self.auth)
        self.assertEqual(created.status_code, 201)
        again = self.client.post(f"/api/follows/{self.other}", headers=self.auth)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(set(again.json()), {"error", "message"})
        status = self.client.get(f"/api/follows/{self.other}/status", headers=self.auth)
        self.assertEqual(status.json(), {"is_following": True})

    def test_follow_self_is_400(self) -> None:
        response = self.client.post(f"/api/follows/{self.me}", headers=self.auth)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Cannot follow yourself")

    def test_invalid_body_uses_envelope(self) -> None:
        response = self.client.post("/api/auth/signup", json={"email": "not-an-email", "password": "secret1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Validation error")

    def test_signup_then_login(self) -> None:
        body = {"email": "New@Example.com", "password": "secret1", "username": "newbie"}
        created = self.client.post("/api/auth/signup", json=body)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["user"]["username"], "newbie")
        duplicate = self.client.post("/api/auth/signup", json=body)
        self.assertEqual(duplicate.status_code, 409)
        login = self.client.post("/api/auth/login", json={"email": "new@example.com", "password": "secret1"})
        self.assertEqual(login.status_code, 200)
        self.assertIn("token", login.json())
        wrong = self.client.post("/api/auth/login", json={"email": "new@example.com", "password": "nope!!"})
        self.assertEqual(wrong.status_code, 401)

    def test_send_and_list_conversations(self) -> None:
        sent = self.client.post("/api/messages", json={"receiver_id": self.other, "message": "hey"}, headers=self.auth)
        self.assertEqual(sent.status_code, 201)
        listed = self.client.get("/api/messages/conversations", headers=self.auth)
        self.assertEqual(listed.status_code, 200)
        conversations = listed.json()["conversations"]
        self.assertEqual(conversations[0]["other_user_id"], self.other)
        self.assertEqual(conversations[0]["unread_count"], 0)

    def test_unknown_route_uses_envelope(self) -> None:
        response = self.client.get("/api/nothing-here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Not found")

    def test_unhandled_error_is_500_envelope(self) -> None:
        class _Exploding(FakeFollowRepository):
            async def get(self, follower_id, following_id):
                raise RuntimeError("boom")

        app.dependency_overrides[get_follow_service] = lambda: FollowService(_Exploding(), self.profiles)
        response = self.client.get(f"/api/follows/{self.other}/status", headers=self.auth)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Internal server error")

    def test_production_500_hides_detail_behind_generic_message(self) -> None:
        class _Exploding(FakeFollowRepository):
            async def get(self, follower_id, following_id):
                raise RuntimeError("connection string leaked")

        app.dependency_overrides[get_follow_service] = lambda: FollowService(_Exploding(), self.profiles)
        production = get_settings().model_copy(update={"environment": "production"})
        with mock.patch("pulse.utils.errors.get_settings", return_value=production):
            response = self.client.get(f"/api/follows/{self.other}/status", headers=self.auth)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error", "message": "An unexpected error occurred"})

    def test_development_500_carries_detail(self) -> None:
        class _Exploding(FakeFollowRepository):
            async def get(self, follower_id, following_id):
                raise RuntimeError("boom")

        app.dependency_overrides[get_follow_service] = lambda: FollowService(_Exploding(), self.profiles)
        development = get_settings().model_copy(update={"environment": "development"})
        with mock.patch("pulse.utils.errors.get_settings", return_value=development):
            response = self.client.get(f"/api/follows/{self.other}/status", headers=self.auth)
        self.assertEqual(response.json()["message"], "boom")


class _RecordingLikeRepository(FakeLikeRepository):
    def __init__(self) -> None:
        super().__init__()
        self.calls = []

    async def recent_on_posts_of(self, owner_id, post_type, limit):
        self.calls.append((owner_id, post_type, limit))
        return []


class _RecordingFollowRepository(FakeFollowRepository):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def recent_followers_of(self, user_id, limit):
        self.calls += 1
        return []


class ActivityFeedApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.me = new_id()
        self.likes = _RecordingLikeRepository()
        self.follows = _RecordingFollowRepository()
        app.dependency_overrides[get_activity_service] = lambda: ActivityService(
            self.likes, FakeCommentRepository(), self.follows, FakeActivityRepository()
        )
        self.client = TestClient(app, raise_server_exceptions=False)
        self.auth = {"Authorization": f"Bearer {create_access_token(self.me, 'me@example.com')}"}

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_oversized_limit_is_capped(self) -> None:
        response = self.client.get("/api/activities/feed?limit=500", headers=self.auth)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"activities": []})
        self.assertEqual(self.likes.calls, [(self.me, "instagram", FEED_MAX_LIMIT)])

    def test_unknown_post_type_falls_back_to_instagram(self) -> None:
        response = self.client.get("/api/activities/feed?post_type=foo", headers=self.auth)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.likes.calls, [(self.me, "instagram", 50)])

    def test_twitter_and_defaults(self) -> None:
        self.client.get("/api/activities/feed?post_type=twitter&limit=0", headers=self.auth)
        self.assertEqual(self.likes.calls, [(self.me, "twitter", 50)])
        self.assertEqual(self.follows.calls, 1)

    def test_include_follows_accepts_both_spellings(self) -> None:
        self.client.get("/api/activities/feed?includeFollows=false", headers=self.auth)
        self.client.get("/api/activities/feed?include_follows=false", headers=self.auth)
        self.assertEqual(self.follows.calls, 0)
        self.client.get("/api/activities/feed?includeFollows=true", headers=self.auth)
        self.assertEqual(self.follows.calls, 1)


if __name__ == "__main__":
    unittest.main()
