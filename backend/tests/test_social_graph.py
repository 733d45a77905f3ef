"""Tests for follows, reels and stories."""

from __future__ import annotations

import base64
import unittest
from datetime import timedelta

from fakes import FakeFollowRepository, FakeProfileRepository, FakeReelRepository, FakeStorage, FakeStoryRepository
from pulse.services.follow_service import FollowService
from pulse.services.reel_service import ReelService
from pulse.services.story_service import STORY_TTL, StoryService
from pulse.utils.documents import new_id, utcnow
from pulse.utils.errors import Conflict, Forbidden, NotFound, ValidationFailed


class FollowServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.alice, self.bob = new_id(), new_id()
        self.profiles = FakeProfileRepository([{"_id": self.alice, "username": "alice"}, {"_id": self.bob, "username": "bob"}])
        self.follows = FakeFollowRepository()
        self.service = FollowService(self.follows, self.profiles)

    async def test_follow_updates_both_counters(self) -> None:
        follow = await self.service.follow(self.alice, self.bob)
        self.assertEqual(follow["following_id"], self.bob)
        self.assertEqual(self.profiles.profiles[self.bob]["followers_count"], 1)
        self.assertEqual(self.profiles.profiles[self.alice]["following_count"], 1)
        self.assertTrue(await self.service.is_following(self.alice, self.bob))

    async def test_follow_errors(self) -> None:
        with self.assertRaises(ValidationFailed):
            await self.service.follow(self.alice, self.alice)
        with self.assertRaises(NotFound):
            await self.service.follow(self.alice, new_id())
        await self.service.follow(self.alice, self.bob)
        with self.assertRaises(Conflict):
            await self.service.follow(self.alice, self.bob)
        self.assertEqual(self.profiles.profiles[self.bob]["followers_count"], 1)

    async def test_unfollow_only_decrements_when_removed(self) -> None:
        await self.service.follow(self.alice, self.bob)
        self.assertTrue(await self.service.unfollow(self.alice, self.bob))
        self.assertFalse(await self.service.unfollow(self.alice, self.bob))
        self.assertEqual(self.profiles.profiles[self.bob]["followers_count"], 0)
        self.assertEqual(self.profiles.profiles[self.alice]["following_count"], 0)

    async def test_counter_failure_keeps_follow(self) -> None:
        self.profiles.fail_increments = True
        with self.assertLogs("pulse.utils.tasks", level="ERROR"):
            await self.service.follow(self.alice, self.bob)
        self.assertTrue(await self.service.is_following(self.alice, self.bob))

    async def test_suggestions_skip_self_and_followed(self) -> None:
        carol = new_id()
        self.profiles.add({"_id": carol, "username": "carol", "followers_count": 9})
        await self.service.follow(self.alice, self.bob)
        suggestions = await self.service.suggestions(self.alice, 10)
        self.assertEqual([s["id"] for s in suggestions], [carol])


class ReelServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.owner, self.fan = new_id(), new_id()
        self.reel_id = new_id()
        self.profiles = FakeProfileRepository([{"_id": self.owner, "username": "owner"}, {"_id": self.fan, "username": "fan"}])
        self.reels = FakeReelRepository([{"_id": self.reel_id, "user_id": self.owner, "video_url": "http://v/1.mp4", "created_at": utcnow()}])
        self.storage = FakeStorage()
        self.service = ReelService(self.reels, self.profiles, self.storage)

    async def test_like_rules(self) -> None:
        with self.assertRaises(ValidationFailed):
            await self.service.like(self.owner, self.reel_id)
        await self.service.like(self.fan, self.reel_id)
        with self.assertRaises(Conflict):
            await self.service.like(self.fan, self.reel_id)
        self.assertEqual(self.reels.reels[self.reel_id]["likes_count"], 1)
        self.assertTrue(await self.service.like_status(self.fan, self.reel_id))

    async def test_unlike_only_decrements_when_removed(self) -> None:
        await self.service.like(self.fan, self.reel_id)
        await self.service.unlike(self.fan, self.reel_id)
        await self.service.unlike(self.fan, self.reel_id)
        self.assertEqual(self.reels.reels[self.reel_id]["likes_count"], 0)

    async def test_listing_marks_viewer_likes(self) -> None:
        await self.service.like(self.fan, self.reel_id)
        page = await self.service.list_reels(20, 0, self.fan)
        self.assertTrue(page["reels"][0]["is_liked"])
        page = await self.service.list_user_reels(self.owner, 20, 0, None)
        self.assertFalse(page["reels"][0]["is_liked"])

    async def test_create_requires_video(self) -> None:
        with self.assertRaises(ValidationFailed):
            await self.service.create_reel(self.owner, caption="no video")
        video = base64.b64encode(b"mp4-bytes").decode()
        reel = await self.service.create_reel(self.owner, caption="clip", video_base64=video)
        self.assertTrue(reel["video_url"].endswith(".mp4"))
        self.assertEqual(reel["likes_count"], 0)

    async def test_comments_and_delete(self) -> None:
        await self.service.add_comment(self.fan, self.reel_id, " great ")
        comments = await self.service.list_comments(self.reel_id)
        self.assertEqual([c["comment"] for c in comments], ["great"])
        self.assertEqual(self.reels.reels[self.reel_id]["comments_count"], 1)
        with self.assertRaises(Forbidden):
            await self.service.delete_reel(self.fan, self.reel_id)
        await self.service.delete_reel(self.owner, self.reel_id)
        with self.assertRaises(NotFound):
            await self.service.like_status(self.fan, self.reel_id)

    async def test_delete_removes_uploaded_video(self) -> None:
        video = base64.b64encode(b"mp4-bytes").decode()
        reel = await self.service.create_reel(self.owner, video_base64=video)
        self.assertEqual(len(self.storage.objects), 1)
        await self.service.delete_reel(self.owner, reel["id"])
        self.assertEqual(self.storage.objects, {})


class StoryServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.me, self.friend, self.stranger = new_id(), new_id(), new_id()
        self.profiles = FakeProfileRepository(
            [{"_id": uid, "username": name} for uid, name in ((self.me, "me"), (self.friend, "friend"), (self.stranger, "stranger"))]
        )
        self.follows = FakeFollowRepository()
        self.stories = FakeStoryRepository()
        self.storage = FakeStorage()
        self.service = StoryService(self.stories, self.follows, self.profiles, self.storage)
        self.image = base64.b64encode(b"jpeg").decode()

    async def test_create_sets_expiry(self) -> None:
        story = await self.service.create_story(self.me, "image", self.image)
        self.assertEqual(story["expires_at"] - story["created_at"], STORY_TTL)
        self.assertIsNotNone(story["image_url"])
        self.assertIsNone(story["video_url"])

    async def test_create_validates_media(self) -> None:
        with self.assertRaises(ValidationFailed):
            await self.service.create_story(self.me, "gif", self.image)
        with self.assertRaises(ValidationFailed):
            await self.service.create_story(self.me, "video", None)

    async def test_following_groups_active_stories(self) -> None:
        await self.follows.insert({"_id": new_id(), "follower_id": self.me, "following_id": self.friend, "created_at": utcnow()})
        await self.service.create_story(self.me, "image", self.image)
        await self.service.create_story(self.friend, "video", self.image)
        await self.service.create_story(self.stranger, "image", self.image)
        expired = await self.service.create_story(self.friend, "image", self.image)
        self.stories.stories[expired["id"]]["expires_at"] = utcnow() - timedelta(minutes=1)

        grouped = await self.service.following_stories(self.me)
        self.assertEqual(set(grouped), {self.me, self.friend})
        self.assertEqual(len(grouped[self.friend]), 1)

    async def test_only_owner_deletes(self) -> None:
        story = await self.service.create_story(self.me, "image", self.image)
        with self.assertRaises(Forbidden):
            await self.service.delete_story(self.friend, story["id"])
        await self.service.delete_story(self.me, story["id"])
        self.assertEqual(await self.service.user_stories(self.me), [])
        self.assertEqual(self.storage.objects, {})


if __name__ == "__main__":
    unittest.main()
