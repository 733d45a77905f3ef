"""In-memory stand-ins for the Mongo repositories used by service tests."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from pulse.repositories.read_state import ReadState
from pulse.utils.storage import build_public_url, build_storage_path, storage_path_from_url


def _newest_first(rows: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(rows, key=lambda r: r["created_at"], reverse=True)


class FakeProfileRepository:
    def __init__(self, profiles: Iterable[Dict[str, Any]] = ()) -> None:
        self.profiles: Dict[str, Dict[str, Any]] = {}
        for profile in profiles:
            self.add(profile)
        self.fail_increments = False

    def add(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        doc = {"followers_count": 0, "following_count": 0, "posts_count": 0, **profile}
        self.profiles[doc["_id"]] = doc
        return doc

    async def create(self, user_id: str, email: str, username: Optional[str], full_name: Optional[str]) -> Dict[str, Any]:
        if username and await self.username_taken(username):
            raise DuplicateKeyError("username", code=11000)
        return self.add({"_id": user_id, "email": email, "username": username, "full_name": full_name})

    async def get(self, user_id: str, public_only: bool = False) -> Optional[Dict[str, Any]]:
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    async def exists(self, user_id: str) -> bool:
        return user_id in self.profiles

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return {uid: dict(self.profiles[uid]) for uid in user_ids if uid in self.profiles}

    async def username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        return any(p.get("username") == username and uid != exclude_user_id for uid, p in self.profiles.items())

    async def update(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if user_id not in self.profiles:
            return None
        self.profiles[user_id].update(fields)
        return dict(self.profiles[user_id])

    async def increment(self, user_id: str, field: str, delta: int) -> None:
        if self.fail_increments:
            raise PyMongoError("counter update failed")
        if user_id in self.profiles:
            self.profiles[user_id][field] = self.profiles[user_id].get(field, 0) + delta

    async def list_others(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        return [p for uid, p in self.profiles.items() if uid != user_id][:limit]

    async def suggestions(self, exclude_ids: List[str], limit: int) -> List[Dict[str, Any]]:
        rows = [p for uid, p in self.profiles.items() if uid not in exclude_ids]
        rows.sort(key=lambda p: p.get("followers_count", 0), reverse=True)
        return rows[:limit]


class FakePostRepository:
    def __init__(self, posts: Iterable[Dict[str, Any]] = ()) -> None:
        self.posts = {p["_id"]: {"likes_count": 0, "comments_count": 0, **p} for p in posts}
        self.fail_increments = False

    async def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.posts[doc["_id"]] = dict(doc)
        return doc

    async def get(self, post_id: str) -> Optional[Dict[str, Any]]:
        post = self.posts.get(post_id)
        return dict(post) if post else None

    async def list(self, limit: int, offset: int = 0, post_type: Optional[str] = None, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = [
            p for p in self.posts.values()
            if (post_type is None or p.get("post_type") == post_type) and (user_id is None or p.get("user_id") == user_id)
        ]
        return _newest_first(rows)[offset:offset + limit]

    async def delete(self, post_id: str) -> bool:
        return self.posts.pop(post_id, None) is not None

    async def increment(self, post_id: str, field: str, delta: int) -> None:
        if self.fail_increments:
            raise PyMongoError("counter update failed")
        self.posts[post_id][field] = self.posts[post_id].get(field, 0) + delta

    async def get_counter(self, post_id: str, field: str) -> int:
        return int(self.posts.get(post_id, {}).get(field) or 0)


class _PairRepository:
    """Rows unique on (post_id, user_id), like the unique index in Mongo."""

    def __init__(self, key: str = "post_id") -> None:
        self.key = key
        self.rows: List[Dict[str, Any]] = []

    async def find(self, post_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        for row in self.rows:
            if row[self.key] == post_id and row["user_id"] == user_id:
                return row
        return None

    async def insert(self, doc: Dict[str, Any]) -> None:
        if await self.find(doc[self.key], doc["user_id"]):
            raise DuplicateKeyError("duplicate", code=11000)
        self.rows.append(doc)

    async def delete(self, post_id: str, user_id: str) -> bool:
        row = await self.find(post_id, user_id)
        if row is None:
            return False
        self.rows.remove(row)
        return True

    async def delete_for_post(self, post_id: str) -> None:
        self.rows = [r for r in self.rows if r[self.key] != post_id]


class FakeLikeRepository(_PairRepository):
    def __init__(self, recent: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__()
        self.recent = recent or []

    async def list_for_post(self, post_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        return _newest_first(r for r in self.rows if r["post_id"] == post_id)[offset:offset + limit]

    async def count_for_post(self, post_id: str) -> int:
        return sum(1 for r in self.rows if r["post_id"] == post_id)

    async def liked_post_ids(self, user_id: str, post_ids: Iterable[str]) -> set:
        ids = set(post_ids)
        return {r["post_id"] for r in self.rows if r["user_id"] == user_id and r["post_id"] in ids}

    async def recent_on_posts_of(self, owner_id: str, post_type: str, limit: int) -> List[Dict[str, Any]]:
        return self.recent[:limit]


class FakeBookmarkRepository(_PairRepository):
    pass


class FakeCommentRepository:
    def __init__(self, recent: Optional[List[Dict[str, Any]]] = None) -> None:
        self.comments: Dict[str, Dict[str, Any]] = {}
        self.recent = recent or []

    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.comments[doc["_id"]] = doc
        return doc

    async def get(self, comment_id: str) -> Optional[Dict[str, Any]]:
        return self.comments.get(comment_id)

    async def delete(self, comment_id: str) -> bool:
        return self.comments.pop(comment_id, None) is not None

    async def delete_for_post(self, post_id: str) -> None:
        self.comments = {k: v for k, v in self.comments.items() if v["post_id"] != post_id}

    async def list_for_post(self, post_id: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        rows = sorted((c for c in self.comments.values() if c["post_id"] == post_id), key=lambda c: c["created_at"])
        return rows[offset:offset + limit]

    async def count_for_post(self, post_id: str) -> int:
        return sum(1 for c in self.comments.values() if c["post_id"] == post_id)

    async def recent_on_posts_of(self, owner_id: str, post_type: str, limit: int) -> List[Dict[str, Any]]:
        return self.recent[:limit]


class FakeFollowRepository:
    def __init__(self, recent: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows: List[Dict[str, Any]] = []
        self.recent = recent or []

    async def get(self, follower_id: str, following_id: str) -> Optional[Dict[str, Any]]:
        for row in self.rows:
            if row["follower_id"] == follower_id and row["following_id"] == following_id:
                return row
        return None

    async def insert(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if await self.get(doc["follower_id"], doc["following_id"]):
            raise DuplicateKeyError("duplicate follow", code=11000)
        self.rows.append(doc)
        return doc

    async def delete(self, follower_id: str, following_id: str) -> bool:
        row = await self.get(follower_id, following_id)
        if row is None:
            return False
        self.rows.remove(row)
        return True

    async def following_ids(self, user_id: str) -> List[str]:
        return [r["following_id"] for r in self.rows if r["follower_id"] == user_id]

    async def recent_followers_of(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        return self.recent[:limit]


class FakeActivityRepository:
    def __init__(self) -> None:
        self.rows: List[Dict[str, Any]] = []

    async def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.rows.append(doc)
        return doc

    async def list_for_target(self, target_user_id: str, limit: int) -> List[Dict[str, Any]]:
        return _newest_first(r for r in self.rows if r["target_user_id"] == target_user_id)[:limit]

    async def delete_own(self, activity_id: str, user_id: str) -> bool:
        for row in self.rows:
            if row["_id"] == activity_id and row["user_id"] == user_id:
                self.rows.remove(row)
                return True
        return False


class FakeMessageRepository:
    def __init__(self, read_state: ReadState) -> None:
        self.read_state = read_state
        self.messages: List[Dict[str, Any]] = []
        self.fail_unread_for: set = set()

    def add(self, doc: Dict[str, Any], read: bool = False) -> Dict[str, Any]:
        doc = {**doc, **self.read_state.initial_fields()}
        if read:
            self._apply_read(doc)
        self.messages.append(doc)
        return doc

    def _apply_read(self, doc: Dict[str, Any]) -> None:
        doc.update(self.read_state.mark_read_update(doc["created_at"])["$set"])

    async def save_message(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        return self.add(doc)

    async def get(self, message_id: str) -> Optional[Dict[str, Any]]:
        for doc in self.messages:
            if doc["_id"] == message_id:
                return dict(doc)
        return None

    def _between(self, a: str, b: str) -> List[Dict[str, Any]]:
        return [m for m in self.messages if {m["sender_id"], m["receiver_id"]} == {a, b}]

    async def list_between(self, a: str, b: str, limit: int, offset: int) -> List[Dict[str, Any]]:
        return _newest_first(self._between(a, b))[offset:offset + limit]

    async def count_between(self, a: str, b: str) -> int:
        return len(self._between(a, b))

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return _newest_first(m for m in self.messages if user_id in (m["sender_id"], m["receiver_id"]))

    async def count_unread(self, sender_id: str, receiver_id: str) -> int:
        if sender_id in self.fail_unread_for:
            raise PyMongoError("count failed")
        return sum(
            1 for m in self.messages
            if m["sender_id"] == sender_id and m["receiver_id"] == receiver_id and not self.read_state.is_read(m)
        )

    async def mark_read_from(self, sender_id: str, receiver_id: str) -> int:
        count = 0
        for m in self.messages:
            if m["sender_id"] == sender_id and m["receiver_id"] == receiver_id and not self.read_state.is_read(m):
                self._apply_read(m)
                count += 1
        return count

    async def mark_read(self, message_id: str) -> bool:
        for m in self.messages:
            if m["_id"] == message_id:
                self._apply_read(m)
                return True
        return False


class FakeReelRepository:
    def __init__(self, reels: Iterable[Dict[str, Any]] = ()) -> None:
        self.reels = {r["_id"]: {"likes_count": 0, "comments_count": 0, **r} for r in reels}
        self.likes = _PairRepository(key="reel_id")
        self.comments: List[Dict[str, Any]] = []

    async def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.reels[doc["_id"]] = dict(doc)
        return doc

    async def get(self, reel_id: str) -> Optional[Dict[str, Any]]:
        reel = self.reels.get(reel_id)
        return dict(reel) if reel else None

    async def list(self, limit: int, offset: int = 0, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        rows = [r for r in self.reels.values() if user_id is None or r["user_id"] == user_id]
        return _newest_first(rows)[offset:offset + limit]

    async def delete(self, reel_id: str) -> bool:
        return self.reels.pop(reel_id, None) is not None

    async def increment(self, reel_id: str, field: str, delta: int) -> None:
        self.reels[reel_id][field] = self.reels[reel_id].get(field, 0) + delta

    async def find_like(self, reel_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.likes.find(reel_id, user_id)

    async def insert_like(self, doc: Dict[str, Any]) -> None:
        await self.likes.insert(doc)

    async def delete_like(self, reel_id: str, user_id: str) -> bool:
        return await self.likes.delete(reel_id, user_id)

    async def liked_reel_ids(self, user_id: str, reel_ids: Iterable[str]) -> set:
        ids = set(reel_ids)
        return {r["reel_id"] for r in self.likes.rows if r["user_id"] == user_id and r["reel_id"] in ids}

    async def insert_comment(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.comments.append(doc)
        return doc

    async def list_comments(self, reel_id: str) -> List[Dict[str, Any]]:
        return sorted((c for c in self.comments if c["reel_id"] == reel_id), key=lambda c: c["created_at"])


class FakeStoryRepository:
    def __init__(self) -> None:
        self.stories: Dict[str, Dict[str, Any]] = {}

    async def create(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.stories[doc["_id"]] = doc
        return doc

    async def get(self, story_id: str) -> Optional[Dict[str, Any]]:
        return self.stories.get(story_id)

    async def delete(self, story_id: str) -> bool:
        return self.stories.pop(story_id, None) is not None

    async def active_for_users(self, user_ids: List[str], now) -> List[Dict[str, Any]]:
        return _newest_first(s for s in self.stories.values() if s["user_id"] in user_ids and s["expires_at"] >= now)


class FakeStorage:
    def __init__(self) -> None:
        self.objects: Dict[tuple, bytes] = {}

    async def upload_media(self, bucket: str, user_id: str, kind: str, media: str, data: bytes) -> str:
        storage_path, _ = build_storage_path(user_id, kind, media)
        self.objects[(bucket, storage_path)] = data
        return build_public_url(bucket, storage_path)

    async def delete_url(self, bucket: str, url: Optional[str]) -> int:
        storage_path = storage_path_from_url(bucket, url)
        return 1 if self.objects.pop((bucket, storage_path), None) is not None else 0
