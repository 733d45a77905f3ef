"""Aggregation fragments standing in for relational joins."""

from typing import Any, Dict, List


PROFILE_SUMMARY = {"_id": 0, "id": "$_id", "username": 1, "profile_image_url": 1}
PROFILE_CARD = {"_id": 0, "id": "$_id", "username": 1, "full_name": 1, "profile_image_url": 1}


def join_profile(local_field: str, as_field: str = "profiles", projection: Dict[str, Any] = PROFILE_SUMMARY) -> List[Dict[str, Any]]:
    """Attach the profile referenced by ``local_field`` as a single embedded document (or null)."""
    return [
        {
            "$lookup": {
                "from": "profiles",
                "localField": local_field,
                "foreignField": "_id",
                "as": as_field,
                "pipeline": [{"$project": projection}],
            }
        },
        {"$set": {as_field: {"$ifNull": [{"$arrayElemAt": [f"${as_field}", 0]}, None]}}},
    ]


def page(limit: int, offset: int = 0) -> List[Dict[str, Any]]:
    stages: List[Dict[str, Any]] = []
    if offset:
        stages.append({"$skip": offset})
    stages.append({"$limit": limit})
    return stages


def events_on_owner_posts(
    source: str,
    owner_id: str,
    post_type: str,
    limit: int,
    fields: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """Newest rows of ``source`` (likes/comments) on ``owner_id``'s posts, excluding the owner's own rows.

    Runs against the ``posts`` collection so the ownership/type filter is applied
    before fanning out to the event rows.
    """
    event = {"_id": "$event._id", "user_id": "$event.user_id", "post_id": "$event.post_id", "created_at": "$event.created_at"}
    event.update(fields)
    event["posts"] = {"user_id": "$user_id", "caption": "$caption", "image_url": "$image_url", "post_type": "$post_type"}
    return [
        {"$match": {"user_id": owner_id, "post_type": post_type}},
        {"$project": {"user_id": 1, "caption": 1, "image_url": 1, "post_type": 1}},
        {
            "$lookup": {
                "from": source,
                "localField": "_id",
                "foreignField": "post_id",
                "as": "event",
                "pipeline": [{"$match": {"user_id": {"$ne": owner_id}}}],
            }
        },
        {"$unwind": "$event"},
        {"$sort": {"event.created_at": -1}},
        {"$limit": limit},
        {"$replaceWith": event},
        *join_profile("user_id"),
    ]
