"""Discussion board endpoint (resources: topics, replies).

Topics and replies are keyed by topic_id / reply_id. Callers may supply
their own key; when they don't, an opaque one is generated. Keys are
stored exactly as sent, so only letters, digits, "_", "." and "-" are
accepted.
"""

from __future__ import annotations

import sqlite3
import uuid

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from coursehub.db import discussion_repository as repo
from coursehub.db.database import transaction
from coursehub.utils.validators import is_blank, resolve_sort, validate_key
from coursehub.web.dispatch import (
    ENDPOINT_METHODS,
    RequestContext,
    ResourceTable,
    dispatch,
    serialize,
    serialize_many,
    success,
)
from coursehub.web.errors import (
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from coursehub.web.schemas import (
    ReplyCreate,
    ReplyResponse,
    TopicCreate,
    TopicResponse,
    TopicUpdate,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/discussion", tags=["discussion"])


def generate_key(prefix: str) -> str:
    """Opaque external key, e.g. "topic_3f2a9c1b7d4e"."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _external_key(value, label: str) -> str:
    if is_blank(value):
        raise ValidationError(f"{label} is required")
    if not validate_key(value):
        raise ValidationError(f"Invalid {label}")
    return value


# =============================================================================
# TOPICS
# =============================================================================


def get_topics(ctx: RequestContext) -> JSONResponse:
    """One topic by ?id=, or the list (newest first by default)."""
    if "id" in ctx.params:
        topic_id = _external_key(ctx.params["id"], "Topic ID")
        topic = repo.get_topic(ctx.conn, topic_id)
        if topic is None:
            raise NotFoundError("Topic not found")
        return success(serialize(TopicResponse, topic))

    sort, direction = resolve_sort(
        ctx.params.get("sort"),
        ctx.params.get("order"),
        repo.SORT_COLUMNS,
        repo.DEFAULT_SORT,
        repo.DEFAULT_ORDER,
    )
    topics = repo.list_topics(
        ctx.conn, search=ctx.params.get("search"), sort=sort, direction=direction
    )
    return success(serialize_many(TopicResponse, topics))


def create_topic(ctx: RequestContext) -> JSONResponse:
    payload = TopicCreate.model_validate(ctx.body)
    topic_id = payload.topic_id or generate_key("topic")

    with transaction(ctx.conn):
        if repo.topic_exists(ctx.conn, topic_id):
            raise ConflictError("Topic ID already exists")
        try:
            repo.insert_topic(
                ctx.conn, topic_id, payload.subject, payload.message, payload.author
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Topic ID already exists")

    logger.info("topics.created", topic_id=topic_id)
    topic = repo.get_topic(ctx.conn, topic_id)
    return success(
        serialize(TopicResponse, topic),
        status_code=201,
        message="Topic created successfully",
    )


def update_topic(ctx: RequestContext) -> JSONResponse:
    """Partial update of subject and/or message."""
    topic_id = _external_key(ctx.lookup("topic_id", "id"), "Topic ID")
    fields = TopicUpdate.model_validate(ctx.body).changes()

    with transaction(ctx.conn):
        if not repo.topic_exists(ctx.conn, topic_id):
            raise NotFoundError("Topic not found")
        if not fields:
            raise ValidationError("No fields to update")

        affected = repo.update_topic(ctx.conn, topic_id, fields)

    message = "Topic updated successfully" if affected else "No changes applied"
    logger.info("topics.updated", topic_id=topic_id, fields=sorted(fields))
    topic = repo.get_topic(ctx.conn, topic_id)
    return success(serialize(TopicResponse, topic), message=message)


def delete_topic(ctx: RequestContext) -> JSONResponse:
    """Delete a topic together with all of its replies."""
    topic_id = _external_key(ctx.lookup("id", "topic_id"), "Topic ID")

    with transaction(ctx.conn):
        if not repo.topic_exists(ctx.conn, topic_id):
            raise NotFoundError("Topic not found")
        if repo.delete_topic(ctx.conn, topic_id) == 0:
            raise StoreError("Failed to delete topic")

    logger.info("topics.deleted", topic_id=topic_id)
    return success(
        {"topic_id": topic_id},
        message="Topic and associated replies deleted successfully",
    )


# =============================================================================
# REPLIES
# =============================================================================


def get_replies(ctx: RequestContext) -> JSONResponse:
    """Replies of a topic; an unknown topic yields an empty list."""
    topic_id = _external_key(ctx.params.get("topic_id"), "Topic ID")
    replies = repo.list_replies(ctx.conn, topic_id)
    return success(serialize_many(ReplyResponse, replies))


def create_reply(ctx: RequestContext) -> JSONResponse:
    payload = ReplyCreate.model_validate(ctx.body)
    reply_id = payload.reply_id or generate_key("reply")

    with transaction(ctx.conn):
        if not repo.topic_exists(ctx.conn, payload.topic_id):
            raise NotFoundError("Parent topic not found")
        if repo.reply_exists(ctx.conn, reply_id):
            raise ConflictError("Reply ID already exists")
        try:
            repo.insert_reply(
                ctx.conn, reply_id, payload.topic_id, payload.text, payload.author
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Reply ID already exists")

    logger.info("replies.created", reply_id=reply_id, topic_id=payload.topic_id)
    reply = repo.get_reply(ctx.conn, reply_id)
    return success(
        serialize(ReplyResponse, reply),
        status_code=201,
        message="Reply created successfully",
    )


def delete_reply(ctx: RequestContext) -> JSONResponse:
    reply_id = _external_key(ctx.lookup("id", "reply_id"), "Reply ID")

    with transaction(ctx.conn):
        if not repo.reply_exists(ctx.conn, reply_id):
            raise NotFoundError("Reply not found")
        if repo.delete_reply(ctx.conn, reply_id) == 0:
            raise StoreError("Failed to delete reply")

    return success({"reply_id": reply_id}, message="Reply deleted successfully")


HANDLERS: ResourceTable = {
    "topics": {
        "GET": get_topics,
        "POST": create_topic,
        "PUT": update_topic,
        "DELETE": delete_topic,
    },
    "replies": {
        "GET": get_replies,
        "POST": create_reply,
        "DELETE": delete_reply,
    },
}


@router.api_route("", methods=ENDPOINT_METHODS)
async def discussion_endpoint(request: Request) -> JSONResponse:
    """Discussion topics and replies."""
    return await dispatch(request, "discussion", HANDLERS)
