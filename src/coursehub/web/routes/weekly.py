"""Weekly breakdown endpoint (resources: weeks, comments).

The resource defaults to "weeks" when the query omits it.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from coursehub.db import weekly_repository as repo
from coursehub.db.database import transaction
from coursehub.utils.validators import resolve_sort
from coursehub.web.dispatch import (
    ENDPOINT_METHODS,
    RequestContext,
    ResourceTable,
    dispatch,
    parse_id,
    serialize,
    serialize_many,
    success,
)
from coursehub.web.errors import NotFoundError, StoreError, ValidationError
from coursehub.web.schemas import (
    WeekCommentCreate,
    WeekCommentResponse,
    WeekCreate,
    WeekResponse,
    WeekUpdate,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/weekly", tags=["weekly"])


def _require_week(ctx: RequestContext, week_id: int) -> None:
    if not repo.week_exists(ctx.conn, week_id):
        raise NotFoundError("Week not found")


# =============================================================================
# WEEKS
# =============================================================================


def get_weeks(ctx: RequestContext) -> JSONResponse:
    if "id" in ctx.params:
        week_id = parse_id(ctx.params["id"], "id")
        week = repo.get_week(ctx.conn, week_id)
        if week is None:
            raise NotFoundError("Week not found")
        return success(serialize(WeekResponse, week))

    sort, direction = resolve_sort(
        ctx.params.get("sort"),
        ctx.params.get("order"),
        repo.SORT_COLUMNS,
        repo.DEFAULT_SORT,
    )
    weeks = repo.list_weeks(
        ctx.conn, search=ctx.params.get("search"), sort=sort, direction=direction
    )
    return success(serialize_many(WeekResponse, weeks))


def create_week(ctx: RequestContext) -> JSONResponse:
    """Create a week; description must be present but may be empty."""
    payload = WeekCreate.model_validate(ctx.body)

    with transaction(ctx.conn):
        week_id = repo.insert_week(
            ctx.conn,
            payload.title,
            payload.start_date,
            payload.description,
            payload.links or [],
        )

    logger.info("weeks.created", week_id=week_id)
    week = repo.get_week(ctx.conn, week_id)
    return success(
        serialize(WeekResponse, week),
        status_code=201,
        message="Week created successfully",
    )


def update_week(ctx: RequestContext) -> JSONResponse:
    """Partial update; responds with the refreshed week."""
    week_id = parse_id(ctx.lookup("id"), "id")
    fields = WeekUpdate.model_validate(ctx.body).changes()

    with transaction(ctx.conn):
        _require_week(ctx, week_id)
        if not fields:
            raise ValidationError("No fields to update")

        affected = repo.update_week(ctx.conn, week_id, fields)

    message = "Week updated successfully" if affected else "No changes applied"
    logger.info("weeks.updated", week_id=week_id, fields=sorted(fields))
    week = repo.get_week(ctx.conn, week_id)
    return success(serialize(WeekResponse, week), message=message)


def delete_week(ctx: RequestContext) -> JSONResponse:
    week_id = parse_id(ctx.lookup("id"), "id")

    with transaction(ctx.conn):
        _require_week(ctx, week_id)
        if repo.delete_week(ctx.conn, week_id) == 0:
            raise StoreError("Failed to delete week")

    logger.info("weeks.deleted", week_id=week_id)
    return success({"id": week_id}, message="Week and its comments deleted")


# =============================================================================
# COMMENTS
# =============================================================================


def get_comments(ctx: RequestContext) -> JSONResponse:
    week_id = parse_id(ctx.params.get("week_id"), "week_id")
    comments = repo.list_comments(ctx.conn, week_id)
    return success(serialize_many(WeekCommentResponse, comments))


def create_comment(ctx: RequestContext) -> JSONResponse:
    payload = WeekCommentCreate.model_validate(ctx.body)

    with transaction(ctx.conn):
        _require_week(ctx, payload.week_id)
        comment_id = repo.insert_comment(
            ctx.conn, payload.week_id, payload.author, payload.text
        )

    logger.info("weeks.comment_created", week_id=payload.week_id, comment_id=comment_id)
    comment = repo.get_comment(ctx.conn, comment_id)
    return success(serialize(WeekCommentResponse, comment), status_code=201)


def delete_comment(ctx: RequestContext) -> JSONResponse:
    comment_id = parse_id(ctx.lookup("id"), "id")

    with transaction(ctx.conn):
        if repo.get_comment(ctx.conn, comment_id) is None:
            raise NotFoundError("Comment not found")
        if repo.delete_comment(ctx.conn, comment_id) == 0:
            raise StoreError("Failed to delete comment")

    return success({"id": comment_id}, message="Comment deleted")


HANDLERS: ResourceTable = {
    "weeks": {
        "GET": get_weeks,
        "POST": create_week,
        "PUT": update_week,
        "DELETE": delete_week,
    },
    "comments": {
        "GET": get_comments,
        "POST": create_comment,
        "DELETE": delete_comment,
    },
}


@router.api_route("", methods=ENDPOINT_METHODS)
async def weekly_endpoint(request: Request) -> JSONResponse:
    """Weeks and week comments."""
    return await dispatch(request, "weekly", HANDLERS, default_resource="weeks")
