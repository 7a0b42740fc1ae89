"""Assignments endpoint (resources: assignments, comments)."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from coursehub.db import assignments_repository as repo
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
    AssignmentCommentCreate,
    AssignmentCommentResponse,
    AssignmentCreate,
    AssignmentResponse,
    AssignmentUpdate,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


def _require_assignment(ctx: RequestContext, assignment_id: int) -> None:
    if not repo.assignment_exists(ctx.conn, assignment_id):
        raise NotFoundError("Assignment not found")


# =============================================================================
# ASSIGNMENTS
# =============================================================================


def get_assignments(ctx: RequestContext) -> JSONResponse:
    """One assignment by ?id=, or the filtered/sorted list."""
    if "id" in ctx.params:
        assignment_id = parse_id(ctx.params["id"], "Assignment ID")
        assignment = repo.get_assignment(ctx.conn, assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment not found")
        return success(serialize(AssignmentResponse, assignment))

    sort, direction = resolve_sort(
        ctx.params.get("sort"),
        ctx.params.get("order"),
        repo.SORT_COLUMNS,
        repo.DEFAULT_SORT,
    )
    assignments = repo.list_assignments(
        ctx.conn, search=ctx.params.get("search"), sort=sort, direction=direction
    )
    return success(serialize_many(AssignmentResponse, assignments))


def create_assignment(ctx: RequestContext) -> JSONResponse:
    payload = AssignmentCreate.model_validate(ctx.body)

    with transaction(ctx.conn):
        assignment_id = repo.insert_assignment(
            ctx.conn,
            payload.title,
            payload.description,
            payload.due_date,
            payload.files or [],
        )

    logger.info("assignments.created", assignment_id=assignment_id)
    assignment = repo.get_assignment(ctx.conn, assignment_id)
    return success(
        serialize(AssignmentResponse, assignment),
        status_code=201,
        message="Assignment created successfully",
    )


def update_assignment(ctx: RequestContext) -> JSONResponse:
    """Partial update; only fields present in the body change."""
    assignment_id = parse_id(ctx.lookup("id"), "id")
    fields = AssignmentUpdate.model_validate(ctx.body).changes()

    with transaction(ctx.conn):
        _require_assignment(ctx, assignment_id)
        if not fields:
            raise ValidationError("No fields to update")

        affected = repo.update_assignment(ctx.conn, assignment_id, fields)

    message = "Assignment updated successfully" if affected else "No changes applied"
    logger.info("assignments.updated", assignment_id=assignment_id, fields=sorted(fields))
    assignment = repo.get_assignment(ctx.conn, assignment_id)
    return success(serialize(AssignmentResponse, assignment), message=message)


def delete_assignment(ctx: RequestContext) -> JSONResponse:
    """Delete an assignment and its comments."""
    assignment_id = parse_id(ctx.lookup("id"), "Assignment ID")

    with transaction(ctx.conn):
        _require_assignment(ctx, assignment_id)
        if repo.delete_assignment(ctx.conn, assignment_id) == 0:
            raise StoreError("Failed to delete assignment")

    logger.info("assignments.deleted", assignment_id=assignment_id)
    return success({"id": assignment_id}, message="Assignment deleted successfully")


# =============================================================================
# COMMENTS
# =============================================================================


def get_comments(ctx: RequestContext) -> JSONResponse:
    """Comments of one assignment, oldest first."""
    assignment_id = parse_id(ctx.params.get("assignment_id"), "assignment_id")
    comments = repo.list_comments(ctx.conn, assignment_id)
    return success(serialize_many(AssignmentCommentResponse, comments))


def create_comment(ctx: RequestContext) -> JSONResponse:
    payload = AssignmentCommentCreate.model_validate(ctx.body)

    with transaction(ctx.conn):
        _require_assignment(ctx, payload.assignment_id)
        comment_id = repo.insert_comment(
            ctx.conn, payload.assignment_id, payload.author, payload.text
        )

    logger.info(
        "assignments.comment_created",
        assignment_id=payload.assignment_id,
        comment_id=comment_id,
    )
    comment = repo.get_comment(ctx.conn, comment_id)
    return success(serialize(AssignmentCommentResponse, comment), status_code=201)


def delete_comment(ctx: RequestContext) -> JSONResponse:
    comment_id = parse_id(ctx.lookup("id"), "Comment ID")

    with transaction(ctx.conn):
        if repo.get_comment(ctx.conn, comment_id) is None:
            raise NotFoundError("Comment not found")
        if repo.delete_comment(ctx.conn, comment_id) == 0:
            raise StoreError("Failed to delete comment")

    return success({"id": comment_id}, message="Comment deleted successfully")


HANDLERS: ResourceTable = {
    "assignments": {
        "GET": get_assignments,
        "POST": create_assignment,
        "PUT": update_assignment,
        "DELETE": delete_assignment,
    },
    "comments": {
        "GET": get_comments,
        "POST": create_comment,
        "DELETE": delete_comment,
    },
}


@router.api_route("", methods=ENDPOINT_METHODS)
async def assignments_endpoint(request: Request) -> JSONResponse:
    """Assignments and assignment comments."""
    return await dispatch(request, "assignments", HANDLERS)
