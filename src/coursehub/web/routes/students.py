"""Student roster endpoint.

Single URL /api/admin; the resource defaults to "students".

GET     ?student_id=S1          one student
GET     ?search=&sort=&order=   list (with count)
POST                            create
POST    ?action=change_password change password
PUT                             partial update, body carries student_id
DELETE  ?student_id=S1          delete
"""

from __future__ import annotations

import sqlite3

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from coursehub.config import load_app_config
from coursehub.core.security import hash_password, verify_password
from coursehub.db import students_repository as repo
from coursehub.db.database import transaction
from coursehub.utils.validators import is_blank, resolve_sort, sanitize, validate_key
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
    AuthError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from coursehub.web.schemas import (
    PasswordChange,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["students"])

CHANGE_PASSWORD_ACTION = "change_password"


def _student_key(ctx: RequestContext) -> str:
    """Resolve the student_id from query or body, or reject the request."""
    value = ctx.lookup("student_id", "id")
    if is_blank(value):
        raise ValidationError("Student ID is required")
    if not validate_key(value):
        raise ValidationError("Invalid Student ID")
    return value


def _require_student(ctx: RequestContext, student_id: str) -> None:
    if not repo.student_exists(ctx.conn, student_id):
        raise NotFoundError("Student not found")


def get_students(ctx: RequestContext) -> JSONResponse:
    """Get one student when an id is given, otherwise list with search/sort."""
    if "student_id" in ctx.params or "id" in ctx.params:
        student_id = _student_key(ctx)
        student = repo.get_student(ctx.conn, student_id)
        if student is None:
            raise NotFoundError("Student not found")
        return success(serialize(StudentResponse, student))

    sort, direction = resolve_sort(
        ctx.params.get("sort"),
        ctx.params.get("order"),
        repo.SORT_COLUMNS,
        repo.DEFAULT_SORT,
    )
    students = repo.list_students(
        ctx.conn, search=ctx.params.get("search"), sort=sort, direction=direction
    )
    return success(serialize_many(StudentResponse, students), count=len(students))


def create_student(ctx: RequestContext) -> JSONResponse:
    """Create a student with a hashed password."""
    payload = StudentCreate.model_validate(ctx.body)
    password_hash = hash_password(payload.password)

    with transaction(ctx.conn):
        if repo.find_conflict(ctx.conn, payload.student_id, payload.email):
            raise ConflictError("Student ID or email already exists")
        try:
            repo.insert_student(
                ctx.conn, payload.student_id, payload.name, payload.email, password_hash
            )
        except sqlite3.IntegrityError:
            raise ConflictError("Student ID or email already exists")

    logger.info("students.created", student_id=payload.student_id)
    student = repo.get_student(ctx.conn, payload.student_id)
    return success(
        serialize(StudentResponse, student),
        status_code=201,
        message="Student created successfully",
    )


def change_password(ctx: RequestContext) -> JSONResponse:
    """Verify the current password and store a hash of the new one."""
    payload = PasswordChange.model_validate(ctx.body)
    student_id = payload.student_id

    min_length = load_app_config().security.password_min_length
    if len(payload.new_password) < min_length:
        raise ValidationError(
            f"New password must be at least {min_length} characters long"
        )

    stored_hash = repo.get_password_hash(ctx.conn, student_id)
    if stored_hash is None:
        raise NotFoundError("Student not found")

    if not verify_password(payload.current_password, stored_hash):
        logger.info("students.password_rejected", student_id=student_id)
        raise AuthError("Current password is incorrect")

    new_hash = hash_password(payload.new_password)

    with transaction(ctx.conn):
        # The hash may have changed while the new one was computed
        if repo.get_password_hash(ctx.conn, student_id) != stored_hash:
            raise ConflictError("Password was changed concurrently, try again")
        if repo.set_password_hash(ctx.conn, student_id, new_hash) == 0:
            raise StoreError("Failed to update password")

    logger.info("students.password_changed", student_id=student_id)
    return success({"student_id": student_id}, message="Password updated successfully")


def post_students(ctx: RequestContext) -> JSONResponse:
    action = ctx.params.get("action")
    if not action:
        return create_student(ctx)
    if action == CHANGE_PASSWORD_ACTION:
        return change_password(ctx)
    raise ValidationError(f"Unknown action: {sanitize(action)}")


def update_student(ctx: RequestContext) -> JSONResponse:
    """Update name and/or email; only fields present in the body change."""
    student_id = _student_key(ctx)
    fields = StudentUpdate.model_validate(ctx.body).changes()

    with transaction(ctx.conn):
        _require_student(ctx, student_id)

        if not fields:
            raise ValidationError("No fields to update")

        if "email" in fields and repo.email_taken_by_other(
            ctx.conn, fields["email"], student_id
        ):
            raise ConflictError("Email already exists")

        try:
            affected = repo.update_student(ctx.conn, student_id, fields)
        except sqlite3.IntegrityError:
            raise ConflictError("Email already exists")

    message = "Student updated successfully" if affected else "No changes applied"
    logger.info("students.updated", student_id=student_id, fields=sorted(fields))
    student = repo.get_student(ctx.conn, student_id)
    return success(serialize(StudentResponse, student), message=message)


def delete_student(ctx: RequestContext) -> JSONResponse:
    student_id = _student_key(ctx)

    with transaction(ctx.conn):
        _require_student(ctx, student_id)
        if repo.delete_student(ctx.conn, student_id) == 0:
            raise StoreError("Failed to delete student")

    logger.info("students.deleted", student_id=student_id)
    return success({"student_id": student_id}, message="Student deleted successfully")


HANDLERS: ResourceTable = {
    "students": {
        "GET": get_students,
        "POST": post_students,
        "PUT": update_student,
        "DELETE": delete_student,
    },
}


@router.api_route("", methods=ENDPOINT_METHODS)
async def students_endpoint(request: Request) -> JSONResponse:
    """Student management endpoint."""
    return await dispatch(request, "admin", HANDLERS, default_resource="students")
