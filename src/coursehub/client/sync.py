"""HTTP client and list synchronization for the coursehub endpoints.

CourseClient speaks the envelope contract: success responses carry
{"success": true, "data": ...}; anything else raises ApiRequestError.

ResourceView keeps the locally rendered list for one resource and
re-fetches it from the endpoint after every mutation instead of editing
it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResourceSpec:
    """How to reach one resource and how to render it."""

    name: str
    path: str
    resource: str
    key_field: str
    columns: tuple[str, ...]
    id_param: str = "id"
    parent_param: str | None = None


RESOURCES: dict[str, ResourceSpec] = {
    "students": ResourceSpec(
        name="students",
        path="/api/admin",
        resource="students",
        key_field="student_id",
        id_param="student_id",
        columns=("student_id", "name", "email", "created_at"),
    ),
    "assignments": ResourceSpec(
        name="assignments",
        path="/api/assignments",
        resource="assignments",
        key_field="id",
        columns=("id", "title", "due_date", "files", "updated_at"),
    ),
    "assignment-comments": ResourceSpec(
        name="assignment-comments",
        path="/api/assignments",
        resource="comments",
        key_field="id",
        parent_param="assignment_id",
        columns=("id", "assignment_id", "author", "text", "created_at"),
    ),
    "topics": ResourceSpec(
        name="topics",
        path="/api/discussion",
        resource="topics",
        key_field="topic_id",
        columns=("topic_id", "subject", "author", "created_at"),
    ),
    "replies": ResourceSpec(
        name="replies",
        path="/api/discussion",
        resource="replies",
        key_field="reply_id",
        parent_param="topic_id",
        columns=("reply_id", "topic_id", "author", "text", "created_at"),
    ),
    "weeks": ResourceSpec(
        name="weeks",
        path="/api/weekly",
        resource="weeks",
        key_field="id",
        columns=("id", "title", "start_date", "links", "updated_at"),
    ),
    "week-comments": ResourceSpec(
        name="week-comments",
        path="/api/weekly",
        resource="comments",
        key_field="id",
        parent_param="week_id",
        columns=("id", "week_id", "author", "text", "created_at"),
    ),
}


class ApiRequestError(Exception):
    """Raised when an endpoint answers with a failure envelope or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CourseClient:
    """Thin envelope-aware wrapper around httpx.

    Args:
        base_url: API root, e.g. "http://127.0.0.1:8000"
        http: Pre-built httpx.Client (tests pass a FastAPI TestClient)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        http: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CourseClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(
        self,
        method: str,
        spec: ResourceSpec,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and unwrap the envelope.

        Returns:
            The "data" member of the success envelope

        Raises:
            ApiRequestError: On transport failure or failure envelope
        """
        query = {"resource": spec.resource}
        query.update({k: v for k, v in (params or {}).items() if v is not None})

        try:
            response = self._http.request(method, spec.path, params=query, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("client.transport_error", path=spec.path, error=str(exc))
            raise ApiRequestError(f"Could not reach the API: {exc}") from exc

        try:
            envelope = response.json()
        except ValueError:
            raise ApiRequestError(
                f"Unexpected response ({response.status_code})", response.status_code
            )

        if not response.is_success or not envelope.get("success"):
            message = envelope.get("message") or envelope.get("error") or "Request failed"
            raise ApiRequestError(message, response.status_code)

        return envelope.get("data")

    def list_items(self, spec: ResourceSpec, **params: Any) -> list[dict[str, Any]]:
        return self.request("GET", spec, params=params) or []

    def get(self, spec: ResourceSpec, item_id: str | int) -> dict[str, Any]:
        return self.request("GET", spec, params={spec.id_param: item_id})

    def create(self, spec: ResourceSpec, payload: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", spec, payload=payload)

    def update(
        self, spec: ResourceSpec, item_id: str | int, changes: dict[str, Any]
    ) -> dict[str, Any]:
        return self.request("PUT", spec, payload={**changes, spec.key_field: item_id})

    def delete(self, spec: ResourceSpec, item_id: str | int) -> dict[str, Any]:
        return self.request("DELETE", spec, params={spec.id_param: item_id})

    def change_password(
        self, student_id: str, current_password: str, new_password: str
    ) -> dict[str, Any]:
        return self.request(
            "POST",
            RESOURCES["students"],
            params={"action": "change_password"},
            payload={
                "student_id": student_id,
                "current_password": current_password,
                "new_password": new_password,
            },
        )


@dataclass
class ResourceView:
    """Locally held list for one resource, re-synchronized after mutations.

    Example:
        view = ResourceView(client, RESOURCES["replies"], filters={"topic_id": "T1"})
        view.refresh()
        view.create({"topic_id": "T1", "text": "Thanks", "author": "ana"})
        view.items  # fetched again from the endpoint
    """

    client: CourseClient
    spec: ResourceSpec
    filters: dict[str, Any] = field(default_factory=dict)
    items: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def refresh(self) -> list[dict[str, Any]]:
        """Re-fetch the list. Child lists without a parent filter stay empty."""
        if self.spec.parent_param and not self.filters.get(self.spec.parent_param):
            self.items = []
            return self.items
        self.items = self.client.list_items(self.spec, **self.filters)
        return self.items

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        created = self.client.create(self.spec, payload)
        self.refresh()
        return created

    def update(self, item_id: str | int, changes: dict[str, Any]) -> dict[str, Any]:
        updated = self.client.update(self.spec, item_id, changes)
        self.refresh()
        return updated

    def delete(self, item_id: str | int) -> dict[str, Any]:
        deleted = self.client.delete(self.spec, item_id)
        self.refresh()
        return deleted
