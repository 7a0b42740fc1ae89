"""Client-side synchronization with the coursehub endpoints."""

from coursehub.client.sync import (
    RESOURCES,
    ApiRequestError,
    CourseClient,
    ResourceSpec,
    ResourceView,
)

__all__ = [
    "RESOURCES",
    "ApiRequestError",
    "CourseClient",
    "ResourceSpec",
    "ResourceView",
]
