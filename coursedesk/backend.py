"""
Backend access layer.

BackendService maps each course/feedback/category operation onto exactly
one REST call on a transport client and hands back whatever the client
returns. Nothing is transformed, cached, retried or caught here: transport
errors reach the caller unchanged.

Any client with get/post/put/delete taking a relative path (and a JSON body
for post/put) works. HttpClient is the requests-based default.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Optional, Protocol
from urllib.parse import urljoin

import requests

from coursedesk.config import Settings
from coursedesk.logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class Transport(Protocol):
    def get(self, path: str) -> Any: ...

    def post(self, path: str, body: Any) -> Any: ...

    def put(self, path: str, body: Any) -> Any: ...

    def delete(self, path: str) -> Any: ...


@dataclass
class ApiResponse:
    status_code: int
    data: Any = None
    headers: dict[str, str] = field(default_factory=dict)


def _json_body(body: Any) -> Any:
    # Course / Feedback objects are sent in their wire form
    if hasattr(body, "to_dict"):
        return body.to_dict()
    if is_dataclass(body) and not isinstance(body, type):
        return asdict(body)
    return body


class HttpClient:
    """
    Small JSON-over-HTTP client on top of requests.Session.

    Paths are resolved against base_url. Non-2xx answers raise
    requests.HTTPError (via raise_for_status), so a failed call is always
    an exception and never a "successful" response object.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        # urljoin drops the last path segment without a trailing slash
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpClient":
        return cls(settings.api_url, timeout=settings.timeout)

    def url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def request(self, method: str, path: str, body: Any = None) -> ApiResponse:
        url = self.url(path)
        logger.debug("%s %s", method, url)

        kwargs: dict[str, Any] = {"timeout": self.timeout}
        if body is not None:
            kwargs["json"] = _json_body(body)

        resp = self.session.request(method, url, **kwargs)
        logger.debug("%s %s -> %s", method, url, resp.status_code)
        resp.raise_for_status()

        data = resp.json() if resp.content else None
        return ApiResponse(status_code=resp.status_code, data=data, headers=dict(resp.headers))

    def get(self, path: str) -> ApiResponse:
        return self.request("GET", path)

    def post(self, path: str, body: Any) -> ApiResponse:
        return self.request("POST", path, body)

    def put(self, path: str, body: Any) -> ApiResponse:
        return self.request("PUT", path, body)

    def delete(self, path: str) -> ApiResponse:
        return self.request("DELETE", path)

    def close(self) -> None:
        self.session.close()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def _course_id(course: Any) -> Any:
    # a course without id is a caller error: let KeyError/AttributeError surface
    if isinstance(course, Mapping):
        return course["id"]
    return course.id


class BackendService:
    """
    One method per REST operation of the course backend.
    """

    def __init__(self, client: Transport) -> None:
        self.client = client

    def get_courses(self) -> Any:
        return self.client.get("courses")

    def get_course(self, course_id: Any) -> Any:
        return self.client.get(f"courses/{course_id}")

    def create_course(self, course: Any) -> Any:
        return self.client.post("courses", course)

    def update_course(self, course: Any) -> Any:
        return self.client.put(f"courses/{_course_id(course)}", course)

    def delete_course(self, course_id: Any) -> Any:
        return self.client.delete(f"courses/{course_id}")

    def get_categories(self) -> Any:
        return self.client.get("categories")

    def create_feedback(self, course_id: Any, feedback: Any) -> Any:
        return self.client.post(f"courses/{course_id}/feedback", feedback)

    def get_course_feedback(self, course_id: Any) -> Any:
        return self.client.get(f"courses/{course_id}/feedback")
