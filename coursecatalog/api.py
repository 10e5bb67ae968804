"""
HTTP client for the remote catalog store.

The store is the source of truth; this module only speaks its REST routes:

    GET    /courses                                  list courses
    POST   /courses                                  create course
    GET    /courses/{courseId}                       get course
    DELETE /courses/{courseId}                       delete course
    GET    /instances[?year=&semester=]              list instances
    POST   /instances                                create instance
    GET    /instances/{year}/{semester}/{courseId}   get instance
    DELETE /instances/{year}/{semester}/{courseId}   delete instance

Failures are mapped onto the error taxonomy in coursecatalog.errors.
Nothing is retried: one call = one request.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import requests

from coursecatalog.config import DEFAULT_API_URL
from coursecatalog.errors import (
    CatalogError,
    DependencyConflictError,
    DuplicateError,
    FormatError,
    NotFoundError,
    RequiredFieldError,
    TransportError,
)
from coursecatalog.model import Course, CourseInstance

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

# first match wins; only applied to 4xx responses
_MESSAGE_RULES: list[tuple[tuple[str, ...], type[CatalogError]]] = [
    (("already exists", "duplicate"), DuplicateError),
    (("prerequisite", "depend"), DependencyConflictError),
    (("not found",), NotFoundError),
    (("required",), RequiredFieldError),
    (("format",), FormatError),
]

_STATUS_RULES: dict[int, type[CatalogError]] = {
    404: NotFoundError,
}


def map_remote_error(status: int, message: str, conflict: type[CatalogError] = DuplicateError) -> CatalogError:
    """
    Turn a store failure into the nearest taxonomy error, keeping message and status.

    `conflict` is the error a bare 409 maps to; it depends on the operation
    (a refused delete is a dependency conflict, a refused create a duplicate).
    """
    if 400 <= status < 500:
        lowered = message.lower()
        for needles, error_cls in _MESSAGE_RULES:
            if any(n in lowered for n in needles):
                return error_cls(message, code=status)
        error_cls = conflict if status == 409 else _STATUS_RULES.get(status)
        if error_cls is not None:
            return error_cls(message, code=status)
    return TransportError(message, code=status)


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = {"message": "Unknown error occurred"}
    message = data.get("message") if isinstance(data, dict) else None
    return str(message) if message else f"HTTP {resp.status_code}"


def _handle_response(resp: requests.Response, conflict: type[CatalogError] = DuplicateError) -> Any:
    """
    Return the decoded JSON body, None for empty / non-JSON bodies
    (e.g. DELETE), or raise the mapped CatalogError.
    """
    if not resp.ok:
        error = map_remote_error(resp.status_code, _error_message(resp), conflict)
        logger.warning("store rejected %s %s: %s (%s)", resp.request.method, resp.url, error, error.code)
        raise error

    content_type = resp.headers.get("content-type", "")
    if "application/json" in content_type and resp.content:
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"Malformed response from the catalog store: {exc}", code=resp.status_code) from exc
    return None


def _many(build: Callable[[dict[str, Any]], Any]) -> Callable[[Any], list[Any]]:
    def decode(data: Any) -> list[Any]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON list, got {type(data).__name__}")
        return [build(x) for x in data]

    return decode


def _optional(build: Callable[[dict[str, Any]], Any]) -> Callable[[Any], Any]:
    # no body (or a non-object body) reads as None
    def decode(data: Any) -> Any:
        return build(data) if isinstance(data, dict) else None

    return decode


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class RemoteStore:
    """
    Thin wrapper around a requests.Session bound to the store base URL.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        decode: Optional[Callable[[Any], Any]] = None,
        conflict: type[CatalogError] = DuplicateError,
        **kwargs: Any,
    ) -> Any:
        """
        One request/response exchange. `decode` turns the JSON body into entities;
        a body of the wrong shape becomes a TransportError like any other store failure.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("store unreachable: %s %s: %s", method, url, exc)
            raise TransportError(f"Could not reach the catalog store: {exc}", code=0) from exc

        data = _handle_response(resp, conflict)
        if decode is None:
            return data
        try:
            return decode(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("malformed body from %s %s: %r", method, url, exc)
            raise TransportError(f"Malformed response from the catalog store: {exc!r}", code=resp.status_code) from exc

    # --- courses -----------------------------------------------------------

    def list_courses(self) -> list[Course]:
        return self._request("GET", "/courses", decode=_many(Course.from_dict))

    def get_course(self, course_id: str) -> Course:
        data = self._request("GET", f"/courses/{course_id}", decode=_optional(Course.from_dict))
        if data is None:
            raise NotFoundError(f"Course {course_id} not found")
        return data

    def create_course(self, course: Course) -> Course:
        data = self._request("POST", "/courses", decode=_optional(Course.from_dict), json=course.to_dict())
        # some stores answer 201 without a body; echo what was sent
        return data if data is not None else course

    def delete_course(self, course_id: str) -> None:
        self._request("DELETE", f"/courses/{course_id}", conflict=DependencyConflictError)

    # --- instances ---------------------------------------------------------

    def list_instances(self, year: Optional[int] = None, semester: Optional[int] = None) -> list[CourseInstance]:
        params: dict[str, str] = {}
        if year:
            params["year"] = str(year)
        if semester:
            params["semester"] = str(int(semester))
        return self._request("GET", "/instances", decode=_many(CourseInstance.from_dict), params=params or None)

    def get_instance(self, year: int, semester: int, course_id: str) -> CourseInstance:
        data = self._request(
            "GET", f"/instances/{year}/{int(semester)}/{course_id}", decode=_optional(CourseInstance.from_dict)
        )
        if data is None:
            raise NotFoundError(f"Instance {course_id} {year}/{int(semester)} not found")
        return data

    def create_instance(self, course_id: str, year: int, semester: int) -> CourseInstance:
        payload = {"courseId": course_id, "year": year, "semester": int(semester)}
        data = self._request("POST", "/instances", decode=_optional(CourseInstance.from_dict), json=payload)
        return data if data is not None else CourseInstance.from_dict(payload)

    def delete_instance(self, year: int, semester: int, course_id: str) -> None:
        self._request("DELETE", f"/instances/{year}/{int(semester)}/{course_id}")
