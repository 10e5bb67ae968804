"""
Catalog guard.

Pure validation consulted before every mutation:
current state + proposed change -> normalized value, or a raised CatalogError.

Nothing here touches the remote store or the in-process mirror;
the caller performs the mutation after a positive decision.

Rules:
- course id: 2-4 letters followed by exactly 3 digits (input is upper-cased first)
- title / description: non-empty after trimming
- a course listed as a prerequisite by another course cannot be deleted
- an instance key (course, year, semester) must reference a known course and be unique
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from coursecatalog.errors import (
    DependencyConflictError,
    DuplicateError,
    FormatError,
    NotFoundError,
    RequiredFieldError,
)
from coursecatalog.model import (
    Course,
    CourseInstance,
    CreateCourseCommand,
    InstanceKey,
    Semester,
    normalize_prerequisites,
)
from coursecatalog.queries import dependents_of

logger = logging.getLogger(__name__)

COURSE_ID_PATTERN = re.compile(r"[A-Z]{2,4}[0-9]{3}")


def validate_course_id(course_id: Optional[str], catalog: Mapping[str, Course]) -> str:
    """
    Return the upper-cased id, or raise RequiredFieldError / FormatError / DuplicateError.

    Only case is normalized. Surrounding whitespace is not stripped,
    so " CS101" is a format error just like the form would report it.
    """
    raw = "" if course_id is None else str(course_id)
    if not raw.strip():
        raise RequiredFieldError("Course ID is required")

    normalized = raw.upper()
    if not COURSE_ID_PATTERN.fullmatch(normalized):
        logger.debug("rejected course id %r: bad format", raw)
        raise FormatError(f"Course ID should be in format like CS101, MATH201 (got {raw!r})")

    if normalized in catalog:
        logger.debug("rejected course id %s: already exists", normalized)
        raise DuplicateError(f"Course {normalized} already exists")

    return normalized


def validate_course_fields(title: Optional[str], description: Optional[str]) -> tuple[str, str]:
    """
    Return (title, description) trimmed, or raise RequiredFieldError for the first empty one.
    """
    t = (title or "").strip()
    if not t:
        raise RequiredFieldError("Course title is required")
    d = (description or "").strip()
    if not d:
        raise RequiredFieldError("Course description is required")
    return t, d


def validate_create_course(command: CreateCourseCommand, catalog: Mapping[str, Course]) -> Course:
    """
    Validate a whole create-course command and return the Course to persist.

    Prerequisite ids are normalized but not checked for existence or cycles.
    """
    course_id = validate_course_id(command.course_id, catalog)
    title, description = validate_course_fields(command.title, command.description)
    return Course(course_id, title, description, normalize_prerequisites(command.prerequisites))


def ensure_deletable(course_id: str, catalog: Mapping[str, Course]) -> None:
    """
    Raise DependencyConflictError if any course lists `course_id` as a prerequisite.

    Instances of the course are not considered here.
    """
    dependents = [c.course_id for c in dependents_of(course_id, catalog.values())]
    if dependents:
        logger.debug("course %s is required by %s", course_id, ", ".join(dependents))
        raise DependencyConflictError(
            f"Course {course_id} cannot be deleted: it is a prerequisite for {', '.join(dependents)}",
            dependents=dependents,
        )


def can_delete_course(course_id: str, catalog: Mapping[str, Course]) -> bool:
    try:
        ensure_deletable(course_id, catalog)
    except DependencyConflictError:
        return False
    return True


def _coerce_year(year: Any) -> int:
    if isinstance(year, bool):
        raise FormatError(f"Invalid year: {year!r}")
    try:
        value = int(str(year).strip()) if isinstance(year, str) else int(year)
    except (TypeError, ValueError):
        raise FormatError(f"Invalid year: {year!r}") from None
    if value <= 0:
        raise FormatError(f"Year must be a positive number (got {value})")
    return value


def validate_instance_key(
    course_id: Optional[str],
    year: Any,
    semester: Any,
    catalog: Mapping[str, Course],
    instances: Iterable[CourseInstance],
) -> InstanceKey:
    """
    Return the normalized InstanceKey for a new instance.

    Order of checks: required fields, formats, unknown course, duplicate key.
    """
    cid = "" if course_id is None else str(course_id).strip().upper()
    if not cid:
        raise RequiredFieldError("Please select a course")
    if year is None or (isinstance(year, str) and not year.strip()):
        raise RequiredFieldError("Please select a year")
    if semester is None or (isinstance(semester, str) and not semester.strip()):
        raise RequiredFieldError("Please select a semester")

    y = _coerce_year(year)
    try:
        sem = Semester.parse(semester)
    except ValueError:
        raise FormatError(f"Semester must be 1 (Spring) or 2 (Fall) (got {semester!r})") from None

    if cid not in catalog:
        raise NotFoundError(f"Course {cid} not found")

    key = InstanceKey(cid, y, int(sem))
    for inst in instances:
        if inst.key == key:
            logger.debug("rejected instance %s %s/%s: duplicate", cid, y, int(sem))
            raise DuplicateError(f"Course {cid} is already scheduled for {sem.display_name} {y}")

    return key
