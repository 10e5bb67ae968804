"""
Local JSON-file catalog store.

Offers the same operations as the HTTP RemoteStore, persisted in one file:

    {"courses": [...], "instances": [...]}

Design rationale:
- lets the CLI work without a running catalog server
- acts as the source of truth in tests, enforcing the same invariants
  a real server does (so a stale local mirror can still be rejected)

Server-side policy implemented here:
- duplicate course id -> DuplicateError (409)
- course still listed as a prerequisite -> DependencyConflictError (409)
- instance for an unknown course -> NotFoundError (404)
- duplicate (course, year, semester) -> DuplicateError (409)
- prerequisite ids are stored as given (not checked for existence)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from coursecatalog.errors import DependencyConflictError, DuplicateError, NotFoundError, TransportError
from coursecatalog.model import Course, CourseInstance, InstanceKey, Semester, normalize_course_id
from coursecatalog.queries import dependents_of, filter_instances

logger = logging.getLogger(__name__)


class JsonFileStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    # --- file I/O ----------------------------------------------------------

    def _load(self) -> tuple[list[Course], list[CourseInstance]]:
        # First run: file does not exist yet -> empty catalog
        if not self.path.exists():
            return [], []

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            courses = [Course.from_dict(x) for x in data.get("courses", [])]
            instances = [CourseInstance.from_dict(x) for x in data.get("instances", [])]
        except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError, KeyError, TypeError, ValueError) as exc:
            raise TransportError(f"Catalog file {self.path} is unreadable: {exc}", code=500) from exc
        return courses, instances

    def _save(self, courses: list[Course], instances: list[CourseInstance]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # instances as loaded carry no course snapshot; those are added on read
        payload = {
            "courses": [c.to_dict() for c in courses],
            "instances": [i.to_dict() for i in instances],
        }
        try:
            self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise TransportError(f"Could not write catalog file {self.path}: {exc}", code=500) from exc

    @staticmethod
    def _enrich(instance: CourseInstance, courses: list[Course]) -> CourseInstance:
        by_id = {c.course_id: c for c in courses}
        return CourseInstance(instance.course_id, instance.year, instance.semester, by_id.get(instance.course_id))

    # --- courses -----------------------------------------------------------

    def list_courses(self) -> list[Course]:
        courses, _ = self._load()
        return courses

    def get_course(self, course_id: str) -> Course:
        cid = normalize_course_id(course_id)
        for c in self.list_courses():
            if c.course_id == cid:
                return c
        raise NotFoundError(f"Course {cid} not found")

    def create_course(self, course: Course) -> Course:
        courses, instances = self._load()
        if any(c.course_id == course.course_id for c in courses):
            raise DuplicateError(f"Course with id {course.course_id} already exists")
        courses.append(course)
        self._save(courses, instances)
        logger.debug("stored course %s in %s", course.course_id, self.path)
        return course

    def delete_course(self, course_id: str) -> None:
        cid = normalize_course_id(course_id)
        courses, instances = self._load()
        if not any(c.course_id == cid for c in courses):
            raise NotFoundError(f"Course {cid} not found")
        dependents = [c.course_id for c in dependents_of(cid, courses)]
        if dependents:
            raise DependencyConflictError(
                f"Course {cid} is a prerequisite for {', '.join(dependents)}",
                dependents=dependents,
            )
        self._save([c for c in courses if c.course_id != cid], instances)

    # --- instances ---------------------------------------------------------

    def list_instances(self, year: Optional[int] = None, semester: Optional[int] = None) -> list[CourseInstance]:
        courses, instances = self._load()
        return [self._enrich(i, courses) for i in filter_instances(instances, year, semester)]

    def get_instance(self, year: int, semester: int, course_id: str) -> CourseInstance:
        key = InstanceKey(normalize_course_id(course_id), year, int(semester))
        courses, instances = self._load()
        for i in instances:
            if i.key == key:
                return self._enrich(i, courses)
        raise NotFoundError(f"Instance {key.course_id} {year}/{int(semester)} not found")

    def create_instance(self, course_id: str, year: int, semester: int) -> CourseInstance:
        cid = normalize_course_id(course_id)
        courses, instances = self._load()
        if not any(c.course_id == cid for c in courses):
            raise NotFoundError(f"Course {cid} not found")
        new = CourseInstance(cid, year, Semester.parse(semester))
        if any(i.key == new.key for i in instances):
            raise DuplicateError(f"Instance {cid} {year}/{int(semester)} already exists")
        instances.append(new)
        self._save(courses, instances)
        return self._enrich(new, courses)

    def delete_instance(self, year: int, semester: int, course_id: str) -> None:
        key = InstanceKey(normalize_course_id(course_id), year, int(semester))
        courses, instances = self._load()
        remaining = [i for i in instances if i.key != key]
        if len(remaining) == len(instances):
            raise NotFoundError(f"Instance {key.course_id} {year}/{int(semester)} not found")
        self._save(courses, remaining)


def dump_catalog(store: Any) -> dict[str, Any]:
    """
    Snapshot any store (HTTP or file) as the JSON structure used by JsonFileStore.
    """
    return {
        "courses": [c.to_dict() for c in store.list_courses()],
        "instances": [
            {"courseId": i.course_id, "year": i.year, "semester": int(i.semester)} for i in store.list_instances()
        ],
    }
