"""
In-process mirror of the catalog store.

CatalogRepository is the only thing that mutates the local course / instance
lists, and it does so only after the store accepted the change:

    guard (local, advisory) -> store call (authoritative) -> mirror update

If the guard or the store rejects a change, the mirror stays as it was.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from coursecatalog import guard, queries
from coursecatalog.errors import NotFoundError
from coursecatalog.model import Course, CourseInstance, CreateCourseCommand, InstanceKey, normalize_course_id

logger = logging.getLogger(__name__)


class CatalogRepository:
    """
    `store` is any object with the remote-store operations
    (coursecatalog.api.RemoteStore or coursecatalog.storage.JsonFileStore).
    """

    def __init__(self, store: Any) -> None:
        self.store = store
        self._courses: dict[str, Course] = {}
        self._instances: list[CourseInstance] = []

    def load(self) -> "CatalogRepository":
        """
        Replace the mirror with the store's current state.
        """
        courses = self.store.list_courses()
        instances = self.store.list_instances()
        self._courses = {c.course_id: c for c in courses}
        self._instances = list(instances)
        logger.debug("loaded %d courses, %d instances", len(self._courses), len(self._instances))
        return self

    # --- reads -------------------------------------------------------------

    def courses(self) -> list[Course]:
        return list(self._courses.values())

    def instances(self) -> list[CourseInstance]:
        return list(self._instances)

    def get_course(self, course_id: str) -> Course:
        """
        Fetch through the store (the mirror may be stale).
        """
        return self.store.get_course(normalize_course_id(course_id))

    def get_instance(self, year: int, semester: int, course_id: str) -> CourseInstance:
        return self.store.get_instance(year, semester, normalize_course_id(course_id))

    def dependents_of(self, course_id: str) -> list[Course]:
        return queries.dependents_of(course_id, self._courses.values())

    def can_delete_course(self, course_id: str) -> bool:
        return guard.can_delete_course(normalize_course_id(course_id), self._courses)

    def resolve_course(self, instance: CourseInstance) -> Optional[Course]:
        return queries.resolve_course(instance, self._courses)

    # --- course mutations --------------------------------------------------

    def create_course(
        self,
        course_id: str,
        title: str,
        description: str,
        prerequisites: Optional[list[str]] = None,
    ) -> Course:
        return self.execute_create_course(CreateCourseCommand(course_id, title, description, list(prerequisites or [])))

    def execute_create_course(self, command: CreateCourseCommand) -> Course:
        course = guard.validate_create_course(command, self._courses)
        created = self.store.create_course(course)
        self._courses[created.course_id] = created
        logger.info("created course %s", created.course_id)
        return created

    def delete_course(self, course_id: str) -> None:
        cid = normalize_course_id(course_id)
        if cid not in self._courses:
            raise NotFoundError(f"Course {cid} not found")
        guard.ensure_deletable(cid, self._courses)
        self.store.delete_course(cid)
        del self._courses[cid]
        # remaining instances of cid now refer to an unknown course
        self._instances = [replace(i, course=None) if i.course_id == cid else i for i in self._instances]
        logger.info("deleted course %s", cid)

    # --- instance mutations ------------------------------------------------

    def create_instance(self, course_id: str, year: Any, semester: Any) -> CourseInstance:
        key = guard.validate_instance_key(course_id, year, semester, self._courses, self._instances)
        created = self.store.create_instance(key.course_id, key.year, key.semester)
        self._instances.append(created)
        logger.info("scheduled %s for %s", created.course_id, queries.period_label(created.year, created.semester))
        return created

    def delete_instance(self, course_id: str, year: int, semester: int) -> None:
        key = InstanceKey(normalize_course_id(course_id), int(year), int(semester))
        if not any(i.key == key for i in self._instances):
            raise NotFoundError(f"Instance {key.course_id} {key.year}/{key.semester} not found")
        self.store.delete_instance(key.year, key.semester, key.course_id)
        self._instances = [i for i in self._instances if i.key != key]
        logger.info("deleted instance %s %s/%s", key.course_id, key.year, key.semester)
