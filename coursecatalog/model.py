"""
Central data model definitions used across the project.

This module defines the canonical structure of Course and CourseInstance objects so that:
- the guard, the queries and the stores share the same field names
- the JSON wire format (camelCase, as the remote store speaks it) is mapped in one place
- command structs are validated as a whole before anything is persisted
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, List, Optional


class Semester(IntEnum):
    SPRING = 1
    FALL = 2

    @property
    def display_name(self) -> str:
        return "Spring" if self is Semester.SPRING else "Fall"

    @classmethod
    def parse(cls, value: Any) -> "Semester":
        """
        Accept 1 / 2 / "1" / "2" / "spring" / "fall" (any case).
        Raises ValueError for anything else.
        """
        if isinstance(value, Semester):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid semester: {value!r}")
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip().lower()
        if text in ("1", "spring"):
            return cls.SPRING
        if text in ("2", "fall"):
            return cls.FALL
        raise ValueError(f"Invalid semester: {value!r}")


def normalize_course_id(course_id: str) -> str:
    return str(course_id).strip().upper()


def normalize_prerequisites(prerequisites: Optional[Iterable[str]]) -> List[str]:
    """
    Upper-case prerequisite ids, drop blanks and duplicates, keep insertion order.
    """
    out: List[str] = []
    for p in prerequisites or []:
        pid = normalize_course_id(p)
        if pid and pid not in out:
            out.append(pid)
    return out


@dataclass
class Course:
    """
    Represents one catalog entry.
    """

    course_id: str
    title: str
    description: str
    prerequisites: List[str] = field(default_factory=list)

    def requires(self, course_id: str) -> bool:
        return normalize_course_id(course_id) in self.prerequisites

    def to_dict(self) -> dict[str, Any]:
        return {
            "courseId": self.course_id,
            "title": self.title,
            "description": self.description,
            "prerequisites": list(self.prerequisites),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        return cls(
            course_id=normalize_course_id(data.get("courseId", "")),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            prerequisites=normalize_prerequisites(data.get("prerequisites")),
        )


@dataclass(frozen=True)
class InstanceKey:
    """
    Composite key (course, year, semester) of a scheduled instance.
    """

    course_id: str
    year: int
    semester: int


@dataclass
class CourseInstance:
    """
    One scheduled occurrence of a course.

    `course` is the denormalized snapshot the remote store may embed;
    None means "unknown course" and must be handled by callers.
    """

    course_id: str
    year: int
    semester: Semester
    course: Optional[Course] = None

    @property
    def key(self) -> InstanceKey:
        return InstanceKey(self.course_id, self.year, int(self.semester))

    @property
    def period(self) -> str:
        return f"{self.year}-{int(self.semester)}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "courseId": self.course_id,
            "year": self.year,
            "semester": int(self.semester),
        }
        if self.course is not None:
            data["course"] = self.course.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CourseInstance":
        raw_course = data.get("course")
        return cls(
            course_id=normalize_course_id(data.get("courseId", "")),
            year=int(data["year"]),
            semester=Semester.parse(data["semester"]),
            course=Course.from_dict(raw_course) if isinstance(raw_course, dict) else None,
        )


@dataclass
class CreateCourseCommand:
    """
    Everything the create-course operation needs, validated wholesale by the guard.
    """

    course_id: str
    title: str
    description: str
    prerequisites: List[str] = field(default_factory=list)

