"""
Derived views over courses and instances.

All functions are read-only: they never mutate their input and
return new lists / dicts, so calling them twice gives the same result.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Mapping, Optional

from coursecatalog.model import Course, CourseInstance, Semester


def dependents_of(course_id: str, courses: Iterable[Course]) -> list[Course]:
    """
    Courses whose prerequisites contain `course_id`, in catalog order.
    """
    return [c for c in courses if c.requires(course_id)]


def filter_instances(
    instances: Iterable[CourseInstance],
    year: Optional[int] = None,
    semester: Optional[int] = None,
) -> list[CourseInstance]:
    """
    Keep instances matching year and/or semester. None means "match all" for that dimension.
    """
    out: list[CourseInstance] = []
    for inst in instances:
        if year is not None and inst.year != int(year):
            continue
        if semester is not None and int(inst.semester) != int(semester):
            continue
        out.append(inst)
    return out


def _period_sort_key(period: str) -> tuple[int, int]:
    year, _, semester = period.partition("-")
    return int(year), int(semester)


def group_by_period(instances: Iterable[CourseInstance]) -> dict[str, list[CourseInstance]]:
    """
    Group instances under "{year}-{semester}".

    Instance order inside a group is kept as received.
    Groups are ordered most recent first (year, then semester, descending).
    """
    groups: dict[str, list[CourseInstance]] = defaultdict(list)
    for inst in instances:
        groups[inst.period].append(inst)

    ordered = sorted(groups, key=_period_sort_key, reverse=True)
    return {period: groups[period] for period in ordered}


def unique_years(instances: Iterable[CourseInstance]) -> list[int]:
    # used as filter choices, newest first
    return sorted({inst.year for inst in instances}, reverse=True)


def year_choices(start: Optional[int] = None, count: int = 10) -> list[int]:
    """
    Years offered when scheduling: the current year and the following ones.
    """
    first = start if start is not None else date.today().year
    return [first + i for i in range(count)]


def semester_name(semester: int) -> str:
    return Semester.parse(semester).display_name


def period_label(year: int, semester: int) -> str:
    return f"{semester_name(semester)} {year}"


def resolve_course(instance: CourseInstance, catalog: Mapping[str, Course]) -> Optional[Course]:
    """
    The course snapshot embedded by the store, else the catalog entry.
    None when neither is known.
    """
    if instance.course is not None:
        return instance.course
    return catalog.get(instance.course_id)
