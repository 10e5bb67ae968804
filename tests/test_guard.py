"""
Unit tests for the catalog guard.

Rules checked here:
- course id = 2-4 letters + 3 digits, case-insensitive input, upper-cased output
- title / description must be non-empty after trimming
- a course that is a prerequisite of another course cannot be deleted
- instance keys must reference a known course and be unique
"""

import re
import unittest

from coursecatalog.errors import (
    DependencyConflictError,
    DuplicateError,
    FormatError,
    NotFoundError,
    RequiredFieldError,
)
from coursecatalog.guard import (
    can_delete_course,
    ensure_deletable,
    validate_course_fields,
    validate_course_id,
    validate_create_course,
    validate_instance_key,
)
from coursecatalog.model import Course, CourseInstance, CreateCourseCommand, InstanceKey, Semester


def _catalog(*courses: Course) -> dict[str, Course]:
    return {c.course_id: c for c in courses}


CS101 = Course("CS101", "Intro", "Basics")
CS201 = Course("CS201", "Data Structures", "Lists and trees", ["CS101"])
MATH201 = Course("MATH201", "Linear Algebra", "Matrices")


class TestValidateCourseId(unittest.TestCase):
    def test_valid_ids_are_upper_cased(self) -> None:
        self.assertEqual(validate_course_id("CS101", {}), "CS101")
        self.assertEqual(validate_course_id("math201", {}), "MATH201")
        self.assertEqual(validate_course_id("Ab123", {}), "AB123")

    def test_invalid_formats(self) -> None:
        for bad in ["C101", "ABCDE101", "CS10", "CS1011", "101CS", "CS-101", " CS101", "CS101 ", "CS101\n", "C1S01"]:
            with self.subTest(bad=bad):
                with self.assertRaises(FormatError):
                    validate_course_id(bad, {})

    def test_empty_is_required_field(self) -> None:
        for empty in ["", "   ", None]:
            with self.subTest(empty=empty):
                with self.assertRaises(RequiredFieldError):
                    validate_course_id(empty, {})

    def test_accepts_exactly_the_pattern(self) -> None:
        pattern = re.compile(r"^[A-Z]{2,4}[0-9]{3}$")
        samples = ["CS101", "cs101", "ABCD999", "AB000", "A000", "ABCDE000", "CS10a", "ÄB123", "CS٣٠١", "xy12 3"]
        for s in samples:
            with self.subTest(s=s):
                expected = bool(pattern.fullmatch(s.upper()))
                try:
                    validate_course_id(s, {})
                    accepted = True
                except (FormatError, RequiredFieldError):
                    accepted = False
                self.assertEqual(accepted, expected)

    def test_duplicate_is_detected_case_insensitively(self) -> None:
        with self.assertRaises(DuplicateError):
            validate_course_id("cs101", _catalog(CS101))


class TestValidateCourseFields(unittest.TestCase):
    def test_trims_values(self) -> None:
        self.assertEqual(validate_course_fields("  Intro ", "\tBasics\n"), ("Intro", "Basics"))

    def test_blank_title_or_description(self) -> None:
        with self.assertRaises(RequiredFieldError):
            validate_course_fields("   ", "Basics")
        with self.assertRaises(RequiredFieldError):
            validate_course_fields("Intro", "")
        with self.assertRaises(RequiredFieldError):
            validate_course_fields(None, None)

    def test_create_command_is_normalized(self) -> None:
        cmd = CreateCourseCommand("cs301", " Algorithms ", " Sorting ", ["cs201", "CS201", "xx999"])
        course = validate_create_course(cmd, _catalog(CS101, CS201))
        self.assertEqual(course, Course("CS301", "Algorithms", "Sorting", ["CS201", "XX999"]))


class TestDeletion(unittest.TestCase):
    def test_prerequisite_cannot_be_deleted(self) -> None:
        catalog = _catalog(CS101, CS201, MATH201)
        self.assertFalse(can_delete_course("CS101", catalog))
        self.assertTrue(can_delete_course("CS201", catalog))
        self.assertTrue(can_delete_course("MATH201", catalog))

    def test_conflict_names_dependents(self) -> None:
        cs202 = Course("CS202", "Systems", "Machines", ["CS101", "MATH201"])
        with self.assertRaises(DependencyConflictError) as ctx:
            ensure_deletable("CS101", _catalog(CS101, CS201, cs202))
        self.assertEqual(ctx.exception.dependents, ["CS201", "CS202"])
        self.assertEqual(ctx.exception.code, 409)

    def test_instances_do_not_block_deletion(self) -> None:
        # only dependent courses are checked
        self.assertTrue(can_delete_course("MATH201", _catalog(MATH201)))


class TestValidateInstanceKey(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = _catalog(CS101, CS201)
        self.instances = [CourseInstance("CS101", 2025, Semester.SPRING)]

    def test_valid_key(self) -> None:
        key = validate_instance_key("cs201", "2025", "2", self.catalog, self.instances)
        self.assertEqual(key, InstanceKey("CS201", 2025, 2))

    def test_missing_fields(self) -> None:
        for args in [("", 2025, 1), ("CS101", None, 1), ("CS101", 2025, None), ("CS101", "", "")]:
            with self.subTest(args=args):
                with self.assertRaises(RequiredFieldError):
                    validate_instance_key(*args, self.catalog, self.instances)

    def test_bad_year_or_semester(self) -> None:
        for args in [("CS101", 0, 1), ("CS101", -5, 1), ("CS101", "abc", 1), ("CS101", 2025, 3), ("CS101", 2025, "summer")]:
            with self.subTest(args=args):
                with self.assertRaises(FormatError):
                    validate_instance_key(*args, self.catalog, self.instances)

    def test_unknown_course(self) -> None:
        with self.assertRaises(NotFoundError):
            validate_instance_key("PHYS101", 2025, 1, self.catalog, self.instances)

    def test_duplicate_key(self) -> None:
        with self.assertRaises(DuplicateError):
            validate_instance_key("CS101", 2025, Semester.SPRING, self.catalog, self.instances)
        # different semester is fine
        validate_instance_key("CS101", 2025, Semester.FALL, self.catalog, self.instances)

    def test_duplicate_ignores_embedded_course(self) -> None:
        instances = [CourseInstance("CS101", 2025, Semester.SPRING, course=CS101)]
        with self.assertRaises(DuplicateError):
            validate_instance_key("CS101", 2025, 1, self.catalog, instances)


if __name__ == "__main__":
    unittest.main()
