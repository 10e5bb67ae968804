"""
Scenario tests for the in-process catalog mirror.

A JsonFileStore in a temporary directory plays the remote store, so every
mutation goes guard -> store -> mirror exactly like against a real server.
"""

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from coursecatalog.errors import (
    DependencyConflictError,
    DuplicateError,
    FormatError,
    NotFoundError,
    RequiredFieldError,
    TransportError,
)
from coursecatalog.model import Semester
from coursecatalog.repository import CatalogRepository
from coursecatalog.storage import JsonFileStore


class TestCatalogRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "catalog.json"
        self.store = JsonFileStore(self.path)
        self.repo = CatalogRepository(self.store).load()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_create_course_normalizes_id_and_roundtrips(self) -> None:
        created = self.repo.create_course("cs101", "Intro", "Basics", [])
        self.assertEqual(created.course_id, "CS101")
        self.assertEqual(self.repo.get_course("cs101").course_id, "CS101")
        self.assertEqual([c.course_id for c in self.repo.courses()], ["CS101"])

    def test_prerequisite_blocks_deletion_until_dependent_is_gone(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        self.repo.create_course("CS201", "Data Structures", "Trees", ["CS101"])

        with self.assertRaises(DependencyConflictError):
            self.repo.delete_course("CS101")
        self.assertFalse(self.repo.can_delete_course("CS101"))

        self.repo.delete_course("CS201")
        self.repo.delete_course("CS101")
        self.assertEqual(self.repo.courses(), [])
        self.assertEqual(self.store.list_courses(), [])

    def test_duplicate_instance_then_recreate(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        self.repo.create_instance("CS101", 2025, 1)

        with self.assertRaises(DuplicateError):
            self.repo.create_instance("CS101", 2025, 1)

        self.repo.delete_instance("CS101", 2025, 1)
        created = self.repo.create_instance("CS101", 2025, 1)
        self.assertEqual(created.semester, Semester.SPRING)
        self.assertEqual(len(self.repo.instances()), 1)

    def test_delete_missing_instance(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.delete_instance("CS101", 2025, 1)

    def test_delete_missing_course(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.delete_course("CS101")

    def test_validation_failures_never_reach_the_store(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        with mock.patch.object(self.store, "create_course") as create_course:
            with self.assertRaises(FormatError):
                self.repo.create_course("C1", "T", "D")
            with self.assertRaises(RequiredFieldError):
                self.repo.create_course("CS102", " ", "D")
            with self.assertRaises(DuplicateError):
                self.repo.create_course("cs101", "T", "D")
            create_course.assert_not_called()

        with mock.patch.object(self.store, "create_instance") as create_instance:
            with self.assertRaises(NotFoundError):
                self.repo.create_instance("CS999", 2025, 1)
            with self.assertRaises(RequiredFieldError):
                self.repo.create_instance("CS101", None, 1)
            create_instance.assert_not_called()

    def test_unknown_prerequisites_are_accepted(self) -> None:
        created = self.repo.create_course("CS301", "Algorithms", "Sorting", ["CS999", "cs301"])
        self.assertEqual(created.prerequisites, ["CS999", "CS301"])

    def test_store_rejection_keeps_mirror(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")

        # another session adds a dependent behind our back
        other = CatalogRepository(JsonFileStore(self.path)).load()
        other.create_course("CS201", "Data Structures", "Trees", ["CS101"])

        self.assertTrue(self.repo.can_delete_course("CS101"))
        with self.assertRaises(DependencyConflictError):
            self.repo.delete_course("CS101")
        self.assertEqual([c.course_id for c in self.repo.courses()], ["CS101"])

    def test_transport_failure_keeps_mirror(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        with mock.patch.object(self.store, "create_instance", side_effect=TransportError("down", code=0)):
            with self.assertRaises(TransportError):
                self.repo.create_instance("CS101", 2025, 2)
        self.assertEqual(self.repo.instances(), [])

    def test_deleting_course_leaves_instances(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        inst = self.repo.create_instance("CS101", 2025, 1)
        self.repo.delete_course("CS101")

        self.assertEqual(len(self.repo.instances()), 1)
        self.assertIsNone(self.repo.resolve_course(self.repo.get_instance(2025, 1, "CS101")))
        self.assertEqual(inst.course.title, "Intro")

    def test_deleting_course_clears_mirrored_snapshots(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        self.repo.create_course("CS102", "Systems", "Unix")
        self.repo.create_instance("CS101", 2025, 1)
        self.repo.create_instance("CS102", 2025, 1)
        self.repo.delete_course("CS101")

        # no reload: the mirror alone must not resolve the deleted course
        by_id = {i.course_id: i for i in self.repo.instances()}
        self.assertIsNone(self.repo.resolve_course(by_id["CS101"]))
        self.assertEqual(self.repo.resolve_course(by_id["CS102"]).title, "Systems")

    def test_load_reads_store_state(self) -> None:
        self.repo.create_course("CS101", "Intro", "Basics")
        self.repo.create_instance("CS101", 2026, 2)

        fresh = CatalogRepository(JsonFileStore(self.path)).load()
        self.assertEqual([c.course_id for c in fresh.courses()], ["CS101"])
        self.assertEqual([i.period for i in fresh.instances()], ["2026-2"])
        self.assertEqual([c.course_id for c in fresh.dependents_of("CS101")], [])


if __name__ == "__main__":
    unittest.main()
