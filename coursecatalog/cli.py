"""
CLI (Command Line Interface).

This module is the presentation layer on top of the catalog repository, e.g.:

    coursecatalog courses
    coursecatalog add-course CS201 --title "Data Structures" --description "..." --prereq CS101
    coursecatalog delete-course CS201
    coursecatalog instances --year 2025 --semester 1
    coursecatalog add-instance CS101 2025 1
    coursecatalog delete-instance CS101 2025 1
    coursecatalog export backup.json

Global options choose the store: --api-url for the HTTP catalog server,
--store for a local JSON file. Defaults come from coursecatalog.config.

Every command returns an exit code: 0 = ok, 1 = rejected / failed.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from coursecatalog.api import RemoteStore
from coursecatalog.config import LOG_LEVELS, Settings, load_settings
from coursecatalog.errors import CatalogError
from coursecatalog.logging_setup import setup_logging
from coursecatalog.model import Course, CourseInstance, Semester
from coursecatalog.queries import filter_instances, group_by_period, period_label, semester_name, unique_years
from coursecatalog.repository import CatalogRepository
from coursecatalog.storage import JsonFileStore, dump_catalog

logger = logging.getLogger(__name__)

console = Console()


def _build_store(settings: Settings) -> Any:
    if settings.store_path is not None:
        return JsonFileStore(settings.store_path)
    return RemoteStore(settings.api_url, timeout=settings.timeout)


def _semester_arg(value: str) -> Semester:
    try:
        return Semester.parse(value)
    except ValueError:
        raise argparse.ArgumentTypeError("semester must be 1/spring or 2/fall") from None


def _course_title(course: Optional[Course]) -> str:
    return escape(course.title) if course is not None else "[italic](unknown course)[/]"


# ---------------------------------------------------------------------------
# Course commands
# ---------------------------------------------------------------------------


def _cmd_courses(args: argparse.Namespace, repo: CatalogRepository) -> int:
    """
    List all courses with their prerequisites and the courses requiring them.
    """
    courses = repo.courses()
    if not courses:
        console.print("No courses yet. Add one with: coursecatalog add-course")
        return 0

    table = Table(title=f"Courses ({len(courses)})", box=box.SIMPLE)
    table.add_column("Course")
    table.add_column("Title")
    table.add_column("Prerequisites")
    table.add_column("Required by")
    table.add_column("Deletable")

    for c in courses:
        dependents = [d.course_id for d in repo.dependents_of(c.course_id)]
        table.add_row(
            f"[bold cyan]{c.course_id}[/]",
            escape(c.title),
            ", ".join(c.prerequisites) or "-",
            ", ".join(dependents) or "-",
            "[green]yes[/]" if not dependents else "[red]no[/]",
        )

    console.print(table)
    return 0


def _cmd_course(args: argparse.Namespace, repo: CatalogRepository) -> int:
    """
    Show one course (fetched from the store).
    """
    course = repo.get_course(args.course_id)
    dependents = [d.course_id for d in repo.dependents_of(course.course_id)]

    console.print(f"[bold cyan]{course.course_id}[/] | {escape(course.title)}")
    console.print(escape(course.description))
    console.print(f"Prerequisites: {', '.join(course.prerequisites) or 'none'}")
    console.print(f"Required by:   {', '.join(dependents) or 'none'}")
    if dependents:
        console.print("[yellow]Course can't be deleted since it is a prerequisite[/]")
    return 0


def _cmd_add_course(args: argparse.Namespace, repo: CatalogRepository) -> int:
    created = repo.create_course(args.course_id, args.title, args.description, args.prereq)
    console.print(f"[green]Course {created.course_id} created successfully[/]")

    unknown = [p for p in created.prerequisites if p not in {c.course_id for c in repo.courses()}]
    if unknown:
        # accepted as-is; only listed so the user notices typos
        console.print(f"[yellow]Warning: prerequisites not in catalog: {', '.join(unknown)}[/]")
    return 0


def _cmd_delete_course(args: argparse.Namespace, repo: CatalogRepository) -> int:
    cid = args.course_id.strip().upper()
    repo.delete_course(cid)
    console.print(f"[green]Course {cid} deleted successfully[/]")

    dangling = [i for i in repo.instances() if i.course_id == cid]
    if dangling:
        console.print(f"[yellow]Note: {len(dangling)} scheduled instance(s) still reference {cid}[/]")
    return 0


# ---------------------------------------------------------------------------
# Instance commands
# ---------------------------------------------------------------------------


def _cmd_instances(args: argparse.Namespace, repo: CatalogRepository) -> int:
    """
    Print instances grouped by period, most recent first.
    """
    all_instances = repo.instances()
    filtered = filter_instances(all_instances, args.year, args.semester)

    if not filtered:
        if not all_instances:
            console.print("No course instances yet. Schedule one with: coursecatalog add-instance")
        else:
            years = ", ".join(str(y) for y in unique_years(all_instances))
            console.print(f"No instances match your filters (years with instances: {years})")
        return 0

    for period, group in group_by_period(filtered).items():
        year, _, sem = period.partition("-")
        table = Table(title=f"{year} - {semester_name(int(sem))} Semester", box=box.SIMPLE)
        table.add_column("Course")
        table.add_column("Title")
        for inst in group:
            table.add_row(f"[bold cyan]{inst.course_id}[/]", _course_title(repo.resolve_course(inst)))
        console.print(table)
    return 0


def _print_instance(inst: CourseInstance, course: Optional[Course]) -> None:
    console.print(f"[bold cyan]{inst.course_id}[/] - {period_label(inst.year, inst.semester)}")
    if course is None:
        console.print("[italic]Course details unavailable (unknown course)[/]")
        return
    console.print(f"Title: {escape(course.title)}")
    console.print(f"Description: {escape(course.description)}")
    console.print(f"Prerequisites: {', '.join(course.prerequisites) or 'none'}")


def _cmd_instance(args: argparse.Namespace, repo: CatalogRepository) -> int:
    inst = repo.get_instance(args.year, args.semester, args.course_id)
    _print_instance(inst, repo.resolve_course(inst))
    return 0


def _cmd_add_instance(args: argparse.Namespace, repo: CatalogRepository) -> int:
    created = repo.create_instance(args.course_id, args.year, args.semester)
    console.print(
        f"[green]Course instance created successfully: "
        f"{created.course_id} {period_label(created.year, created.semester)}[/]"
    )
    return 0


def _cmd_delete_instance(args: argparse.Namespace, repo: CatalogRepository) -> int:
    repo.delete_instance(args.course_id, args.year, args.semester)
    console.print("[green]Course instance deleted successfully[/]")
    return 0


def _cmd_export(args: argparse.Namespace, repo: CatalogRepository) -> int:
    """
    Write a JSON snapshot of the store (same layout as the --store file).
    """
    out_path = (args.out or "").strip()
    if not out_path:
        console.print("Please provide output .json path.")
        return 1

    snapshot = dump_catalog(repo.store)
    out = Path(out_path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Error: could not write {escape(out_path)}: {escape(str(exc))}[/]")
        return 1
    console.print(
        f"Exported {len(snapshot['courses'])} courses and {len(snapshot['instances'])} instances to: {out_path}"
    )
    return 0


COMMANDS = {
    "courses": _cmd_courses,
    "course": _cmd_course,
    "add-course": _cmd_add_course,
    "delete-course": _cmd_delete_course,
    "instances": _cmd_instances,
    "instance": _cmd_instance,
    "add-instance": _cmd_add_instance,
    "delete-instance": _cmd_delete_instance,
    "export": _cmd_export,
}


def _add_instance_args(p: argparse.ArgumentParser, raw: bool = False) -> None:
    p.add_argument("course_id", type=str, help="Course ID")
    p.add_argument("year", type=str if raw else int, help="Year (e.g. 2025)")
    p.add_argument("semester", type=str if raw else _semester_arg, help="Semester: 1/spring or 2/fall")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursecatalog", description="Course catalog CLI")
    where = parser.add_mutually_exclusive_group()
    where.add_argument("--api-url", type=str, default=None, help="Catalog server base URL")
    where.add_argument("--store", type=Path, default=None, help="Use a local JSON catalog file instead of the server")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None, help="Log level")
    parser.add_argument("-v", "--verbose", action="store_true", help="Shortcut for --log-level INFO")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("courses", help="List courses")

    p_course = sub.add_parser("course", help="Show one course")
    p_course.add_argument("course_id", type=str, help="Course ID (e.g. CS101)")

    p_add = sub.add_parser("add-course", help="Create a course")
    p_add.add_argument("course_id", type=str, help="Course ID (e.g. CS101, MATH201)")
    p_add.add_argument("--title", type=str, default="", help="Course title")
    p_add.add_argument("--description", type=str, default="", help="Course description")
    p_add.add_argument("--prereq", action="append", default=[], help="Prerequisite course ID (repeatable)")

    p_del = sub.add_parser("delete-course", help="Delete a course")
    p_del.add_argument("course_id", type=str, help="Course ID")

    p_list = sub.add_parser("instances", help="List scheduled instances")
    p_list.add_argument("--year", type=int, default=None, help="Only this year")
    p_list.add_argument("--semester", type=_semester_arg, default=None, help="Only this semester (1/spring, 2/fall)")

    _add_instance_args(sub.add_parser("instance", help="Show one instance"))
    # add-instance keeps year / semester as raw strings so the guard reports bad values
    _add_instance_args(sub.add_parser("add-instance", help="Schedule a course for a year and semester"), raw=True)
    _add_instance_args(sub.add_parser("delete-instance", help="Remove a scheduled instance"))

    p_export = sub.add_parser("export", help="Export courses and instances to JSON")
    p_export.add_argument("out", type=str, help="Output file path (e.g. catalog.json)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, loads the catalog, dispatches to a command
    handler and exits via SystemExit with its return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings().with_overrides(
            api_url=args.api_url,
            store_path=args.store,
            timeout=args.timeout,
            log_level=args.log_level or ("INFO" if args.verbose else None),
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid settings: {escape(str(exc))}[/]")
        raise SystemExit(2)
    if args.api_url:
        settings = settings.model_copy(update={"store_path": None})
    setup_logging(settings.log_level)

    repo = CatalogRepository(_build_store(settings))
    handler = COMMANDS[args.command]

    try:
        repo.load()
        code = handler(args, repo)
    except CatalogError as exc:
        logger.debug("%s failed: %s", args.command, exc, exc_info=True)
        console.print(f"[red]Error: {escape(exc.message)}[/]")
        raise SystemExit(1)

    raise SystemExit(code)
