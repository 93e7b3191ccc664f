"""
CLI (Command Line Interface).

Terminal commands against the course backend, e.g.:

    coursedesk list
    coursedesk show <id>
    coursedesk new
    coursedesk edit <id>
    coursedesk delete <id>
    coursedesk categories
    coursedesk feedback <id>
    coursedesk add-feedback <id> --name NAME [--likes ..] [--dislikes ..] [--recommend]

Global flags --api-url / --timeout / --log-level override the
COURSEDESK_* environment variables.

Note:
- The interactive form editor lives in coursedesk/interactive.py
- Backend errors are reported here, at the command boundary
"""

from __future__ import annotations

import argparse
from typing import Any, Optional

import requests
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from coursedesk.backend import BackendService, HttpClient
from coursedesk.config import Settings, load_settings
from coursedesk.dateformat import format_date
from coursedesk.form import CourseInputForm
from coursedesk.interactive import run_form
from coursedesk.logger import get_logger, setup_logging
from coursedesk.model import Course, Feedback
from coursedesk.render import render_table

logger = get_logger(__name__)
console = Console()


def _safe_str(x: Any) -> str:
    # user data goes into rich markup
    return "" if x is None else escape(str(x))


def _data(response: Any) -> Any:
    return getattr(response, "data", response)


def _cmd_list(args: argparse.Namespace, service: BackendService) -> int:
    raw = _data(service.get_courses()) or []
    courses = [Course.from_dict(c) for c in raw if isinstance(c, dict)]
    if len(courses) != len(raw):
        logger.warning("Skipped %d malformed course entries", len(raw) - len(courses))
    if not courses:
        console.print("Keine Kurse.")
        return 0

    table = Table(title=f"Kurse ({len(courses)})", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Titel")
    table.add_column("Veranstalter*in")
    table.add_column("Start")
    table.add_column("Art")
    for c in courses:
        table.add_row(
            _safe_str(c.id),
            _safe_str(c.title) or "(ohne Titel)",
            _safe_str(c.trainer),
            format_date(c.startDate),
            _safe_str(c.courseType),
        )
    console.print(table)
    return 0


def _cmd_show(args: argparse.Namespace, service: BackendService) -> int:
    course = _data(service.get_course(args.course_id))
    form = CourseInputForm(course)
    console.print(render_table(form, title=f"Kurs {args.course_id}"))
    return 0


def _cmd_new(args: argparse.Namespace, service: BackendService) -> int:
    course = Course().to_dict()
    form = CourseInputForm(course)
    if not run_form(form, title="Neuer Kurs"):
        return 1

    created = _data(service.create_course(course))
    new_id = created.get("id") if isinstance(created, dict) else None
    console.print(f"Kurs angelegt: {_safe_str(new_id) or '(ohne ID)'}")
    return 0


def _cmd_edit(args: argparse.Namespace, service: BackendService) -> int:
    course = _data(service.get_course(args.course_id))
    if not isinstance(course, dict):
        console.print(f"Kurs nicht gefunden: {args.course_id}")
        return 1

    course.setdefault("id", args.course_id)
    form = CourseInputForm(course)
    if not run_form(form, title=f"Kurs {args.course_id}"):
        return 1

    service.update_course(course)
    console.print(f"Kurs gespeichert: {course['id']}")
    return 0


def _cmd_delete(args: argparse.Namespace, service: BackendService) -> int:
    service.delete_course(args.course_id)
    console.print(f"Kurs gelöscht: {args.course_id}")
    return 0


def _cmd_categories(args: argparse.Namespace, service: BackendService) -> int:
    categories = _data(service.get_categories()) or []
    if not categories:
        console.print("Keine Kategorien.")
        return 0
    for name in categories:
        console.print(f"- {_safe_str(name)}")
    return 0


def _cmd_feedback(args: argparse.Namespace, service: BackendService) -> int:
    entries = _data(service.get_course_feedback(args.course_id)) or []
    if not entries:
        console.print("Noch kein Feedback.")
        return 0

    table = Table(title=f"Feedback zu Kurs {args.course_id}", box=box.SIMPLE)
    table.add_column("Teilnehmer*in")
    table.add_column("Gut")
    table.add_column("Schlecht")
    table.add_column("Empfehlung")
    table.add_column("Zeit")
    for raw in entries:
        if not isinstance(raw, dict):
            continue
        fb = Feedback.from_dict(raw)
        table.add_row(
            _safe_str(fb.participantName),
            _safe_str(fb.likes),
            _safe_str(fb.dislikes),
            "ja" if fb.recommendation else "nein",
            format_date(fb.feedbackTime),
        )
    console.print(table)
    return 0


def _cmd_add_feedback(args: argparse.Namespace, service: BackendService) -> int:
    name = (args.name or "").strip()
    if not name:
        console.print("Bitte einen Namen angeben.")
        return 1

    feedback = Feedback(
        participantName=name,
        likes=args.likes or "",
        dislikes=args.dislikes or "",
        recommendation=bool(args.recommend),
    )
    service.create_feedback(args.course_id, feedback.to_dict())
    console.print(f"Feedback gespeichert für Kurs {args.course_id}")
    return 0


COMMANDS = {
    "list": _cmd_list,
    "show": _cmd_show,
    "new": _cmd_new,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "categories": _cmd_categories,
    "feedback": _cmd_feedback,
    "add-feedback": _cmd_add_feedback,
}


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursedesk", description="Kurse verwalten")
    parser.add_argument("--api-url", type=str, default=None, help="Backend base URL")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List all courses")

    p_show = sub.add_parser("show", help="Show one course")
    p_show.add_argument("course_id", type=int, help="Course ID")

    sub.add_parser("new", help="Create a course (interactive form)")

    p_edit = sub.add_parser("edit", help="Edit a course (interactive form)")
    p_edit.add_argument("course_id", type=int, help="Course ID")

    p_delete = sub.add_parser("delete", help="Delete a course")
    p_delete.add_argument("course_id", type=int, help="Course ID")

    sub.add_parser("categories", help="List categories")

    p_feedback = sub.add_parser("feedback", help="Show feedback of a course")
    p_feedback.add_argument("course_id", type=int, help="Course ID")

    p_add = sub.add_parser("add-feedback", help="Send feedback for a course")
    p_add.add_argument("course_id", type=int, help="Course ID")
    p_add.add_argument("--name", type=str, required=True, help="Participant name")
    p_add.add_argument("--likes", type=str, default="", help="What was good")
    p_add.add_argument("--dislikes", type=str, default="", help="What was bad")
    p_add.add_argument("--recommend", action="store_true", help="Recommend the course")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    values = load_settings().model_dump()
    if args.api_url:
        values["api_url"] = args.api_url
    if args.timeout is not None:
        values["timeout"] = args.timeout
    if args.log_level:
        values["log_level"] = args.log_level
    return Settings.model_validate(values)


def main(argv: list[str] | None = None, service: Optional[BackendService] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as e:
        console.print(f"[red]Ungültige Konfiguration:[/] {_safe_str(e)}")
        raise SystemExit(2)
    setup_logging(settings.log_level)

    client: Optional[HttpClient] = None
    if service is None:
        client = HttpClient.from_settings(settings)
        service = BackendService(client)

    try:
        code = COMMANDS[args.command](args, service)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        logger.debug("Backend rejected %s", args.command, exc_info=True)
        console.print(f"[red]Backend-Fehler (HTTP {status}).[/]")
        code = 1
    except requests.RequestException as e:
        logger.debug("Backend unreachable for %s", args.command, exc_info=True)
        console.print(f"[red]Backend nicht erreichbar: {_safe_str(e)}[/]")
        code = 1
    finally:
        if client is not None:
            client.close()

    raise SystemExit(code)
