"""
CourseInputForm: edit one course object through labelled controls.

The form keeps one Control per course field. Controls are addressed by
their accessible role ("textbox" / "combobox") and their label text, the
same way a user (or a test) finds them on screen.

Contract:
- assigning form.course mirrors every field into its control
- set_value() is a user edit: it writes into the course object, marks the
  field dirty, validates and emits 'ready'
- touch() marks every field dirty, validates and emits 'ready'
- 'ready' carries one bool: True iff every validation rule passes

'ready' is queued on the running asyncio loop, so a caller observes it via
a listener (on("ready", cb)), form.emitted["ready"] after yielding once,
or `await form.wait_ready()`. Without a running loop it is delivered inline.

The form never talks to the backend. Saving is up to the caller.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from coursedesk.dateformat import format_date, parse_display_date, parse_timestamp
from coursedesk.logger import get_logger
from coursedesk.model import ENUM_FIELDS
from coursedesk.validation import (
    DEFAULT_COURSE_RULES,
    DEFAULT_RULES,
    CourseRuleTable,
    RuleTable,
    ValidationResult,
    validate,
)

logger = get_logger(__name__)

TEXTBOX = "textbox"
COMBOBOX = "combobox"

DATE_FIELDS = frozenset({"startDate", "endDate"})


@dataclass(frozen=True)
class FieldSpec:
    field: str
    role: str
    label: str
    options: tuple[str, ...] = ()


def _codes(field_name: str) -> tuple[str, ...]:
    return tuple(member.value for member in ENUM_FIELDS[field_name])


# Single source of truth for field -> control kind + label
FORM_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("title", TEXTBOX, "Titel / Thema"),
    FieldSpec("trainer", TEXTBOX, "Veranstalter*in"),
    FieldSpec("organizer", TEXTBOX, "Ansprechpartner*in"),
    FieldSpec("startDate", TEXTBOX, "Start"),
    FieldSpec("endDate", TEXTBOX, "Ende"),
    FieldSpec("courseType", COMBOBOX, "Veranstaltungsart", _codes("courseType")),
    FieldSpec("courseForm", COMBOBOX, "Veranstaltungsform", _codes("courseForm")),
    FieldSpec("price", TEXTBOX, "Preis"),
    FieldSpec("executionType", COMBOBOX, "Durchführung", _codes("executionType")),
    FieldSpec("address", TEXTBOX, "Ort"),
    FieldSpec("link", TEXTBOX, "Weiterführender Link"),
    FieldSpec("targetAudience", TEXTBOX, "Zielgruppe"),
    FieldSpec("description", TEXTBOX, "Beschreibung / Inhalt"),
)


@dataclass
class Control:
    """
    Display state of one input: the shown value plus interaction flags.
    """

    spec: FieldSpec
    value: str = ""
    dirty: bool = False
    # True while the user typed something that could not be parsed
    unparsed: bool = False

    @property
    def field(self) -> str:
        return self.spec.field

    @property
    def role(self) -> str:
        return self.spec.role

    @property
    def label(self) -> str:
        return self.spec.label


def _display_value(spec: FieldSpec, value: Any) -> str:
    if value is None:
        return ""
    if spec.field in DATE_FIELDS:
        return format_date(value)
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class CourseInputForm:
    def __init__(
        self,
        course: Any = None,
        rules: RuleTable = DEFAULT_RULES,
        course_rules: CourseRuleTable = DEFAULT_COURSE_RULES,
        fields: tuple[FieldSpec, ...] = FORM_FIELDS,
    ) -> None:
        self.rules = rules
        self.course_rules = course_rules
        self.fields = fields
        self.controls: dict[str, Control] = {spec.field: Control(spec) for spec in fields}
        self.emitted: dict[str, list[tuple[Any, ...]]] = defaultdict(list)
        self.result = ValidationResult()

        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._waiters: list[asyncio.Future] = []
        self._course: Any = {}
        self.course = course

    # ------------------------------------------------------------------
    # course property
    # ------------------------------------------------------------------

    @property
    def course(self) -> Any:
        return self._course

    @course.setter
    def course(self, course: Any) -> None:
        self._course = course if course is not None else {}
        for control in self.controls.values():
            control.unparsed = False
        self._sync_controls()
        self.result = self._run_rules()

    def _read(self, field_name: str) -> Any:
        if isinstance(self._course, Mapping):
            return self._course.get(field_name)
        return getattr(self._course, field_name, None)

    def _write(self, field_name: str, value: Any) -> None:
        if isinstance(self._course, MutableMapping):
            self._course[field_name] = value
        else:
            setattr(self._course, field_name, value)

    def _snapshot(self) -> dict[str, Any]:
        return {spec.field: self._read(spec.field) for spec in self.fields}

    def _sync_controls(self) -> None:
        for spec in self.fields:
            control = self.controls[spec.field]
            if control.unparsed:
                # keep what the user typed
                continue
            control.value = _display_value(spec, self._read(spec.field))

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------

    def get_by_role(self, role: str, name: str) -> Control:
        for control in self.controls.values():
            if control.role == role and control.label == name:
                return control
        raise LookupError(f"No {role} labelled {name!r}")

    def _control_for(self, key: str) -> Control:
        if key in self.controls:
            return self.controls[key]
        for control in self.controls.values():
            if control.label == key:
                return control
        raise LookupError(f"Unknown field or label: {key!r}")

    # ------------------------------------------------------------------
    # interaction
    # ------------------------------------------------------------------

    def set_value(self, key: str, value: Any) -> ValidationResult:
        """
        Apply a user edit to the field with the given name or label.
        """
        control = self._control_for(key)
        field_name = control.field

        if isinstance(value, Enum):
            value = value.value

        if field_name in DATE_FIELDS:
            text = "" if value is None else str(value).strip()
            if not text:
                stored = None
            elif parse_timestamp(text) is not None:
                stored = text
            else:
                stored = parse_display_date(text, like=self._read(field_name))
            control.unparsed = bool(text) and stored is None
            self._write(field_name, stored)
            if control.unparsed:
                control.value = text
        elif control.role == COMBOBOX:
            self._write(field_name, value if value not in (None, "") else None)
        else:
            self._write(field_name, value)

        control.dirty = True
        self._sync_controls()
        return self._validate_and_emit()

    def touch(self) -> ValidationResult:
        """
        Mark every field as interacted with and validate now.

        Each call re-evaluates the rules and emits a fresh 'ready'.
        """
        for control in self.controls.values():
            control.dirty = True
        return self._validate_and_emit()

    def reset(self) -> None:
        """
        Forget interaction state (dirty flags and unparsed input).
        """
        for control in self.controls.values():
            control.dirty = False
            control.unparsed = False
        self._sync_controls()
        self.result = self._run_rules()

    # ------------------------------------------------------------------
    # validation
    # ------------------------------------------------------------------

    def _run_rules(self) -> ValidationResult:
        result = validate(self._snapshot(), self.rules, self.course_rules)
        for control in self.controls.values():
            if control.unparsed:
                errors = result.errors.setdefault(control.field, [])
                if "validDate" not in errors:
                    errors.append("validDate")
        return result

    def _validate_and_emit(self) -> ValidationResult:
        self.result = self._run_rules()
        logger.debug("Course form validated: valid=%s errors=%s", self.result.valid, self.result.errors)
        self._emit("ready", self.result.valid)
        return self.result

    @property
    def valid(self) -> bool:
        return self.result.valid

    def field_errors(self, key: str) -> list[str]:
        """
        Error messages for a field, only once it has been interacted with.
        """
        control = self._control_for(key)
        if not control.dirty:
            return []
        return self.result.messages(control.field)

    # ------------------------------------------------------------------
    # events
    # ------------------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._listeners[event].append(callback)

    def off(self, event: str, callback: Callable[..., Any]) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    async def wait_ready(self) -> bool:
        """
        Wait for the next 'ready' emission and return its value.
        """
        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        return await future

    def _emit(self, event: str, *args: Any) -> None:
        try:
            loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            self._deliver(event, args)
        else:
            loop.call_soon(self._deliver, event, args)

    def _deliver(self, event: str, args: tuple[Any, ...]) -> None:
        self.emitted[event].append(args)

        if event == "ready":
            waiters, self._waiters = self._waiters, []
            for future in waiters:
                if not future.done():
                    future.set_result(args[0])

        # a failing listener must not keep the others from being called
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception:
                logger.exception("%r listener %r failed", event, callback)
