"""
Tests for CourseInputForm.

Covers:
- every course field is mirrored into the control found by role + label
- touch() validates all rules and emits 'ready' with the overall result
- 'ready' is queued on the running event loop (observed after yielding)
- user edits write back into the course object
- a failing listener neither escapes touch() nor blocks waiters
- malformed values degrade to invalid while rendering keeps working
"""

import asyncio
import io
import unittest

from rich.console import Console

from coursedesk.dateformat import format_date
from coursedesk.form import COMBOBOX, FORM_FIELDS, TEXTBOX, CourseInputForm
from coursedesk.model import Course, CourseForm, CourseType
from coursedesk.render import control_value, find_control, render_html, render_table
from coursedesk.validation import required

FULL_COURSE = {
    "title": "Title",
    "trainer": "Trainer",
    "organizer": "Organizer",
    "startDate": "2020-05-02T12:34:00+2:00",
    "endDate": "2020-05-02T13:00:00+2:00",
    "courseType": "EXTERNAL",
    "courseForm": "MEETUP",
    "price": "100€",
    "executionType": "REMOTE",
    "address": "Daheim",
    "targetAudience": "Alle",
    "description": "Beschreibung",
    "link": "https://tarent.de",
}

REQUIRED_ONLY = {
    "title": "Title",
    "trainer": "Trainer",
    "organizer": None,
    "startDate": None,
    "endDate": None,
    "courseType": "EXTERNAL",
    "courseForm": None,
    "price": None,
    "executionType": None,
    "address": None,
    "targetAudience": None,
    "description": None,
    "link": None,
}


class TestFieldMapping(unittest.TestCase):
    def test_maps_input_fields_to_labelled_controls(self) -> None:
        form = CourseInputForm({})
        course = dict(FULL_COURSE)
        form.course = course

        expected = [
            (TEXTBOX, "Titel / Thema", "Title"),
            (TEXTBOX, "Veranstalter*in", "Trainer"),
            (TEXTBOX, "Ansprechpartner*in", "Organizer"),
            (TEXTBOX, "Start", format_date(course["startDate"])),
            (TEXTBOX, "Ende", format_date(course["endDate"])),
            (COMBOBOX, "Veranstaltungsart", "EXTERNAL"),
            (COMBOBOX, "Veranstaltungsform", "MEETUP"),
            (TEXTBOX, "Preis", "100€"),
            (COMBOBOX, "Durchführung", "REMOTE"),
            (TEXTBOX, "Ort", "Daheim"),
            (TEXTBOX, "Weiterführender Link", "https://tarent.de"),
            (TEXTBOX, "Zielgruppe", "Alle"),
            (TEXTBOX, "Beschreibung / Inhalt", "Beschreibung"),
        ]
        for role, label, value in expected:
            with self.subTest(label=label):
                self.assertEqual(form.get_by_role(role, label).value, value)

    def test_every_field_has_one_control(self) -> None:
        fields = [spec.field for spec in FORM_FIELDS]
        labels = [spec.label for spec in FORM_FIELDS]
        self.assertEqual(len(fields), len(set(fields)))
        self.assertEqual(len(labels), len(set(labels)))

    def test_reassigning_course_refreshes_controls(self) -> None:
        form = CourseInputForm(dict(FULL_COURSE))
        form.course = {"title": "Other"}
        self.assertEqual(form.get_by_role(TEXTBOX, "Titel / Thema").value, "Other")
        self.assertEqual(form.get_by_role(TEXTBOX, "Preis").value, "")
        self.assertEqual(form.get_by_role(COMBOBOX, "Veranstaltungsart").value, "")

    def test_wrong_role_is_not_found(self) -> None:
        form = CourseInputForm({})
        with self.assertRaises(LookupError):
            form.get_by_role(COMBOBOX, "Titel / Thema")

    def test_malformed_date_renders_empty(self) -> None:
        form = CourseInputForm(dict(REQUIRED_ONLY, startDate="kaputt"))
        self.assertEqual(form.get_by_role(TEXTBOX, "Start").value, "")

    def test_dataclass_course_with_enum(self) -> None:
        course = Course(title="T", trainer="X", courseType=CourseType.INTERNAL)
        form = CourseInputForm(course)
        self.assertEqual(form.get_by_role(COMBOBOX, "Veranstaltungsart").value, "INTERNAL")
        self.assertTrue(form.touch().valid)


class TestTouchWithoutLoop(unittest.TestCase):
    def test_ready_delivered_inline(self) -> None:
        form = CourseInputForm(dict(REQUIRED_ONLY))
        form.touch()
        self.assertEqual(form.emitted["ready"], [(True,)])

    def test_touch_is_idempotent(self) -> None:
        form = CourseInputForm({})
        first = form.touch()
        second = form.touch()
        self.assertEqual(first.errors, second.errors)
        self.assertEqual(form.emitted["ready"], [(False,), (False,)])

    def test_listener_receives_ready(self) -> None:
        seen = []
        form = CourseInputForm({})
        form.on("ready", seen.append)
        form.touch()
        form.off("ready", seen.append)
        form.touch()
        self.assertEqual(seen, [False])

    def test_field_errors_only_after_interaction(self) -> None:
        form = CourseInputForm({})
        self.assertEqual(form.field_errors("title"), [])
        form.touch()
        self.assertEqual(form.field_errors("title"), ["Pflichtfeld"])
        self.assertEqual(form.field_errors("Preis"), [])

    def test_reset_clears_dirty_state(self) -> None:
        form = CourseInputForm({})
        form.touch()
        form.reset()
        self.assertEqual(form.field_errors("title"), [])

    def test_custom_rules(self) -> None:
        form = CourseInputForm({"price": "100€"}, rules={"price": {"required": required}}, course_rules={})
        self.assertTrue(form.touch().valid)

    def test_end_before_start_is_not_ready(self) -> None:
        course = dict(
            REQUIRED_ONLY,
            startDate="2020-05-02T13:00:00+02:00",
            endDate="2020-05-02T12:00:00+02:00",
        )
        form = CourseInputForm(course)
        form.touch()
        self.assertEqual(form.emitted["ready"], [(False,)])


class TestSetValue(unittest.TestCase):
    def test_text_edit_writes_into_course(self) -> None:
        course = {}
        form = CourseInputForm(course)
        form.set_value("Titel / Thema", "Neu")
        self.assertEqual(course["title"], "Neu")
        self.assertEqual(form.emitted["ready"], [(False,)])

    def test_filling_required_fields_makes_form_ready(self) -> None:
        course = {}
        form = CourseInputForm(course)
        form.set_value("title", "Title")
        form.set_value("trainer", "Trainer")
        form.set_value("Veranstaltungsart", CourseType.EXTERNAL)
        self.assertEqual(course["courseType"], "EXTERNAL")
        self.assertEqual(form.emitted["ready"][-1], (True,))

    def test_date_entry_keeps_offset(self) -> None:
        course = dict(REQUIRED_ONLY, startDate="2020-05-02T12:34:00+2:00")
        form = CourseInputForm(course)
        form.set_value("Start", "03.05.2020 10:00")
        self.assertEqual(course["startDate"], "2020-05-03T10:00:00+02:00")
        self.assertEqual(form.get_by_role(TEXTBOX, "Start").value, "03.05.2020 10:00")

    def test_unparseable_date_is_invalid_not_fatal(self) -> None:
        course = dict(REQUIRED_ONLY)
        form = CourseInputForm(course)
        result = form.set_value("Ende", "irgendwann")
        self.assertIsNone(course["endDate"])
        self.assertEqual(form.get_by_role(TEXTBOX, "Ende").value, "irgendwann")
        self.assertEqual(result.errors, {"endDate": ["validDate"]})
        self.assertEqual(form.emitted["ready"], [(False,)])

        form.set_value("Ende", "")
        self.assertEqual(form.emitted["ready"][-1], (True,))

    def test_clearing_combobox_stores_none(self) -> None:
        course = dict(REQUIRED_ONLY)
        form = CourseInputForm(course)
        form.set_value("courseType", "")
        self.assertIsNone(course["courseType"])
        self.assertFalse(form.valid)

    def test_unknown_field(self) -> None:
        form = CourseInputForm({})
        with self.assertRaises(LookupError):
            form.set_value("Raum", "A1")


class TestListenerFailures(unittest.TestCase):
    def test_failing_listener_does_not_escape_touch(self) -> None:
        seen = []
        form = CourseInputForm(dict(REQUIRED_ONLY))
        form.on("ready", lambda value: 1 / 0)
        form.on("ready", seen.append)

        with self.assertLogs("coursedesk.form", level="ERROR"):
            result = form.touch()

        self.assertTrue(result.valid)
        self.assertEqual(seen, [True])
        self.assertEqual(form.emitted["ready"], [(True,)])


class TestMalformedCourse(unittest.TestCase):
    def test_several_bad_values_degrade_to_invalid(self) -> None:
        form = CourseInputForm({})
        form.course = dict(
            REQUIRED_ONLY,
            startDate="kaputt",
            courseForm="TELEPATHIC",
            executionType="BY_PIGEON",
        )
        result = form.touch()

        self.assertEqual(form.emitted["ready"], [(False,)])
        self.assertEqual(
            result.errors,
            {"startDate": ["validDate"], "courseForm": ["oneOf"], "executionType": ["oneOf"]},
        )
        self.assertEqual(form.get_by_role(TEXTBOX, "Start").value, "")

        html = render_html(form)
        self.assertEqual(control_value(find_control(html, TEXTBOX, "Start")), "")
        self.assertEqual(control_value(find_control(html, COMBOBOX, "Veranstaltungsform")), "")
        self.assertEqual(control_value(find_control(html, TEXTBOX, "Titel / Thema")), "Title")

        out = io.StringIO()
        Console(file=out, width=160).print(render_table(form))
        self.assertIn("Ungültige Auswahl", out.getvalue())
        self.assertIn("Ungültiges Datum", out.getvalue())


class TestCourseForms(unittest.TestCase):
    def test_every_course_form_is_ready(self) -> None:
        for code in CourseForm:
            with self.subTest(code=code.value):
                form = CourseInputForm(dict(REQUIRED_ONLY, courseForm=code.value))
                form.touch()
                self.assertEqual(form.emitted["ready"], [(True,)])
                self.assertEqual(form.get_by_role(COMBOBOX, "Veranstaltungsform").value, code.value)

    def test_fetched_workshop_is_selectable(self) -> None:
        form = CourseInputForm(dict(FULL_COURSE, courseForm="WORKSHOP"))
        html = render_html(form)
        self.assertEqual(control_value(find_control(html, COMBOBOX, "Veranstaltungsform")), "WORKSHOP")
        self.assertTrue(form.touch().valid)


class TestReadyEvent(unittest.IsolatedAsyncioTestCase):
    async def test_ready_true_when_required_fields_present(self) -> None:
        form = CourseInputForm({})
        form.course = dict(REQUIRED_ONLY)

        form.touch()
        await asyncio.sleep(0)

        self.assertEqual(form.emitted["ready"][0], (True,))

    async def test_ready_false_for_empty_course(self) -> None:
        form = CourseInputForm({})

        form.touch()
        await asyncio.sleep(0)

        self.assertEqual(form.emitted["ready"][0], (False,))

    async def test_ready_is_queued_not_synchronous(self) -> None:
        form = CourseInputForm(dict(FULL_COURSE))
        form.touch()
        self.assertEqual(form.emitted["ready"], [])
        await asyncio.sleep(0)
        self.assertEqual(form.emitted["ready"], [(True,)])

    async def test_wait_ready_resolves_with_post_validation_value(self) -> None:
        course = {}
        form = CourseInputForm(course)
        course.update(REQUIRED_ONLY)

        form.touch()
        self.assertTrue(await form.wait_ready())

    async def test_wait_ready_after_edit(self) -> None:
        form = CourseInputForm(dict(REQUIRED_ONLY))
        form.set_value("trainer", "")
        self.assertFalse(await form.wait_ready())

    async def test_wait_ready_resolves_despite_failing_listener(self) -> None:
        form = CourseInputForm(dict(REQUIRED_ONLY))
        form.on("ready", lambda value: 1 / 0)

        with self.assertLogs("coursedesk.form", level="ERROR"):
            form.touch()
            ready = await asyncio.wait_for(form.wait_ready(), 1.0)

        self.assertTrue(ready)


if __name__ == "__main__":
    unittest.main()
