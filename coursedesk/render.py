"""
Rendering of a CourseInputForm.

- render_html(): accessible HTML fragment (label + input/select per field)
- find_control() / control_value(): query such a fragment by role and
  label text, the way a browser test would
- render_table(): rich Table for the terminal
"""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup, Tag
from rich import box
from rich.markup import escape
from rich.table import Table

from coursedesk.form import COMBOBOX, TEXTBOX, CourseInputForm

# Tags that expose each accessible role
_ROLE_TAGS = {
    TEXTBOX: ("input", "textarea"),
    COMBOBOX: ("select",),
}

# rendered as multi-line text areas
MULTILINE_FIELDS = frozenset({"description"})


def _control_id(field_name: str) -> str:
    return f"course-{field_name}"


def render_html(form: CourseInputForm) -> str:
    """
    Render the form as an HTML <form> fragment.
    """
    soup = BeautifulSoup("", "html.parser")
    root = soup.new_tag("form", attrs={"class": "course-input-form", "novalidate": ""})

    for spec in form.fields:
        control = form.controls[spec.field]
        cid = _control_id(spec.field)
        errors = form.field_errors(spec.field)

        group = soup.new_tag("div", attrs={"class": "form-group"})
        label = soup.new_tag("label", attrs={"for": cid})
        label.string = spec.label
        group.append(label)

        if spec.role == COMBOBOX:
            element = soup.new_tag("select", attrs={"id": cid, "name": spec.field})
            empty = soup.new_tag("option", attrs={"value": ""})
            empty.string = "-"
            element.append(empty)
            for code in spec.options:
                option = soup.new_tag("option", attrs={"value": code})
                option.string = code
                if code == control.value:
                    option["selected"] = ""
                element.append(option)
        elif spec.field in MULTILINE_FIELDS:
            element = soup.new_tag("textarea", attrs={"id": cid, "name": spec.field})
            element.string = control.value
        else:
            element = soup.new_tag(
                "input", attrs={"id": cid, "name": spec.field, "type": "text", "value": control.value}
            )

        if errors:
            element["aria-invalid"] = "true"
        group.append(element)

        for message in errors:
            feedback = soup.new_tag("div", attrs={"class": "invalid-feedback"})
            feedback.string = message
            group.append(feedback)

        root.append(group)

    soup.append(root)
    return str(soup)


def find_control(html: str, role: str, name: str) -> Optional[Tag]:
    """
    Find the control with the given role whose <label> text equals name.
    """
    soup = BeautifulSoup(html, "html.parser")
    tags = _ROLE_TAGS.get(role, ())

    for label in soup.find_all("label"):
        if label.get_text(strip=True) != name:
            continue
        target = label.get("for")
        element = soup.find(id=target) if target else label.find(list(tags))
        if element is None or element.name not in tags:
            continue
        if element.name == "input" and element.get("type", "text") != "text":
            continue
        return element
    return None


def control_value(element: Tag) -> str:
    """
    Current value of an input/textarea/select element.
    """
    if element.name == "select":
        selected = element.find("option", selected=True)
        return selected.get("value", "") if selected is not None else ""
    if element.name == "textarea":
        return element.get_text()
    return element.get("value", "")


def render_table(form: CourseInputForm, title: str = "Kurs") -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Feld")
    table.add_column("Wert")
    table.add_column("Fehler", style="red")

    for i, spec in enumerate(form.fields, start=1):
        control = form.controls[spec.field]
        table.add_row(str(i), spec.label, escape(control.value), ", ".join(form.field_errors(spec.field)))
    return table
