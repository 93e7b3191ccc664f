"""
Interactive form editing in the terminal.

Shows the CourseInputForm as a table and lets the user pick fields by number:

    [1..13] edit field
    [s]     save (runs touch(); only saves when the form is ready)
    [0]     cancel

Blank input keeps the current value, '-' clears it.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from coursedesk.form import COMBOBOX, DATE_FIELDS, CourseInputForm
from coursedesk.render import render_table

console = Console()

CLEAR = "-"


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg)


def _edit_field(form: CourseInputForm, index: int) -> None:
    spec = form.fields[index]
    current = escape(form.controls[spec.field].value) or "-"

    if spec.role == COMBOBOX:
        hint = ", ".join(spec.options)
        raw = _prompt(f"{spec.label} ({hint}) \\[aktuell: {current}]: ").strip()
    elif spec.field in DATE_FIELDS:
        raw = _prompt(f"{spec.label} (TT.MM.JJJJ HH:mm) \\[aktuell: {current}]: ").strip()
    else:
        raw = _prompt(f"{spec.label} \\[aktuell: {current}]: ").strip()

    if not raw:
        return
    if raw == CLEAR:
        form.set_value(spec.field, None)
        return
    if spec.role == COMBOBOX:
        raw = raw.upper()
    form.set_value(spec.field, raw)


def run_form(form: CourseInputForm, title: str = "Kurs") -> bool:
    """
    Edit loop. Returns True when the user saved a ready form, False on cancel.
    """
    ready: list[bool] = []
    listener = ready.append
    form.on("ready", listener)

    try:
        while True:
            console.print(render_table(form, title=title))
            choice = _prompt("Feldnummer bearbeiten, \\[s] Speichern, [0] Abbrechen: ").strip().lower()

            if choice == "0":
                _println("Abgebrochen.")
                return False

            if choice == "s":
                form.touch()
                if ready and ready[-1]:
                    return True
                _println("[red]Das Formular enthält Fehler.[/]")
                continue

            if not choice.isdigit():
                _println("Keine Zahl.")
                continue

            i = int(choice)
            if not (1 <= i <= len(form.fields)):
                _println("Außerhalb des Bereichs.")
                continue

            _edit_field(form, i - 1)
    finally:
        form.off("ready", listener)
