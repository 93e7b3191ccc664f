"""
Central data model definitions used across the project.

This module defines the canonical structure of Course and Feedback objects so that:
- the form, the backend client and the CLI share the same field names
- field names match the JSON wire format of the backend (camelCase)

Every Course field is optional here. Which fields are required is decided
by the form's validation rules, not by the data model.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional


class CourseType(str, Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class CourseForm(str, Enum):
    SEMINAR = "SEMINAR"
    MEETUP = "MEETUP"
    WORKSHOP = "WORKSHOP"
    STUDY_GROUP = "STUDY_GROUP"
    CERTIFICATION = "CERTIFICATION"
    CONFERENCE = "CONFERENCE"
    LECTURE = "LECTURE"
    LANGUAGE_COURSE = "LANGUAGE_COURSE"


class ExecutionType(str, Enum):
    REMOTE = "REMOTE"
    ONSITE = "ONSITE"


# field name -> enum class, for the single-selection fields
ENUM_FIELDS: dict[str, type[Enum]] = {
    "courseType": CourseType,
    "courseForm": CourseForm,
    "executionType": ExecutionType,
}


@dataclass
class Course:
    """
    Represents one course as exchanged with the backend.
    """

    id: Optional[int] = None
    title: Optional[str] = None
    trainer: Optional[str] = None
    organizer: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    courseType: Optional[str] = None
    courseForm: Optional[str] = None
    price: Optional[str] = None
    executionType: Optional[str] = None
    address: Optional[str] = None
    targetAudience: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        # unknown keys (e.g. server-side flags) are ignored
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        if out["id"] is None:
            out.pop("id")
        return out


# Wire field names in display order (without the id)
COURSE_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Course) if f.name != "id")


@dataclass
class Feedback:
    """
    One participant's feedback for a course.

    Feedback has no identity of its own; it belongs to the course id it was
    posted to.
    """

    participantName: str = ""
    likes: str = ""
    dislikes: str = ""
    recommendation: bool = False
    feedbackTime: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Feedback":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        # the server stamps feedbackTime when it is missing
        if out["feedbackTime"] is None:
            out.pop("feedbackTime")
        return out
