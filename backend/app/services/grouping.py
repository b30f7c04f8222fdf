"""Plain records and key helpers shared by the allocator and the timetable generator.

The engine works on these frozen dataclasses rather than ORM rows so it can
run without a database session and stay deterministic under test.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

ALLOCATION_KEY_SEPARATOR = "|"


@dataclass(frozen=True)
class Term:
    academic_year: int
    semester: int


@dataclass(frozen=True)
class FacultyRecord:
    id: int
    department_id: int | None
    role: str = "faculty"
    expertise: tuple[str, ...] | None = None


@dataclass(frozen=True)
class CourseRecord:
    id: int
    department_id: int | None
    semester: int
    required_expertise: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ClassRecord:
    id: int
    department_id: int | None
    semester: int
    academic_year: int
    section: str = ""


@dataclass(frozen=True)
class NewAllocation:
    faculty_id: int
    class_id: int
    course_id: int
    academic_year: int
    semester: int
    status: str

    def as_row(self) -> dict:
        return {
            "faculty_id": self.faculty_id,
            "class_id": self.class_id,
            "course_id": self.course_id,
            "academic_year": self.academic_year,
            "semester": self.semester,
            "status": self.status,
        }


@dataclass(frozen=True)
class AllocationRecord:
    id: int
    faculty_id: int
    class_id: int
    course_id: int
    academic_year: int
    semester: int
    status: str


@dataclass(frozen=True)
class TimetableEntryDraft:
    allocation_id: int
    day_of_week: int
    time_slot: int
    room_number: str


@dataclass
class ScheduleResult:
    entries: list[TimetableEntryDraft] = field(default_factory=list)
    unscheduled: list[int] = field(default_factory=list)


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    # dict keeps first-seen key order, which fixes the department iteration order.
    grouped: dict[K, list[T]] = {}
    for item in items:
        grouped.setdefault(key(item), []).append(item)
    return grouped


def group_by_department(items: Iterable[T]) -> dict[int | None, list[T]]:
    return group_by(items, lambda item: item.department_id)


def allocation_key(faculty_id: int, class_id: int, course_id: int) -> str:
    return ALLOCATION_KEY_SEPARATOR.join((str(faculty_id), str(class_id), str(course_id)))


def occupancy_key(owner_id: int, day_of_week: int, time_slot: int) -> str:
    return f"{owner_id}-{day_of_week}-{time_slot}"
