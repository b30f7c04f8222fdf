from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AllocationConflictError, DataStoreError
from app.models.allocation import Allocation, AllocationStatus
from app.models.course import Course
from app.models.faculty import Faculty, FacultyRole
from app.models.school_class import SchoolClass
from app.models.timetable import TimetableEntry
from app.services.grouping import (
    AllocationRecord,
    ClassRecord,
    CourseRecord,
    FacultyRecord,
    NewAllocation,
    TimetableEntryDraft,
)

logger = logging.getLogger(__name__)


class AllocationDataStore(Protocol):
    def fetch_faculty_by_role(self, role: str) -> list[FacultyRecord]: ...

    def fetch_courses_by_semester(self, semester: int) -> list[CourseRecord]: ...

    def fetch_classes_by_semester_and_year(self, semester: int, year: int) -> list[ClassRecord]: ...

    def fetch_allocations(self, year: int, semester: int) -> list[AllocationRecord]: ...

    def insert_allocations(self, allocations: Sequence[NewAllocation]) -> list[AllocationRecord]: ...

    def insert_timetable_entries(self, entries: Sequence[TimetableEntryDraft]) -> list[int]: ...

    def replace_timetable_entries(
        self,
        allocation_ids: Sequence[int],
        entries: Sequence[TimetableEntryDraft],
    ) -> tuple[int, list[int]]: ...


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else str(value)


def faculty_record(item: Faculty) -> FacultyRecord:
    expertise = tuple(item.expertise) if item.expertise is not None else None
    return FacultyRecord(id=item.id, department_id=item.department_id, role=_enum_value(item.role), expertise=expertise)


def course_record(item: Course) -> CourseRecord:
    required = tuple(item.required_expertise) if item.required_expertise else None
    return CourseRecord(
        id=item.id,
        department_id=item.department_id,
        semester=item.semester,
        required_expertise=required,
    )


def class_record(item: SchoolClass) -> ClassRecord:
    return ClassRecord(
        id=item.id,
        department_id=item.department_id,
        semester=item.semester,
        academic_year=item.academic_year,
        section=item.section,
    )


def allocation_record(item: Allocation) -> AllocationRecord:
    return AllocationRecord(
        id=item.id,
        faculty_id=item.faculty_id,
        class_id=item.class_id,
        course_id=item.course_id,
        academic_year=item.academic_year,
        semester=item.semester,
        status=_enum_value(item.status),
    )


class SqlAlchemyDataStore:
    """`AllocationDataStore` backed by the request's SQLAlchemy session.

    Each insert commits on its own so an allocation batch survives a later
    timetable failure.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _read(self, operation: str, statement) -> list:
        try:
            return list(self.db.execute(statement).scalars())
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DataStoreError(operation, str(exc)) from exc

    def fetch_faculty_by_role(self, role: str) -> list[FacultyRecord]:
        statement = (
            select(Faculty)
            .where(Faculty.role == FacultyRole(role), Faculty.is_active.is_(True))
            .order_by(Faculty.id)
        )
        return [faculty_record(item) for item in self._read("fetch faculty", statement)]

    def fetch_courses_by_semester(self, semester: int) -> list[CourseRecord]:
        statement = select(Course).where(Course.semester == semester).order_by(Course.id)
        return [course_record(item) for item in self._read("fetch courses", statement)]

    def fetch_classes_by_semester_and_year(self, semester: int, year: int) -> list[ClassRecord]:
        statement = (
            select(SchoolClass)
            .where(SchoolClass.semester == semester, SchoolClass.academic_year == year)
            .order_by(SchoolClass.id)
        )
        return [class_record(item) for item in self._read("fetch classes", statement)]

    def fetch_allocations(self, year: int, semester: int) -> list[AllocationRecord]:
        statement = (
            select(Allocation)
            .where(Allocation.academic_year == year, Allocation.semester == semester)
            .order_by(Allocation.id)
        )
        return [allocation_record(item) for item in self._read("fetch allocations", statement)]

    def insert_allocations(self, allocations: Sequence[NewAllocation]) -> list[AllocationRecord]:
        rows = [
            Allocation(
                faculty_id=item.faculty_id,
                class_id=item.class_id,
                course_id=item.course_id,
                academic_year=item.academic_year,
                semester=item.semester,
                status=AllocationStatus(item.status),
            )
            for item in allocations
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            first = allocations[0]
            logger.warning(
                "Allocation batch for %s semester %s hit the uniqueness constraint",
                first.academic_year,
                first.semester,
            )
            raise AllocationConflictError(first.academic_year, first.semester) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DataStoreError("insert allocations", str(exc)) from exc
        for row in rows:
            self.db.refresh(row)
        return [allocation_record(row) for row in rows]

    @staticmethod
    def _timetable_rows(entries: Sequence[TimetableEntryDraft]) -> list[TimetableEntry]:
        return [
            TimetableEntry(
                allocation_id=item.allocation_id,
                day_of_week=item.day_of_week,
                time_slot=item.time_slot,
                room_number=item.room_number,
            )
            for item in entries
        ]

    def insert_timetable_entries(self, entries: Sequence[TimetableEntryDraft]) -> list[int]:
        rows = self._timetable_rows(entries)
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DataStoreError("insert timetable entries", str(exc)) from exc
        return [row.id for row in rows]

    def replace_timetable_entries(
        self,
        allocation_ids: Sequence[int],
        entries: Sequence[TimetableEntryDraft],
    ) -> tuple[int, list[int]]:
        """Swap the entries of ``allocation_ids`` for ``entries`` in one commit.

        Returns the number of rows removed and the ids of the rows inserted. On
        failure nothing changes.
        """
        rows = self._timetable_rows(entries)
        try:
            removed = 0
            if allocation_ids:
                result = self.db.execute(
                    delete(TimetableEntry).where(TimetableEntry.allocation_id.in_(list(allocation_ids)))
                )
                removed = result.rowcount or 0
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DataStoreError("replace timetable entries", str(exc)) from exc
        return removed, [row.id for row in rows]


def remove_allocations(db: Session, allocations: Sequence[Allocation]) -> None:
    """Delete allocations together with their timetable rows; the caller commits."""
    allocation_ids = [item.id for item in allocations]
    if allocation_ids:
        db.execute(delete(TimetableEntry).where(TimetableEntry.allocation_id.in_(allocation_ids)))
    for allocation in allocations:
        db.delete(allocation)
