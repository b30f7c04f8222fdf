from __future__ import annotations

from dataclasses import dataclass, field
import logging

from app.core.exceptions import DataStoreError
from app.services.allocator import allocate
from app.services.data_store import AllocationDataStore
from app.services.grouping import AllocationRecord, Term
from app.services.timetable_generator import build_schedule

FACULTY_ROLE = "faculty"
REJECTED_STATUS = "rejected"

COMPLETED_MESSAGE = "Auto-allocation completed successfully"
NOTHING_TO_DO_MESSAGE = "no new allocations needed"

logger = logging.getLogger(__name__)


@dataclass
class AutoAllocationResult:
    message: str
    allocations: list[AllocationRecord] = field(default_factory=list)
    timetable_entries_created: int = 0
    unscheduled: list[int] = field(default_factory=list)

    @property
    def allocations_created(self) -> int:
        return len(self.allocations)


@dataclass
class TimetableRegenerationResult:
    allocations_considered: int
    entries_removed: int
    entries_created: int
    unscheduled: list[int] = field(default_factory=list)


def run_auto_allocation(store: AllocationDataStore, term: Term) -> AutoAllocationResult:
    """Allocate faculty for a term, persist the batch, then timetable it.

    Read failures and allocation insert failures propagate. A failed timetable
    insert is logged and reported as zero entries; the allocations stay.
    """
    logger.info("Starting auto-allocation for %s semester %s", term.academic_year, term.semester)

    faculty = store.fetch_faculty_by_role(FACULTY_ROLE)
    courses = store.fetch_courses_by_semester(term.semester)
    classes = store.fetch_classes_by_semester_and_year(term.semester, term.academic_year)
    existing = store.fetch_allocations(term.academic_year, term.semester)
    logger.info(
        "Found %d faculty, %d courses, %d classes, %d existing allocations",
        len(faculty),
        len(courses),
        len(classes),
        len(existing),
    )

    # Administrative accounts never receive generated teaching allocations.
    teaching_faculty = [item for item in faculty if item.role == FACULTY_ROLE]
    new_allocations = allocate(term, teaching_faculty, courses, classes, existing)
    if not new_allocations:
        return AutoAllocationResult(message=NOTHING_TO_DO_MESSAGE)

    inserted = store.insert_allocations(new_allocations)
    logger.info("Inserted %d allocations", len(inserted))

    teaching_ids = {item.id for item in teaching_faculty}
    schedulable = [item for item in inserted if item.faculty_id in teaching_ids]
    outcome = build_schedule(schedulable, classes)

    created = 0
    if outcome.entries:
        try:
            created = len(store.insert_timetable_entries(outcome.entries))
        except DataStoreError:
            logger.exception(
                "Timetable insert failed for %s semester %s; keeping %d allocations",
                term.academic_year,
                term.semester,
                len(inserted),
            )
        else:
            logger.info("Created %d timetable entries", created)

    return AutoAllocationResult(
        message=COMPLETED_MESSAGE,
        allocations=inserted,
        timetable_entries_created=created,
        unscheduled=outcome.unscheduled,
    )


def regenerate_timetable(store: AllocationDataStore, term: Term) -> TimetableRegenerationResult:
    """Rebuild the term's timetable over its live teaching allocations.

    The old rows are swapped for the new schedule in one store call, so a
    failed write leaves the previous timetable in place.
    """
    faculty = store.fetch_faculty_by_role(FACULTY_ROLE)
    classes = store.fetch_classes_by_semester_and_year(term.semester, term.academic_year)
    allocations = store.fetch_allocations(term.academic_year, term.semester)

    teaching_ids = {item.id for item in faculty if item.role == FACULTY_ROLE}
    schedulable = [
        item
        for item in allocations
        if item.faculty_id in teaching_ids and item.status != REJECTED_STATUS
    ]

    # Rejected allocations lose their stale rows; entries of admin or inactive
    # members are left as they are.
    replaced_ids = [item.id for item in schedulable]
    replaced_ids.extend(item.id for item in allocations if item.status == REJECTED_STATUS)

    outcome = build_schedule(schedulable, classes)
    removed, inserted_ids = store.replace_timetable_entries(replaced_ids, outcome.entries)
    created = len(inserted_ids)
    logger.info(
        "Regenerated timetable for %s semester %s: removed %d, created %d, unscheduled %d",
        term.academic_year,
        term.semester,
        removed,
        created,
        len(outcome.unscheduled),
    )
    return TimetableRegenerationResult(
        allocations_considered=len(schedulable),
        entries_removed=removed,
        entries_created=created,
        unscheduled=outcome.unscheduled,
    )
