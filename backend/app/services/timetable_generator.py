from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
import logging
from typing import Protocol

from app.services.grouping import ClassRecord, ScheduleResult, TimetableEntryDraft, occupancy_key

DAYS_PER_WEEK = 5
SLOTS_PER_DAY = 8
ROOM_NUMBER_BASE = 100
DEFAULT_ROOM_PREFIX = "R"

logger = logging.getLogger(__name__)


class SchedulableAllocation(Protocol):
    id: int
    faculty_id: int
    class_id: int


def grid_cells() -> Iterable[tuple[int, int]]:
    """Yield every (day_of_week, time_slot) in day-major, slot-minor order."""
    for day in range(1, DAYS_PER_WEEK + 1):
        for slot in range(1, SLOTS_PER_DAY + 1):
            yield day, slot


class _GridState:
    """Occupancy and room tallies for a single generation run."""

    def __init__(self, classes: Sequence[ClassRecord]) -> None:
        self.faculty_slots: set[str] = set()
        self.class_slots: set[str] = set()
        self.room_counter: dict[tuple[int, int], int] = defaultdict(int)
        self.department_by_class = {item.id: item.department_id for item in classes}

    def find_free_cell(self, faculty_id: int, class_id: int) -> tuple[int, int] | None:
        for day, slot in grid_cells():
            if occupancy_key(faculty_id, day, slot) in self.faculty_slots:
                continue
            if occupancy_key(class_id, day, slot) in self.class_slots:
                continue
            return day, slot
        return None

    def room_number(self, day: int, slot: int, class_id: int) -> str:
        self.room_counter[(day, slot)] += 1
        department_id = self.department_by_class.get(class_id)
        prefix = f"D{department_id}" if department_id is not None else DEFAULT_ROOM_PREFIX
        return f"{prefix}{ROOM_NUMBER_BASE + self.room_counter[(day, slot)]}"

    def book(self, faculty_id: int, class_id: int, day: int, slot: int) -> None:
        self.faculty_slots.add(occupancy_key(faculty_id, day, slot))
        self.class_slots.add(occupancy_key(class_id, day, slot))


def build_schedule(
    allocations: Iterable[SchedulableAllocation],
    classes: Sequence[ClassRecord],
) -> ScheduleResult:
    """Greedy first-fit placement of allocations into the weekly grid.

    Earlier allocations win earlier cells. Callers must pass only allocations
    held by faculty-role members; the role is not re-checked here.
    """
    state = _GridState(classes)
    result = ScheduleResult()
    for allocation in allocations:
        cell = state.find_free_cell(allocation.faculty_id, allocation.class_id)
        if cell is None:
            logger.warning("Could not find available slot for allocation %s", allocation.id)
            result.unscheduled.append(allocation.id)
            continue
        day, slot = cell
        result.entries.append(
            TimetableEntryDraft(
                allocation_id=allocation.id,
                day_of_week=day,
                time_slot=slot,
                room_number=state.room_number(day, slot, allocation.class_id),
            )
        )
        state.book(allocation.faculty_id, allocation.class_id, day, slot)
    return result


def schedule(
    allocations: Iterable[SchedulableAllocation],
    classes: Sequence[ClassRecord],
) -> list[TimetableEntryDraft]:
    return build_schedule(allocations, classes).entries
