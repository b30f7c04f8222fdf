from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging

from app.services.grouping import (
    AllocationRecord,
    ClassRecord,
    CourseRecord,
    FacultyRecord,
    NewAllocation,
    Term,
    allocation_key,
    group_by_department,
)

STATUS_APPROVED = "approved"
STATUS_PENDING = "pending"

logger = logging.getLogger(__name__)


def has_expertise_match(faculty_expertise: Iterable[str] | None, required_expertise: Iterable[str] | None) -> bool:
    """Case-insensitive substring match in either direction.

    A course with no required expertise matches anyone; a faculty member with
    no expertise list matches only such courses.
    """
    required = [item.lower() for item in (required_expertise or [])]
    if not required:
        return True
    if faculty_expertise is None:
        return False
    skills = [item.lower() for item in faculty_expertise]
    return any(skill in need or need in skill for need in required for skill in skills)


def existing_allocation_keys(existing_allocations: Iterable[AllocationRecord]) -> set[str]:
    return {
        allocation_key(item.faculty_id, item.class_id, item.course_id)
        for item in existing_allocations
    }


def allocate(
    term: Term,
    faculty: Sequence[FacultyRecord],
    courses: Sequence[CourseRecord],
    classes: Sequence[ClassRecord],
    existing_allocations: Iterable[AllocationRecord],
) -> list[NewAllocation]:
    """Round-robin faculty over every (class, course) pair of each department.

    ``faculty`` must already be limited to teaching members, ``courses`` to the
    term's semester and ``classes`` to the term's semester and academic year.
    The round-robin index advances on every pair, including pairs skipped
    because the exact triple already exists for the term.
    """
    courses_by_dept = group_by_department(courses)
    classes_by_dept = group_by_department(classes)
    faculty_by_dept = group_by_department(faculty)
    allocated = existing_allocation_keys(existing_allocations)

    created: list[NewAllocation] = []
    for department_id, dept_courses in courses_by_dept.items():
        dept_faculty = faculty_by_dept.get(department_id, [])
        if not dept_faculty:
            logger.info("No faculty available for department %s; skipping", department_id)
            continue

        faculty_index = 0
        for school_class in classes_by_dept.get(department_id, []):
            for course in dept_courses:
                assigned = dept_faculty[faculty_index % len(dept_faculty)]
                faculty_index += 1

                if allocation_key(assigned.id, school_class.id, course.id) in allocated:
                    logger.debug(
                        "Skipping faculty %s for class %s course %s: already allocated",
                        assigned.id,
                        school_class.id,
                        course.id,
                    )
                    continue

                matched = has_expertise_match(assigned.expertise, course.required_expertise)
                created.append(
                    NewAllocation(
                        faculty_id=assigned.id,
                        class_id=school_class.id,
                        course_id=course.id,
                        academic_year=term.academic_year,
                        semester=term.semester,
                        status=STATUS_APPROVED if matched else STATUS_PENDING,
                    )
                )

    logger.info(
        "Allocator produced %d allocation(s) for %s semester %s",
        len(created),
        term.academic_year,
        term.semester,
    )
    return created
