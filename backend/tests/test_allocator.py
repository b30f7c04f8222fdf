from collections import Counter

from app.services.allocator import allocate, existing_allocation_keys, has_expertise_match
from app.services.grouping import (
    AllocationRecord,
    ClassRecord,
    CourseRecord,
    FacultyRecord,
    Term,
    allocation_key,
    group_by_department,
)

TERM = Term(academic_year=2025, semester=3)


def faculty(faculty_id, department_id=1, expertise=None):
    return FacultyRecord(
        id=faculty_id,
        department_id=department_id,
        expertise=tuple(expertise) if expertise is not None else None,
    )


def course(course_id, department_id=1, required=None):
    return CourseRecord(
        id=course_id,
        department_id=department_id,
        semester=TERM.semester,
        required_expertise=tuple(required) if required is not None else None,
    )


def school_class(class_id, department_id=1, section="A"):
    return ClassRecord(
        id=class_id,
        department_id=department_id,
        semester=TERM.semester,
        academic_year=TERM.academic_year,
        section=section,
    )


def existing(faculty_id, class_id, course_id, allocation_id=999):
    return AllocationRecord(
        id=allocation_id,
        faculty_id=faculty_id,
        class_id=class_id,
        course_id=course_id,
        academic_year=TERM.academic_year,
        semester=TERM.semester,
        status="approved",
    )


def test_allocation_key_is_pipe_joined_triple():
    assert allocation_key(7, 12, 31) == "7|12|31"
    assert existing_allocation_keys([existing(1, 2, 3)]) == {"1|2|3"}


def test_group_by_department_keeps_first_seen_order():
    grouped = group_by_department([course(1, 3), course(2, 1), course(3, 3)])
    assert list(grouped) == [3, 1]
    assert [item.id for item in grouped[3]] == [1, 3]


def test_two_faculty_two_classes_one_course_round_robin_all_approved():
    result = allocate(
        TERM,
        [faculty(1), faculty(2)],
        [course(10)],
        [school_class(100), school_class(101, section="B")],
        [],
    )

    assert [(item.faculty_id, item.class_id, item.course_id) for item in result] == [
        (1, 100, 10),
        (2, 101, 10),
    ]
    assert {item.status for item in result} == {"approved"}
    assert all(item.academic_year == 2025 and item.semester == 3 for item in result)


def test_expertise_mismatch_creates_pending_allocation():
    result = allocate(
        TERM,
        [faculty(1, expertise=["Databases"])],
        [course(10, required=["Machine Learning"])],
        [school_class(100)],
        [],
    )

    assert len(result) == 1
    assert result[0].status == "pending"


def test_expertise_match_is_case_insensitive_substring_either_way():
    assert has_expertise_match(["machine learning and vision"], ["Machine Learning"])
    assert has_expertise_match(["LEARNING"], ["Machine Learning"])
    assert not has_expertise_match(["Networks"], ["Machine Learning", "Statistics"])
    assert has_expertise_match(["Networks", "stat"], ["Machine Learning", "Statistics"])


def test_missing_expertise_only_matches_courses_without_requirements():
    assert has_expertise_match(None, None)
    assert has_expertise_match(None, [])
    assert has_expertise_match([], ())
    assert not has_expertise_match(None, ["Compilers"])
    assert not has_expertise_match([], ["Compilers"])


def test_existing_triple_is_skipped_and_round_robin_still_advances():
    result = allocate(
        TERM,
        [faculty(1), faculty(2)],
        [course(10), course(11)],
        [school_class(100)],
        [existing(1, 100, 10)],
    )

    # (100, 10) would go to faculty 1 and already exists; (100, 11) still goes to faculty 2.
    assert [(item.faculty_id, item.class_id, item.course_id) for item in result] == [(2, 100, 11)]


def test_existing_allocation_for_other_faculty_does_not_block_pair():
    result = allocate(
        TERM,
        [faculty(1), faculty(2)],
        [course(10)],
        [school_class(100)],
        [existing(2, 100, 10)],
    )

    assert [(item.faculty_id, item.class_id, item.course_id) for item in result] == [(1, 100, 10)]


def test_round_robin_spreads_pairs_evenly_in_index_order():
    members = [faculty(1), faculty(2), faculty(3)]
    result = allocate(
        TERM,
        members,
        [course(10), course(11), course(12), course(13)],
        [school_class(100), school_class(101, section="B")],
        [],
    )

    assert len(result) == 8
    counts = Counter(item.faculty_id for item in result)
    assert counts == {1: 3, 2: 3, 3: 2}
    assert [item.faculty_id for item in result] == [1, 2, 3, 1, 2, 3, 1, 2]
    # Class is the outer loop, course the inner loop.
    assert [(item.class_id, item.course_id) for item in result[:4]] == [
        (100, 10),
        (100, 11),
        (100, 12),
        (100, 13),
    ]


def test_round_robin_offers_are_fixed_even_when_pairs_are_skipped():
    members = [faculty(1), faculty(2), faculty(3)]
    courses = [course(10), course(11)]
    classes = [school_class(100), school_class(101, section="B")]
    baseline = allocate(TERM, members, courses, classes, [])
    skipped = baseline[1]

    result = allocate(
        TERM,
        members,
        courses,
        classes,
        [existing(skipped.faculty_id, skipped.class_id, skipped.course_id)],
    )

    assert result == [item for index, item in enumerate(baseline) if index != 1]


def test_allocations_never_cross_departments():
    members = [faculty(1, department_id=1), faculty(2, department_id=2), faculty(3, department_id=2)]
    courses = [course(10, department_id=1), course(20, department_id=2), course(21, department_id=2)]
    classes = [
        school_class(100, department_id=1),
        school_class(200, department_id=2),
        school_class(201, department_id=2, section="B"),
    ]

    result = allocate(TERM, members, courses, classes, [])

    department_of_faculty = {item.id: item.department_id for item in members}
    department_of_course = {item.id: item.department_id for item in courses}
    department_of_class = {item.id: item.department_id for item in classes}
    assert len(result) == 5
    for item in result:
        assert department_of_faculty[item.faculty_id] == department_of_course[item.course_id]
        assert department_of_class[item.class_id] == department_of_course[item.course_id]


def test_department_without_faculty_is_skipped(caplog):
    caplog.set_level("INFO", logger="app.services.allocator")
    result = allocate(
        TERM,
        [faculty(1, department_id=1)],
        [course(20, department_id=2), course(10, department_id=1)],
        [school_class(200, department_id=2), school_class(100, department_id=1)],
        [],
    )

    assert [(item.faculty_id, item.class_id, item.course_id) for item in result] == [(1, 100, 10)]
    assert "No faculty available for department 2" in caplog.text


def test_department_without_classes_or_courses_produces_nothing():
    assert allocate(TERM, [faculty(1)], [course(10)], [], []) == []
    assert allocate(TERM, [faculty(1)], [], [school_class(100)], []) == []


def test_output_follows_course_department_order():
    members = [faculty(1, department_id=1), faculty(2, department_id=2)]
    courses = [course(20, department_id=2), course(10, department_id=1)]
    classes = [school_class(100, department_id=1), school_class(200, department_id=2)]

    result = allocate(TERM, members, courses, classes, [])

    assert [item.course_id for item in result] == [20, 10]
