from datetime import date
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_data_store, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.allocation import Allocation, AllocationStatus
from app.models.course import Course
from app.models.department import Department
from app.models.faculty import Faculty, FacultyRole
from app.models.school_class import SchoolClass
from app.schemas.allocation import (
    AllocationCreate,
    AllocationDetailOut,
    AllocationOut,
    AllocationWindowOut,
    AutoAllocateResponse,
    ClassSummary,
    CourseSummary,
    FacultySummary,
    TermRequest,
)
from app.schemas.school_class import class_display_name
from app.services.auto_allocation import run_auto_allocation
from app.services.data_store import SqlAlchemyDataStore, remove_allocations
from app.services.grouping import Term

router = APIRouter()
logger = logging.getLogger(__name__)

SECOND_SEMESTER_START_MONTH = 7


def _get_allocation(db: Session, allocation_id: int) -> Allocation:
    allocation = db.get(Allocation, allocation_id)
    if allocation is None:
        raise ResourceNotFoundError("Allocation", allocation_id)
    return allocation


@router.get("/", response_model=list[AllocationDetailOut])
def list_allocations(current_user: Faculty = Depends(get_current_user), db: Session = Depends(get_db)) -> list[AllocationDetailOut]:
    allocations = list(db.execute(select(Allocation).order_by(Allocation.created_at.desc(), Allocation.id.desc())).scalars())
    faculty = {item.id: item for item in db.execute(select(Faculty)).scalars()}
    courses = {item.id: item for item in db.execute(select(Course)).scalars()}
    classes = {item.id: item for item in db.execute(select(SchoolClass)).scalars()}
    departments = {item.id: item for item in db.execute(select(Department)).scalars()}

    enriched: list[AllocationDetailOut] = []
    for allocation in allocations:
        member = faculty.get(allocation.faculty_id)
        course = courses.get(allocation.course_id)
        school_class = classes.get(allocation.class_id)
        class_summary = None
        if school_class is not None:
            department = departments.get(school_class.department_id)
            label = (department.code or department.name) if department is not None else None
            class_summary = ClassSummary(
                id=school_class.id,
                section=school_class.section,
                semester=school_class.semester,
                academic_year=school_class.academic_year,
                department_id=school_class.department_id,
                display_name=class_display_name(school_class.section, school_class.semester, label),
            )
        enriched.append(
            AllocationDetailOut(
                **AllocationOut.model_validate(allocation).model_dump(),
                faculty=(
                    FacultySummary(
                        id=member.id, name=member.name, email=member.email, department_id=member.department_id
                    )
                    if member is not None
                    else None
                ),
                course=(
                    CourseSummary(
                        id=course.id,
                        code=course.code,
                        name=course.name,
                        credits=course.credits,
                        semester=course.semester,
                    )
                    if course is not None
                    else None
                ),
                class_=class_summary,
            )
        )
    logger.info("Returning %d allocations with joined data", len(enriched))
    return enriched


@router.get("/windows", response_model=list[AllocationWindowOut])
def allocation_windows(current_user: Faculty = Depends(get_current_user)) -> list[AllocationWindowOut]:
    today = date.today()
    semester = 2 if today.month >= SECOND_SEMESTER_START_MONTH else 1
    return [AllocationWindowOut(academic_year=today.year, semester=semester, status="active")]


@router.post("/", response_model=AllocationOut, status_code=status.HTTP_201_CREATED)
def create_allocation(
    payload: AllocationCreate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> AllocationOut:
    if db.get(Faculty, payload.faculty_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid faculty reference")
    if db.get(SchoolClass, payload.class_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid class reference")
    if db.get(Course, payload.course_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid course reference")

    allocation = Allocation(**payload.model_dump())
    db.add(allocation)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Allocation already exists") from exc
    db.refresh(allocation)
    return allocation


def _set_status(db: Session, allocation_id: int, new_status: AllocationStatus) -> Allocation:
    allocation = _get_allocation(db, allocation_id)
    allocation.status = new_status
    db.commit()
    db.refresh(allocation)
    return allocation


@router.post("/{allocation_id}/approve", response_model=AllocationOut)
def approve_allocation(
    allocation_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> AllocationOut:
    return _set_status(db, allocation_id, AllocationStatus.approved)


@router.post("/{allocation_id}/reject", response_model=AllocationOut)
def reject_allocation(
    allocation_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> AllocationOut:
    return _set_status(db, allocation_id, AllocationStatus.rejected)


@router.delete("/{allocation_id}")
def delete_allocation(
    allocation_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    remove_allocations(db, [_get_allocation(db, allocation_id)])
    db.commit()
    return {"message": "Allocation deleted successfully"}


@router.post("/auto-allocate", response_model=AutoAllocateResponse, response_model_exclude_none=True)
def auto_allocate(
    payload: TermRequest,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    store: SqlAlchemyDataStore = Depends(get_data_store),
) -> AutoAllocateResponse:
    result = run_auto_allocation(store, Term(academic_year=payload.academic_year, semester=payload.semester))
    if not result.allocations:
        return AutoAllocateResponse(message=result.message, allocations_created=0)
    return AutoAllocateResponse(
        message=result.message,
        allocations_created=result.allocations_created,
        timetable_entries_created=result.timetable_entries_created,
        allocations=[AllocationOut.model_validate(item) for item in result.allocations],
    )
