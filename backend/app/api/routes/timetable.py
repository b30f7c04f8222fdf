import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_data_store, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.allocation import Allocation
from app.models.course import Course
from app.models.faculty import Faculty, FacultyRole
from app.models.school_class import SchoolClass
from app.models.timetable import TimetableEntry
from app.schemas.allocation import TermRequest
from app.schemas.timetable import (
    TimetableEntryCreate,
    TimetableEntryDetailOut,
    TimetableEntryOut,
    TimetableGenerateResponse,
)
from app.services.auto_allocation import regenerate_timetable
from app.services.data_store import SqlAlchemyDataStore
from app.services.grouping import Term

router = APIRouter()
logger = logging.getLogger(__name__)


def _detailed_entries(db: Session, *filters) -> list[TimetableEntryDetailOut]:
    statement = (
        select(TimetableEntry, Allocation, Faculty, SchoolClass, Course)
        .join(Allocation, Allocation.id == TimetableEntry.allocation_id)
        .outerjoin(Faculty, Faculty.id == Allocation.faculty_id)
        .outerjoin(SchoolClass, SchoolClass.id == Allocation.class_id)
        .outerjoin(Course, Course.id == Allocation.course_id)
        .where(*filters)
        .order_by(TimetableEntry.day_of_week, TimetableEntry.time_slot, TimetableEntry.id)
    )
    rows: list[TimetableEntryDetailOut] = []
    for entry, allocation, member, school_class, course in db.execute(statement).all():
        rows.append(
            TimetableEntryDetailOut(
                **TimetableEntryOut.model_validate(entry).model_dump(),
                faculty_id=allocation.faculty_id,
                class_id=allocation.class_id,
                faculty_name=member.name if member is not None else None,
                section=school_class.section if school_class is not None else None,
                class_semester=school_class.semester if school_class is not None else None,
                course_code=course.code if course is not None else None,
                course_name=course.name if course is not None else None,
            )
        )
    return rows


@router.get("/", response_model=list[TimetableEntryDetailOut])
def list_timetable(current_user: Faculty = Depends(get_current_user), db: Session = Depends(get_db)) -> list[TimetableEntryDetailOut]:
    return _detailed_entries(db)


@router.get("/class/{class_id}", response_model=list[TimetableEntryDetailOut])
def class_timetable(
    class_id: int,
    current_user: Faculty = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableEntryDetailOut]:
    return _detailed_entries(db, Allocation.class_id == class_id)


@router.get("/faculty/{faculty_id}", response_model=list[TimetableEntryDetailOut])
def faculty_timetable(
    faculty_id: int,
    current_user: Faculty = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableEntryDetailOut]:
    return _detailed_entries(db, Allocation.faculty_id == faculty_id)


@router.post("/", response_model=TimetableEntryOut, status_code=status.HTTP_201_CREATED)
def create_timetable_entry(
    payload: TimetableEntryCreate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    allocation = db.get(Allocation, payload.allocation_id)
    if allocation is None:
        raise ResourceNotFoundError("Allocation", payload.allocation_id)

    conflict = db.execute(
        select(TimetableEntry.id)
        .join(Allocation, Allocation.id == TimetableEntry.allocation_id)
        .where(
            TimetableEntry.day_of_week == payload.day_of_week,
            TimetableEntry.time_slot == payload.time_slot,
            or_(
                TimetableEntry.room_number == payload.room_number,
                Allocation.faculty_id == allocation.faculty_id,
                Allocation.class_id == allocation.class_id,
            ),
        )
        .limit(1)
    ).first()
    if conflict is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Time slot conflict detected")

    entry = TimetableEntry(**payload.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Timetable entry %s created manually for allocation %s", entry.id, allocation.id)
    return entry


@router.post("/generate", response_model=TimetableGenerateResponse)
def generate_timetable(
    payload: TermRequest,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    store: SqlAlchemyDataStore = Depends(get_data_store),
) -> TimetableGenerateResponse:
    result = regenerate_timetable(store, Term(academic_year=payload.academic_year, semester=payload.semester))
    return TimetableGenerateResponse(
        message="Timetable generated successfully",
        allocations_considered=result.allocations_considered,
        entries_removed=result.entries_removed,
        entries_created=result.entries_created,
        unscheduled_allocation_ids=result.unscheduled,
    )


@router.delete("/{entry_id}")
def delete_timetable_entry(
    entry_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    entry = db.get(TimetableEntry, entry_id)
    if entry is None:
        raise ResourceNotFoundError("Timetable entry", entry_id)
    db.delete(entry)
    db.commit()
    return {"message": "Timetable entry deleted successfully"}
