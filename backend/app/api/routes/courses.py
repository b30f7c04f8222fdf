from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.allocation import Allocation
from app.models.course import Course
from app.models.department import Department
from app.models.faculty import Faculty, FacultyRole
from app.schemas.course import CourseCreate, CourseOut, CourseUpdate
from app.services.data_store import remove_allocations

router = APIRouter()


@router.get("/", response_model=list[CourseOut])
def list_courses(current_user: Faculty = Depends(get_current_user), db: Session = Depends(get_db)) -> list[CourseOut]:
    return list(db.execute(select(Course).order_by(Course.semester, Course.code)).scalars())


@router.post("/", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    existing = db.execute(select(Course).where(Course.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    if db.get(Department, payload.department_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid department reference")
    course = Course(**payload.model_dump())
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> CourseOut:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "code" in data:
        existing = db.execute(select(Course).where(Course.code == data["code"], Course.id != course_id)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course code already exists")
    if "department_id" in data and db.get(Department, data["department_id"]) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid department reference")

    for key, value in data.items():
        setattr(course, key, value)
    db.commit()
    db.refresh(course)
    return course


@router.delete("/{course_id}")
def delete_course(
    course_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    remove_allocations(db, list(db.execute(select(Allocation).where(Allocation.course_id == course_id)).scalars()))
    db.delete(course)
    db.commit()
    return {"success": True}
