from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.allocation import Allocation
from app.models.department import Department
from app.models.faculty import Faculty, FacultyRole
from app.schemas.faculty import FacultyCreate, FacultyOut, FacultyUpdate
from app.services.data_store import remove_allocations

router = APIRouter()


def _ensure_department(db: Session, department_id: int) -> None:
    if db.get(Department, department_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid department reference")


@router.get("/", response_model=list[FacultyOut])
def list_faculty(current_user: Faculty = Depends(get_current_user), db: Session = Depends(get_db)) -> list[FacultyOut]:
    return list(db.execute(select(Faculty).order_by(Faculty.name)).scalars())


@router.get("/{faculty_id}", response_model=FacultyOut)
def get_faculty(
    faculty_id: int,
    current_user: Faculty = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FacultyOut:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)
    return faculty


@router.post("/", response_model=FacultyOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    existing = db.execute(select(Faculty).where(Faculty.email == payload.email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    _ensure_department(db, payload.department_id)
    faculty = Faculty(**payload.model_dump())
    db.add(faculty)
    db.commit()
    db.refresh(faculty)
    return faculty


@router.put("/{faculty_id}", response_model=FacultyOut)
def update_faculty(
    faculty_id: int,
    payload: FacultyUpdate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)

    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    if "email" in data:
        data["email"] = data["email"].strip().lower()
        existing = db.execute(
            select(Faculty).where(Faculty.email == data["email"], Faculty.id != faculty_id)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if "department_id" in data:
        _ensure_department(db, data["department_id"])

    for key, value in data.items():
        setattr(faculty, key, value)
    db.commit()
    db.refresh(faculty)
    return faculty


@router.delete("/{faculty_id}")
def delete_faculty(
    faculty_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)
    if faculty.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account")
    allocations = list(db.execute(select(Allocation).where(Allocation.faculty_id == faculty_id)).scalars())
    remove_allocations(db, allocations)
    db.delete(faculty)
    db.commit()
    return {"success": True, "removed_allocation_count": len(allocations)}
