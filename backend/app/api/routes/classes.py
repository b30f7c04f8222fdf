from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.allocation import Allocation
from app.models.department import Department
from app.models.faculty import Faculty, FacultyRole
from app.models.school_class import SchoolClass
from app.schemas.school_class import ClassCreate, ClassOut, class_display_name
from app.services.data_store import remove_allocations

router = APIRouter()


def to_class_out(item: SchoolClass, department: Department | None) -> ClassOut:
    label = (department.code or department.name) if department is not None else None
    return ClassOut(
        id=item.id,
        name=item.name,
        section=item.section,
        semester=item.semester,
        academic_year=item.academic_year,
        department_id=item.department_id,
        display_name=class_display_name(item.section, item.semester, label),
    )


@router.get("/", response_model=list[ClassOut])
def list_classes(current_user: Faculty = Depends(get_current_user), db: Session = Depends(get_db)) -> list[ClassOut]:
    departments = {item.id: item for item in db.execute(select(Department)).scalars()}
    classes = db.execute(select(SchoolClass).order_by(SchoolClass.semester, SchoolClass.section)).scalars()
    return [to_class_out(item, departments.get(item.department_id)) for item in classes]


@router.post("/", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> ClassOut:
    department = db.get(Department, payload.department_id)
    if department is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid department reference")
    school_class = SchoolClass(**payload.model_dump())
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return to_class_out(school_class, department)


@router.delete("/{class_id}")
def delete_class(
    class_id: int,
    current_user: Faculty = Depends(require_roles(FacultyRole.admin)),
    db: Session = Depends(get_db),
) -> dict:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise ResourceNotFoundError("Class", class_id)
    allocations = list(db.execute(select(Allocation).where(Allocation.class_id == class_id)).scalars())
    remove_allocations(db, allocations)
    db.delete(school_class)
    db.commit()
    return {"success": True}
