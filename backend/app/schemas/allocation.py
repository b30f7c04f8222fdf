from datetime import datetime

from pydantic import BaseModel, Field

from app.models.allocation import AllocationStatus


class TermRequest(BaseModel):
    academic_year: int = Field(ge=2000, le=2100)
    semester: int = Field(ge=1, le=8)


class AllocationCreate(TermRequest):
    faculty_id: int = Field(ge=1)
    class_id: int = Field(ge=1)
    course_id: int = Field(ge=1)
    status: AllocationStatus = AllocationStatus.approved


class AllocationOut(BaseModel):
    id: int
    faculty_id: int
    class_id: int
    course_id: int
    academic_year: int
    semester: int
    status: AllocationStatus
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class FacultySummary(BaseModel):
    id: int
    name: str
    email: str
    department_id: int


class CourseSummary(BaseModel):
    id: int
    code: str
    name: str
    credits: int
    semester: int


class ClassSummary(BaseModel):
    id: int
    section: str
    semester: int
    academic_year: int
    department_id: int
    display_name: str


class AllocationDetailOut(AllocationOut):
    faculty: FacultySummary | None = None
    course: CourseSummary | None = None
    class_: ClassSummary | None = Field(default=None, serialization_alias="class")


class AllocationWindowOut(BaseModel):
    academic_year: int
    semester: int
    status: str


class AutoAllocateResponse(BaseModel):
    message: str
    allocations_created: int
    timetable_entries_created: int | None = None
    allocations: list[AllocationOut] | None = None
