from pydantic import BaseModel, Field, field_validator


class ClassCreate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    section: str = Field(min_length=1, max_length=50)
    semester: int = Field(ge=1, le=8)
    academic_year: int = Field(ge=2000, le=2100)
    department_id: int = Field(ge=1)

    @field_validator("section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Section cannot be empty")
        return trimmed


class ClassOut(ClassCreate):
    id: int
    display_name: str


def class_display_name(section: str, semester: int, department_label: str | None) -> str:
    class_label = " ".join(part for part in (department_label or "Department", section.strip()) if part)
    return f"{class_label} - Semester {semester}"
