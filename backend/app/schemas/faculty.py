from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.faculty import FacultyRole


def normalize_tags(values: list[str]) -> list[str]:
    seen: set[str] = set()
    normalized: list[str] = []
    for item in values:
        tag = item.strip()
        if not tag:
            continue
        if len(tag) > 100:
            raise ValueError("Tag length cannot exceed 100 characters")
        if tag.lower() in seen:
            continue
        seen.add(tag.lower())
        normalized.append(tag)
    return normalized


class FacultyBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    department_id: int = Field(ge=1)
    role: FacultyRole = FacultyRole.faculty
    designation: str | None = Field(default=None, max_length=200)
    expertise: list[str] = Field(default_factory=list, max_length=50)
    preferences: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("expertise", "preferences")
    @classmethod
    def normalize_tag_lists(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class FacultyCreate(FacultyBase):
    pass


class FacultyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    department_id: int | None = Field(default=None, ge=1)
    role: FacultyRole | None = None
    designation: str | None = Field(default=None, max_length=200)
    expertise: list[str] | None = Field(default=None, max_length=50)
    preferences: list[str] | None = Field(default=None, max_length=50)
    is_active: bool | None = None

    @field_validator("expertise", "preferences")
    @classmethod
    def normalize_optional_tag_lists(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return normalize_tags(value)


class FacultyOut(FacultyBase):
    id: int
    is_active: bool

    model_config = {"from_attributes": True}
