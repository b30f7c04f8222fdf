from pydantic import BaseModel, Field, field_validator

from app.schemas.faculty import normalize_tags


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    department_id: int = Field(ge=1)
    semester: int = Field(ge=1, le=8)
    credits: int = Field(default=3, ge=1, le=40)
    required_expertise: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Course code cannot be empty")
        return code

    @field_validator("required_expertise")
    @classmethod
    def normalize_required_expertise(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    department_id: int | None = Field(default=None, ge=1)
    semester: int | None = Field(default=None, ge=1, le=8)
    credits: int | None = Field(default=None, ge=1, le=40)
    required_expertise: list[str] | None = Field(default=None, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize_optional_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper()

    @field_validator("required_expertise")
    @classmethod
    def normalize_optional_required_expertise(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return normalize_tags(value)


class CourseOut(CourseBase):
    id: int

    model_config = {"from_attributes": True}
