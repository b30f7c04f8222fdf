from pydantic import BaseModel, Field, field_validator


class TimetableEntryCreate(BaseModel):
    allocation_id: int = Field(ge=1)
    day_of_week: int = Field(ge=1, le=5)
    time_slot: int = Field(ge=1, le=8)
    room_number: str = Field(min_length=1, max_length=50)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Room number cannot be empty")
        return trimmed


class TimetableEntryOut(BaseModel):
    id: int
    allocation_id: int
    day_of_week: int
    time_slot: int
    room_number: str

    model_config = {"from_attributes": True}


class TimetableEntryDetailOut(TimetableEntryOut):
    faculty_id: int | None = None
    class_id: int | None = None
    faculty_name: str | None = None
    section: str | None = None
    class_semester: int | None = None
    course_code: str | None = None
    course_name: str | None = None


class TimetableGenerateResponse(BaseModel):
    message: str
    allocations_considered: int
    entries_removed: int
    entries_created: int
    unscheduled_allocation_ids: list[int]
