from app.models.allocation import Allocation, AllocationStatus  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.department import Department  # noqa: F401
from app.models.faculty import Faculty, FacultyRole  # noqa: F401
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.timetable import TimetableEntry  # noqa: F401
