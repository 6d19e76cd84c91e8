from academy_portal.core.models.academy import Academy
from academy_portal.core.models.attendance import AttendanceEntry, AttendanceRecord
from academy_portal.core.models.batch import Batch, BatchStudent, BatchTeacher
from academy_portal.core.models.fee_record import FeeRecord
from academy_portal.core.models.student import Student
from academy_portal.core.models.teacher import Teacher

__all__ = [
    "Academy",
    "AttendanceEntry",
    "AttendanceRecord",
    "Batch",
    "BatchStudent",
    "BatchTeacher",
    "FeeRecord",
    "Student",
    "Teacher",
]
