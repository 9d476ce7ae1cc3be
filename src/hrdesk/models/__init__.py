"""SQLAlchemy ORM models."""

from hrdesk.models.base import Base
from hrdesk.models.employee import Alert, Employee, EmployeeRole, PerformanceReview
from hrdesk.models.attendance import AttendanceRecord, LeaveRequest
from hrdesk.models.salary import SalaryRecord, SalaryRun

__all__ = [
    "Base",
    "Employee",
    "EmployeeRole",
    "PerformanceReview",
    "Alert",
    "AttendanceRecord",
    "LeaveRequest",
    "SalaryRecord",
    "SalaryRun",
]
