"""Business services."""

from hrdesk.services.attendance_service import AttendanceService, CheckOutResult
from hrdesk.services.caller import Caller
from hrdesk.services.employee_service import EmployeeService
from hrdesk.services.leave_service import LeaveService
from hrdesk.services.locking_service import KeyedLocks, RunRegistry, SqlRunRegistry
from hrdesk.services.monthly_trigger import due_period, is_last_day_of_month, trigger_monthly_run
from hrdesk.services.salary_service import (
    FailedEmployee,
    RunResult,
    SalaryOrchestrator,
    clip_leaves_to_period,
)
from hrdesk.services.state_machine import (
    InvalidTransitionError,
    LeaveStateMachine,
    SalaryRunStateMachine,
    SalaryRunStatus,
)

__all__ = [
    "AttendanceService",
    "Caller",
    "CheckOutResult",
    "EmployeeService",
    "FailedEmployee",
    "InvalidTransitionError",
    "KeyedLocks",
    "LeaveService",
    "LeaveStateMachine",
    "RunRegistry",
    "SqlRunRegistry",
    "RunResult",
    "SalaryOrchestrator",
    "SalaryRunStateMachine",
    "SalaryRunStatus",
    "clip_leaves_to_period",
    "due_period",
    "is_last_day_of_month",
    "trigger_monthly_run",
]
