from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import date

ReportType = Literal["quarterly", "annual"]
ReportStatus = Literal["scheduled", "overdue", "completed"]

# --- Progress Reports ---
class ProgressReport(BaseModel):
    id: str
    student_id: str
    report_type: ReportType
    period_start: str  # YYYY-MM-DD
    period_end: str  # YYYY-MM-DD
    due_date: str  # YYYY-MM-DD
    scheduled_date: str
    status: ReportStatus = "scheduled"
    date_created: str
    date_updated: str
    completed_date: Optional[str] = None
    content: Optional[str] = None

class Quarter(BaseModel):
    start: date
    end: date
    quarter: int = Field(..., ge=1, le=4)

class ScheduleReportsRequest(BaseModel):
    student_id: Optional[str] = None
    school: Optional[str] = None
