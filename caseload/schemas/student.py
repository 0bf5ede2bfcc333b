from pydantic import BaseModel
from typing import Optional, Literal
from datetime import date, datetime

ReportFrequency = Literal["quarterly", "annual"]

# --- Students ---
class Student(BaseModel):
    id: Optional[str] = None
    teacher_id: str
    name: str
    grade_level: Optional[str] = None
    school: Optional[str] = None
    iep_date: Optional[date] = None
    annual_review_date: Optional[date] = None
    progress_report_frequency: ReportFrequency = "annual"
    status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class StudentCreate(BaseModel):
    name: str
    grade_level: Optional[str] = None
    school: Optional[str] = None
    iep_date: Optional[date] = None
    annual_review_date: Optional[date] = None
    progress_report_frequency: ReportFrequency = "annual"
    status: str = "active"
