from pydantic import BaseModel, Field, RootModel
from typing import Optional, List
from datetime import datetime

# --- Sessions ---

class PerformanceEntry(BaseModel):
    goal_id: str
    accuracy: Optional[float] = Field(None, ge=0, le=100)
    correct_trials: Optional[int] = Field(None, ge=0)
    incorrect_trials: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None

class Session(BaseModel):
    id: str
    student_id: str
    date: datetime
    goals_targeted: List[str] = Field(default_factory=list)
    performance_data: List[PerformanceEntry] = Field(default_factory=list)
    notes: str = ""
    missed_session: bool = False

class SessionCreate(BaseModel):
    student_id: str
    date: datetime
    goals_targeted: List[str] = Field(default_factory=list)
    performance_data: List[PerformanceEntry] = Field(default_factory=list)
    notes: str = ""
    missed_session: bool = False

class SessionsCreate(RootModel):
    root: List[SessionCreate]

# --- Recent performance ---

class PerformancePoint(BaseModel):
    date: datetime
    accuracy: Optional[float] = None
    correct_trials: Optional[int] = None
    incorrect_trials: Optional[int] = None

class RecentPerformance(BaseModel):
    recent_sessions: List[PerformancePoint] = Field(default_factory=list)
    average: Optional[float] = None
