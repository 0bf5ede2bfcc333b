from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Literal
from datetime import datetime

GoalStatus = Literal["in-progress", "achieved", "modified"]
GoalPriority = Literal["high", "medium", "low"]

# --- Goals (goals.parent_goal_id -> goals.id) ---
class Goal(BaseModel):
    id: str
    student_id: str
    parent_goal_id: Optional[str] = None
    description: str
    baseline: str = ""
    target: str = ""
    status: GoalStatus = "in-progress"
    priority: Optional[GoalPriority] = None
    domain: Optional[str] = None
    date_created: Optional[datetime] = None
    date_achieved: Optional[datetime] = None

class CreateGoal(BaseModel):
    student_id: str
    description: str
    baseline: str = ""
    target: str = ""
    parent_goal_id: Optional[str] = None
    status: GoalStatus = "in-progress"
    priority: Optional[GoalPriority] = None
    domain: Optional[str] = None

class UpdateGoal(BaseModel):
    description: Optional[str] = None
    baseline: Optional[str] = None
    target: Optional[str] = None
    status: Optional[GoalStatus] = None
    priority: Optional[GoalPriority] = None
    domain: Optional[str] = None

# --- Hierarchy ---
class GoalHierarchy(BaseModel):
    parent_goals: List[Goal] = Field(default_factory=list)
    sub_goals_by_parent: Dict[str, List[Goal]] = Field(default_factory=dict)
    orphan_goals: List[Goal] = Field(default_factory=list)
    unresolved_goals: List[Goal] = Field(default_factory=list, description="Goals whose parent is not in scope")

class TextReplacement(BaseModel):
    # Literal substring replacement applied when copying goals
    from_text: str = Field(..., alias="from")
    to_text: str = Field("", alias="to")

    class Config:
        populate_by_name = True

class CopyGoalSubtree(BaseModel):
    replacements: List[TextReplacement] = Field(default_factory=list)
    new_parent_goal_id: Optional[str] = None
