from fastapi import APIRouter, Depends, HTTPException
from caseload.schemas.goal import Goal, CreateGoal, UpdateGoal, GoalHierarchy, CopyGoalSubtree
from caseload.dependencies.auth import user_supabase_client
from caseload.services.goal_hierarchy import (
    CycleDetected,
    ParentNotFound,
    organize_hierarchy,
    depth_of,
    path_of,
    format_path,
    copy_subtree,
    is_goal_achieved,
)
from caseload.utils.dates import new_id, utc_now
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

def _student_goals(supabase, student_id: str, user_id: str) -> List[Goal]:
    rows = supabase \
        .table("goals") \
        .select("*") \
        .eq("teacher_id", user_id) \
        .eq("student_id", student_id) \
        .order("date_created") \
        .execute().data or []
    return [Goal(**row) for row in rows if row]

def _get_goal_or_404(supabase, goal_id: str, user_id: str) -> Goal:
    rows = supabase.table("goals").select("*").eq("id", goal_id).eq("teacher_id", user_id).execute().data
    if not rows:
        raise HTTPException(status_code=404, detail="Goal not found")
    return Goal(**rows[0])

def _goal_row(goal: Goal, user_id: str) -> dict:
    row = goal.model_dump(mode="json")
    row["teacher_id"] = user_id
    return row

# -------- Goals --------

@router.post("/goal")
def create_goal(goal: CreateGoal, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    if goal.parent_goal_id:
        parent = _get_goal_or_404(supabase, goal.parent_goal_id, user_id)
        if parent.student_id != goal.student_id:
            raise HTTPException(status_code=422, detail="Parent goal belongs to a different student")

    now = utc_now()
    new_goal = Goal(
        id=new_id(),
        date_created=now,
        date_achieved=now if goal.status == "achieved" else None,
        **goal.model_dump(),
    )
    return supabase.table("goals").insert(_goal_row(new_goal, user_id)).execute().data

@router.get("/student/{student_id}")
def get_goals_for_student(student_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]
    return _student_goals(supabase, student_id, user_id)

@router.get("/student/{student_id}/hierarchy", response_model=GoalHierarchy)
def get_goal_hierarchy_for_student(student_id: str, strict: bool = False, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]
    try:
        return organize_hierarchy(_student_goals(supabase, student_id, user_id), strict=strict)
    except ParentNotFound as e:
        logger.error(f"Goal hierarchy error for student {student_id}: {str(e)}")
        raise HTTPException(status_code=422, detail=str(e))

@router.get("/goal/{goal_id}")
def get_goal(goal_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    return _get_goal_or_404(supabase, goal_id, context["user_id"])

@router.get("/goal/{goal_id}/path")
def get_goal_path(goal_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    goal = _get_goal_or_404(supabase, goal_id, user_id)
    all_goals = _student_goals(supabase, goal.student_id, user_id)
    try:
        return {
            "goal_id": goal.id,
            "depth": depth_of(goal, all_goals),
            "path": path_of(goal, all_goals),
            "label": format_path(goal, all_goals),
            "achieved": is_goal_achieved(goal, all_goals),
        }
    except CycleDetected as e:
        logger.error(f"Goal hierarchy error for goal {goal_id}: {str(e)}")
        raise HTTPException(status_code=409, detail=str(e))

@router.put("/goal/{goal_id}")
def update_goal(goal_id: str, goal: UpdateGoal, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    existing = _get_goal_or_404(supabase, goal_id, user_id)
    updates = goal.model_dump(exclude_unset=True)

    # date_achieved is stamped the first time a goal is marked achieved
    if updates.get("status") == "achieved" and existing.date_achieved is None:
        updates["date_achieved"] = utc_now().isoformat()

    return supabase.table("goals").update(updates).eq("id", goal_id).execute().data

@router.post("/goal/{goal_id}/copy")
def copy_goal(goal_id: str, payload: CopyGoalSubtree, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    root = _get_goal_or_404(supabase, goal_id, user_id)
    all_goals = _student_goals(supabase, root.student_id, user_id)

    if payload.new_parent_goal_id and payload.new_parent_goal_id not in {g.id for g in all_goals}:
        raise HTTPException(status_code=422, detail="New parent goal not found for this student")

    replacements = [(r.from_text, r.to_text) for r in payload.replacements]
    new_goals, id_map = copy_subtree(root, all_goals, replacements, payload.new_parent_goal_id)

    # Parents come first, so each insert can reference an existing row
    created = []
    for new_goal in new_goals:
        created.extend(supabase.table("goals").insert(_goal_row(new_goal, user_id)).execute().data)

    return {"goals": created, "id_map": id_map}

@router.delete("/goal/{goal_id}")
def delete_goal(goal_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    # Sub-goals are left in place; they show up as unresolved afterwards
    _get_goal_or_404(supabase, goal_id, user_id)
    supabase.table("goals").delete().eq("id", goal_id).execute()
    return {"message": "Deleted"}
