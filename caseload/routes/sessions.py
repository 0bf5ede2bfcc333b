from fastapi import APIRouter, Depends, HTTPException, Query
from caseload.dependencies.auth import user_supabase_client
from caseload.schemas.session import Session, SessionsCreate, RecentPerformance
from caseload.services.performance import recent_performance, RECENT_SESSION_LIMIT
from typing import Optional
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# -------- Get all sessions by student --------
@router.get("/student/{student_id}")
def get_sessions_by_student(student_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    response = supabase.table("sessions") \
        .select("*") \
        .eq("teacher_id", user_id) \
        .eq("student_id", student_id) \
        .order("date", desc=True) \
        .execute()

    return response.data

# -------- Recent performance on one goal --------
@router.get("/goal/{goal_id}/recent-performance", response_model=RecentPerformance)
def get_recent_performance(
    goal_id: str,
    student_id: Optional[str] = None,
    limit: int = Query(RECENT_SESSION_LIMIT, ge=1),
    context=Depends(user_supabase_client)
):
    supabase = context["supabase"]
    user_id = context["user_id"]

    query = supabase.table("sessions").select("*").eq("teacher_id", user_id)
    if student_id:
        query = query.eq("student_id", student_id)
    rows = query.execute().data or []

    sessions = [Session(**row) for row in rows]
    return recent_performance(goal_id, sessions, student_id=student_id, limit=limit)

# -------- Log sessions with performance data --------
@router.post("/session/log")
def log_sessions(sessions: SessionsCreate, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    session_ids = []

    for session in sessions.root:
        session_id = str(uuid.uuid4())

        # Performance entries only make sense for goals worked on in the session
        goals_targeted = list(session.goals_targeted)
        for entry in session.performance_data:
            if entry.goal_id not in goals_targeted:
                goals_targeted.append(entry.goal_id)

        session_payload = session.model_dump(mode="json")
        session_payload.update({
            "id": session_id,
            "teacher_id": user_id,
            "goals_targeted": goals_targeted,
        })

        supabase.table("sessions").insert(session_payload).execute()
        session_ids.append(session_id)
        logger.info(f"Logged session {session_id} for student {session.student_id}")

    return {
        "status": "success",
        "session_ids": session_ids
    }

# -------- Delete session --------
@router.delete("/{session_id}")
def delete_session(session_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    # Verify session belongs to the user
    existing_session = supabase.table("sessions").select("*").eq("id", session_id).eq("teacher_id", user_id).execute()
    if not existing_session.data:
        raise HTTPException(status_code=404, detail="Session not found")

    supabase.table("sessions").delete().eq("id", session_id).execute()
    return {"message": "Session deleted successfully"}
