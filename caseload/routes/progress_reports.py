from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import timedelta
from typing import Optional
from caseload.dependencies.auth import user_supabase_client, report_store
from caseload.schemas.progress_report import ScheduleReportsRequest
from caseload.services.report_scheduler import refresh_overdue_statuses, schedule_reports_for_student
from caseload.utils.dates import utc_now
import logging

logger = logging.getLogger(__name__)

def refresh_statuses(store=Depends(report_store)):
    refresh_overdue_statuses(store)

# Every progress report request sees up-to-date overdue statuses
router = APIRouter(dependencies=[Depends(refresh_statuses)])

def _student_ids(supabase, user_id: str, school: Optional[str] = None, active_only: bool = False) -> list:
    query = supabase.table("students").select("id").eq("teacher_id", user_id)
    if school:
        query = query.eq("school", school)
    if active_only:
        query = query.eq("status", "active")
    return [s["id"] for s in query.execute().data or []]

# -------- List progress reports --------
@router.get("/")
def get_progress_reports(
    student_id: Optional[str] = None,
    school: Optional[str] = None,
    status: Optional[str] = Query(None, pattern="^(scheduled|overdue|completed)$"),
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    context=Depends(user_supabase_client),
    store=Depends(report_store),
):
    student_ids = _student_ids(context["supabase"], context["user_id"], school)
    if student_id:
        student_ids = [s for s in student_ids if s == student_id]

    return store.list_reports(student_ids=student_ids, status=status, start_date=start_date, end_date=end_date)

# -------- Reports due within the next N days --------
@router.get("/upcoming")
def get_upcoming_reports(
    days: int = Query(30, ge=0),
    school: Optional[str] = None,
    context=Depends(user_supabase_client),
    store=Depends(report_store),
):
    today = utc_now().date()
    cutoff = today + timedelta(days=days)

    return store.list_reports(
        student_ids=_student_ids(context["supabase"], context["user_id"], school),
        start_date=today.isoformat(),
        end_date=cutoff.isoformat(),
        exclude_completed=True,
    )

# -------- Auto-schedule for one student or all active students --------
@router.post("/schedule-auto")
def schedule_auto(payload: ScheduleReportsRequest, context=Depends(user_supabase_client), store=Depends(report_store)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    query = supabase.table("students").select("*").eq("teacher_id", user_id)
    if payload.student_id:
        students = query.eq("id", payload.student_id).execute().data
        if not students:
            raise HTTPException(status_code=404, detail="Student not found")
    else:
        query = query.eq("status", "active")
        if payload.school:
            query = query.eq("school", payload.school)
        students = query.execute().data or []

    reports = []
    for student in students:
        reports.extend(schedule_reports_for_student(store, student))

    return {
        "message": f"Scheduled {len(reports)} report(s) for {len(students)} student(s)",
        "reports": [r.model_dump() for r in reports],
    }

# -------- Run the overdue sweep explicitly (for scheduled jobs) --------
@router.post("/refresh")
def refresh(store=Depends(report_store)):
    # The router dependency already swept; a second pass reports zero changes
    return {"updated": refresh_overdue_statuses(store)}

# -------- Single report --------
@router.get("/{report_id}")
def get_progress_report(report_id: str, context=Depends(user_supabase_client), store=Depends(report_store)):
    report = store.get_report(report_id)
    if not report or report["student_id"] not in _student_ids(context["supabase"], context["user_id"]):
        raise HTTPException(status_code=404, detail="Progress report not found")
    return report

@router.post("/{report_id}/complete")
def complete_progress_report(report_id: str, context=Depends(user_supabase_client), store=Depends(report_store)):
    report = store.get_report(report_id)
    if not report or report["student_id"] not in _student_ids(context["supabase"], context["user_id"]):
        raise HTTPException(status_code=404, detail="Progress report not found")

    logger.info(f"Completing progress report {report_id}")
    return store.mark_completed(report_id)

@router.delete("/{report_id}")
def delete_progress_report(report_id: str, context=Depends(user_supabase_client), store=Depends(report_store)):
    report = store.get_report(report_id)
    if not report or report["student_id"] not in _student_ids(context["supabase"], context["user_id"]):
        raise HTTPException(status_code=404, detail="Progress report not found")

    store.delete_report(report_id)
    return {"message": "Progress report deleted"}
