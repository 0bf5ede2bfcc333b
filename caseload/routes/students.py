from fastapi import APIRouter, HTTPException, Depends
from caseload.schemas.student import Student, StudentCreate
from caseload.dependencies.auth import user_supabase_client
from caseload.services.report_store import SupabaseReportStore
from caseload.services.report_scheduler import schedule_reports_for_student
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter()

def _student_dict(student: StudentCreate, user_id: str) -> dict:
    # Dates go to Supabase as ISO strings
    student_dict = student.model_dump(mode="json")
    student_dict["teacher_id"] = user_id
    return student_dict

def _schedule(supabase, student: dict) -> list:
    reports = schedule_reports_for_student(SupabaseReportStore(supabase), student)
    logger.info(f"Scheduled {len(reports)} progress report(s) for student {student['id']}")
    return [r.model_dump() for r in reports]

# Get all students
@router.get("/students")
def get_all_students(context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    response = supabase \
        .table("students") \
        .select("*") \
        .eq("teacher_id", user_id) \
        .order("name") \
        .execute()
    return response.data

# Get single student by id
@router.get("/student/{student_id}", response_model=Student)
def get_student_by_id(student_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    response = supabase.table("students").select("*").eq("id", student_id).eq("teacher_id", user_id).execute()
    if not response.data:
        raise HTTPException(status_code=404, detail="Student not found")
    return response.data[0]

# Create student and schedule their progress reports
@router.post("/student")
def create_student(student: StudentCreate, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    student_dict = _student_dict(student, user_id)
    student_dict["id"] = str(uuid.uuid4())

    response = supabase.table("students").insert(student_dict).execute()
    created = response.data[0]

    return {
        "student": created,
        "scheduled_reports": _schedule(supabase, created),
    }

# Edit student; new IEP / review dates may open new report periods
@router.put("/student/{student_id}")
def update_student(student_id: str, student: StudentCreate, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    response = supabase \
        .table("students") \
        .update(_student_dict(student, user_id)) \
        .eq("id", student_id) \
        .eq("teacher_id", user_id) \
        .execute()
    if not response.data:
        raise HTTPException(status_code=404, detail="Student not found")
    updated = response.data[0]

    return {
        "student": updated,
        "scheduled_reports": _schedule(supabase, updated),
    }

# Delete student
@router.delete("/student/{student_id}")
def delete_student(student_id: str, context=Depends(user_supabase_client)):
    supabase = context["supabase"]
    user_id = context["user_id"]

    # Verify student belongs to the user
    existing_student = supabase.table("students").select("*").eq("id", student_id).eq("teacher_id", user_id).execute()
    if not existing_student.data:
        raise HTTPException(status_code=404, detail="Student not found")

    supabase.table("students").delete().eq("id", student_id).execute()
    return {"message": "Deleted"}
